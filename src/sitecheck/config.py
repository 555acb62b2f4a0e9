"""
Crawl configuration and startup validation.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple
from urllib.parse import urlparse

from sitecheck import __version__
from sitecheck.links import canonical_url

DEFAULT_MAX_CONCURRENT = 1000
DEFAULT_CONNECT_TIMEOUT = 15.0
DEFAULT_USER_AGENT = f"sitecheck/{__version__}"

# RFC 7230 token characters
HEADER_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


class ConfigError(ValueError):
    """Invalid configuration detected before crawling starts."""


@dataclass(slots=True)
class CrawlConfig:
    """Validated settings for one crawl run."""
    start_url: str
    exclude_pattern: Optional[re.Pattern] = None
    headers: Dict[str, str] = field(default_factory=dict)
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    verbose: bool = False
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    verify_tls: bool = False

    @property
    def host(self) -> str:
        return urlparse(self.start_url).hostname or ""


def parse_header(spec: str) -> Tuple[str, str]:
    """Parse a `<key>: <value>` header specification."""
    parts = spec.split(":")
    if len(parts) != 2:
        raise ConfigError(
            f"Invalid header {spec!r}: provide headers as `<key>: <value>` pairs, separated by a colon"
        )
    name, value = parts[0].strip(), parts[1].strip()
    if not HEADER_NAME_RE.match(name):
        raise ConfigError(f"Invalid header name {name!r}")
    if "\r" in value or "\n" in value:
        raise ConfigError(f"Invalid value for header {name!r}")
    return name, value


def validate_start_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ConfigError(f"Invalid start URL: {url}")
    try:
        return canonical_url(url)
    except ValueError as e:
        raise ConfigError(f"Invalid start URL: {url} ({e})") from e


def build_config(
    start_url: str,
    exclude_pattern: Optional[str] = None,
    headers: Iterable[str] = (),
    max_concurrent: int = DEFAULT_MAX_CONCURRENT,
    verbose: bool = False,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    verify_tls: bool = False,
) -> CrawlConfig:
    """
    Validate raw settings into a CrawlConfig.

    Raises:
        ConfigError: on a malformed seed URL, exclusion pattern or header,
            or a non-positive concurrency limit or timeout.
    """
    url = validate_start_url(start_url)

    pattern = None
    if exclude_pattern:
        try:
            pattern = re.compile(exclude_pattern)
        except re.error as e:
            raise ConfigError(f"Invalid exclude pattern {exclude_pattern!r}: {e}") from e

    header_map: Dict[str, str] = {}
    for spec in headers:
        name, value = parse_header(spec)
        header_map[name] = value

    if max_concurrent < 1:
        raise ConfigError(f"max concurrent must be at least 1, got {max_concurrent}")
    if connect_timeout <= 0:
        raise ConfigError(f"connect timeout must be positive, got {connect_timeout}")

    return CrawlConfig(
        start_url=url,
        exclude_pattern=pattern,
        headers=header_map,
        max_concurrent=max_concurrent,
        verbose=verbose,
        connect_timeout=connect_timeout,
        verify_tls=verify_tls,
    )
