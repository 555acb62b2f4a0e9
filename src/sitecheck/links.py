"""
Link extraction: HTML body + page origin -> same-host absolute URLs.
"""
from __future__ import annotations

from typing import List, Optional
from urllib.parse import urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup, SoupStrainer

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)

ABSOLUTE_PREFIXES = ("http://", "https://")
DEFAULT_PORTS = {"http": 80, "https": 443}


def canonical_url(url: str) -> str:
    """
    Lowercase scheme and host, drop a default port, give an empty path "/".

    Raises ValueError for URLs urllib cannot parse.
    """
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    userinfo, at, hostport = parsed.netloc.rpartition("@")
    hostport = hostport.lower()
    port = parsed.port
    if port is not None and DEFAULT_PORTS.get(scheme) == port:
        hostport = hostport.rsplit(":", 1)[0]
    return parsed._replace(
        scheme=scheme,
        netloc=f"{userinfo}{at}{hostport}",
        path=parsed.path or "/",
    ).geturl()


def origin_of(url: str) -> str:
    """Reduce a URL to scheme and host with an empty path and no query."""
    parsed = urlparse(url)
    return urlunparse((parsed.scheme, parsed.netloc, "/", "", "", ""))


def resolve_href(href: str, origin: str) -> Optional[str]:
    """
    Turn a raw href into an absolute URL.

    Absolute http(s) hrefs are parsed as they are, everything else is joined
    against the origin; the result is passed through canonical_url(). Returns None for fragment-only or unparseable hrefs.
    """
    if not href or href.startswith("#"):
        return None
    try:
        if href.startswith(ABSOLUTE_PREFIXES):
            url = href
        else:
            url = urljoin(origin, href)
        parsed = urlparse(url)
        if parsed.scheme.lower() not in ("http", "https") or not parsed.netloc:
            return None
        # .port raises ValueError on garbage like "host:abc"
        return canonical_url(url)
    except ValueError:
        return None


def same_host(url: str, origin: str) -> bool:
    """Check if URL has the same host as the origin."""
    return urlparse(url).hostname == urlparse(origin).hostname


def extract_links(body: str, origin: str) -> List[str]:
    """
    Extract same-host links from an HTML body.

    Results keep document order; duplicates are passed through.
    """
    soup = BeautifulSoup(body, "lxml", parse_only=LINK_STRAINER)
    links = []
    for anchor in soup.find_all("a", href=True):
        url = resolve_href(anchor["href"].strip(), origin)
        if url and same_host(url, origin):
            links.append(url)
    return links
