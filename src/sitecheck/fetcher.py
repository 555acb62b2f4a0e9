"""
HTTP session construction and single-page fetching.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple, Union
from urllib.parse import urlparse

import requests
import urllib3
from requests.adapters import HTTPAdapter

from sitecheck.config import CrawlConfig
from sitecheck.governor import RateGovernor
from sitecheck.links import extract_links, origin_of
from sitecheck.models import Edge, ResponseResult

logger = logging.getLogger(__name__)

Timeout = Union[float, Tuple[float, Optional[float]]]


def build_session(config: CrawlConfig) -> requests.Session:
    """Create the shared HTTP session used by every fetch."""
    session = requests.Session()
    session.headers["User-Agent"] = config.user_agent
    session.headers.update(config.headers)
    session.verify = config.verify_tls
    if not config.verify_tls:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    # One pooled connection per permit, otherwise urllib3 discards the extras
    adapter = HTTPAdapter(pool_connections=1, pool_maxsize=config.max_concurrent)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def fetch(
    session: requests.Session,
    url: str,
    source: str,
    governor: RateGovernor,
    release_permit: Callable[[], None],
    emit: Callable[[Edge], None],
    timeout: Timeout = (15.0, None),
) -> ResponseResult:
    """
    Fetch one URL and emit the same-host links found in its body.

    The caller already holds a concurrency permit; release_permit() is called
    as soon as the network call returns, before the body is parsed.
    """
    result = ResponseResult(source=urlparse(source).path, url=url)

    start = time.monotonic()
    try:
        resp = session.get(url, timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        if e.response is not None:
            result.status = e.response.status_code
            result.reason = e.response.reason
        result.error = str(e)
        return result
    finally:
        release_permit()
        governor.observe(time.monotonic() - start)

    result.status = resp.status_code
    result.reason = resp.reason
    result.size = len(resp.content)

    count = 0
    for target in extract_links(resp.text, origin_of(url)):
        emit(Edge(target, url))
        count += 1
    if count > 0:
        result.message = f"{count} URL's found"
    return result
