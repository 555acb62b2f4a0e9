"""
Same-host link health checker.
Crawls every page reachable from a start URL and reports status and size per page.
"""
__version__ = "1.0.0"

from sitecheck.config import ConfigError, CrawlConfig, build_config
from sitecheck.core import Crawler, crawl
from sitecheck.models import ResponseResult
from sitecheck.report import CrawlSummary

__all__ = [
    "ConfigError",
    "CrawlConfig",
    "CrawlSummary",
    "Crawler",
    "ResponseResult",
    "build_config",
    "crawl",
]
