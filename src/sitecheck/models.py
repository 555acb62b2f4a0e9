"""
Data passed between the crawl stages.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Optional

# Bodies smaller than this many bytes are reported as unhealthy
MIN_SIZE = 200


class Edge(NamedTuple):
    """A discovered link: source page links to target."""
    target: str
    source: str


@dataclass(slots=True)
class ResponseResult:
    """Outcome of fetching a single URL."""
    source: str
    url: str
    status: Optional[int] = None
    reason: Optional[str] = None
    size: Optional[int] = None
    error: Optional[str] = None
    message: Optional[str] = None

    @property
    def status_ok(self) -> bool:
        return self.status is not None and 200 <= self.status < 300

    @property
    def size_ok(self) -> bool:
        return self.size is not None and self.size >= MIN_SIZE

    @property
    def is_error(self) -> bool:
        """Missing or non-2xx status, or a missing or tiny body."""
        return not (self.status_ok and self.size_ok)
