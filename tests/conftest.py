"""
Shared fakes: an in-memory HTTP session and a captured console.
"""
import io
import threading
import time

import pytest

from sitecheck.governor import RateGovernor
from sitecheck.report import Console

SEED = "http://example.com/"


class FakeResponse:
    def __init__(self, status_code=200, body="", reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self.text = body
        self.content = body.encode("utf-8")


class FakeSession:
    """Serves canned responses and records every request made."""

    def __init__(self, pages, latency=0.0):
        self.pages = pages
        self.latency = latency
        self.requested = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self._lock = threading.Lock()

    def get(self, url, timeout=None, allow_redirects=True):
        with self._lock:
            self.requested.append(url)
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.latency:
                time.sleep(self.latency)
            page = self.pages.get(url)
            if page is None:
                return FakeResponse(404, page_body(), reason="Not Found")
            if isinstance(page, Exception):
                raise page
            return page
        finally:
            with self._lock:
                self.in_flight -= 1


def page_body(*hrefs, padding=300):
    """HTML page linking to hrefs, padded past the minimum healthy size."""
    anchors = "".join(f'<a href="{href}">link</a>\n' for href in hrefs)
    return f"<html><body>\n{anchors}<p>{'x' * padding}</p></body></html>"


def page(*hrefs, status=200, padding=300):
    return FakeResponse(status, page_body(*hrefs, padding=padding))


@pytest.fixture
def console():
    return Console(verbose=False, color=False, out=io.StringIO(), err=io.StringIO())


@pytest.fixture
def governor():
    """No pacing delay, so crawls in tests run at full speed."""
    return RateGovernor(initial_latency=0.0, min_delay=0.0)
