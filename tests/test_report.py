import io

import pytest

from sitecheck.models import ResponseResult
from sitecheck.report import Console, CrawlSummary, format_result, truncate


def make_result(**kwargs):
    fields = {"source": "/", "url": "http://example.com/a", "status": 200, "reason": "OK", "size": 1500}
    fields.update(kwargs)
    return ResponseResult(**fields)


def test_truncate():
    assert truncate("short", 10) == "short"
    assert truncate("abcdefghij", 5) == "abcde..."


@pytest.mark.parametrize(
    "status, size, is_error",
    [
        (200, 1500, False),
        (204, 200, False),
        (200, 150, True),
        (200, None, True),
        (404, 1500, True),
        (301, 1500, True),
        (None, None, True),
    ],
)
def test_classification(status, size, is_error):
    assert make_result(status=status, size=size).is_error is is_error


def test_format_result():
    line = format_result(make_result(), seq=3, outstanding=7, color=False)
    assert line.startswith(" [3/7]      200 OK        [    1 KB] / -> http://example.com/a")


def test_format_result_unknown_status_and_size():
    line = format_result(make_result(status=None, reason=None, size=None), 1, 0, color=False)
    assert "ERROR" in line
    assert "[    ? KB]" in line


def test_format_result_fills_in_reason_phrase():
    line = format_result(make_result(status=404, reason=None), 1, 0, color=False)
    assert "404 Not Found" in line


def test_format_result_truncates_long_urls():
    long_url = "http://example.com/" + "a" * 100
    line = format_result(make_result(url=long_url, source="/" + "b" * 50), 1, 0, color=False)
    assert long_url[:60] + "..." in line
    assert "/" + "b" * 29 + "... ->" in line


def test_format_result_colors():
    line = format_result(make_result(size=100), 1, 0, color=True)
    assert "\033[32m200 OK" in line
    assert "\033[31m" in line


def test_summary_format():
    assert CrawlSummary("example.com", 2.34, 5, 0).format(color=False) == (
        "<<< finished example.com, time elapsed: 2.3s, total pages: 5, no errors"
    )
    summary = CrawlSummary("example.com", 1.0, 5, 2)
    assert summary.format(color=False).endswith("errors: 2")
    assert not summary.ok


def make_console(verbose=False):
    return Console(verbose=verbose, color=False, out=io.StringIO(), err=io.StringIO())


def test_healthy_line_is_overwritten_when_not_verbose():
    console = make_console()
    console.result(make_result(message="2 URL's found"), 1, 1)
    assert console.out.getvalue().endswith("\r")
    assert "URL's found" not in console.out.getvalue()
    assert console.err.getvalue() == ""


def test_error_line_persists_on_stderr():
    console = make_console()
    console.result(make_result(status=None, size=None, error="connection refused"), 1, 0)
    assert "ERROR" in console.err.getvalue()
    assert console.err.getvalue().endswith("\n")
    assert "connection refused" not in console.out.getvalue()


def test_verbose_prints_details():
    console = make_console(verbose=True)
    console.result(make_result(message="2 URL's found"), 1, 1)
    console.result(make_result(status=None, size=None, error="timed out"), 2, 0)
    out = console.out.getvalue()
    assert "\r" not in out
    assert "> 2 URL's found\n" in out
    assert "! timed out\n" in out


def test_fetching_only_shown_when_verbose():
    quiet, loud = make_console(), make_console(verbose=True)
    quiet.fetching("http://example.com/a")
    loud.fetching("http://example.com/a")
    assert quiet.out.getvalue() == ""
    assert "> fetching http://example.com/a" in loud.out.getvalue()
