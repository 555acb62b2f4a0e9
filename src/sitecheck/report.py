"""
Console rendering of crawl results and the final summary.
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from http import HTTPStatus
from typing import Optional, TextIO

from sitecheck.models import ResponseResult

RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
RESET = "\033[0m"

SOURCE_WIDTH = 30
TARGET_WIDTH = 60


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{RESET}"


def truncate(text: str, max_chars: int) -> str:
    """Cut text to max_chars characters, marking the cut with '...'."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


def status_label(result: ResponseResult) -> str:
    if result.status is None:
        return "ERROR"
    reason = result.reason
    if not reason:
        try:
            reason = HTTPStatus(result.status).phrase
        except ValueError:
            reason = ""
    return f"{result.status} {reason}".rstrip()


def size_label(result: ResponseResult) -> str:
    if result.size is None:
        return "?"
    return str(result.size // 1000)


def format_result(result: ResponseResult, seq: int, outstanding: int, color: bool = True) -> str:
    """
    Build the one-line rendering of a result:

        [seq/outstanding] STATUS [size KB] /source -> target
    """
    status = f"{status_label(result):<13}"
    size = f"{size_label(result):>5}"
    if color:
        status = colorize(status, GREEN if result.status_ok else RED)
        if result.size is None:
            size = colorize(size, YELLOW)
        else:
            size = colorize(size, GREEN if result.size_ok else RED)
    counter = f"[{seq}/{outstanding}]"
    return (
        f" {counter:<10} {status} [{size} KB] "
        f"{truncate(result.source, SOURCE_WIDTH)} -> {truncate(result.url, TARGET_WIDTH)}"
    )


@dataclass(slots=True)
class CrawlSummary:
    """Totals reported when a crawl finishes."""
    host: str
    elapsed: float = 0.0
    total: int = 0
    error_count: int = 0
    interrupted: bool = False

    @property
    def ok(self) -> bool:
        return self.error_count == 0

    def format(self, color: bool = True) -> str:
        if self.error_count > 0:
            errors = f"errors: {self.error_count}"
            errors = colorize(errors, RED) if color else errors
        else:
            errors = colorize("no errors", GREEN) if color else "no errors"
        line = (
            f"<<< finished {self.host}, time elapsed: {self.elapsed:.1f}s, "
            f"total pages: {self.total}, {errors}"
        )
        if self.interrupted:
            line += " (interrupted)"
        return line


class Console:
    """
    Writes result lines to the terminal.

    Healthy lines overwrite each other in place unless verbose; error lines
    always persist on stderr.
    """

    def __init__(
        self,
        verbose: bool = False,
        color: Optional[bool] = None,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
    ) -> None:
        self.verbose = verbose
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self.color = self.out.isatty() if color is None else color
        self._last_len = 0

    def _padding(self, line: str) -> str:
        return " " * max(self._last_len - len(line), 0)

    def info(self, text: str) -> None:
        self.out.write(f"{text}{self._padding(text)}\n")
        self.out.flush()
        self._last_len = 0

    def starting(self, host: str) -> None:
        self.info(f">>> starting {host}")

    def fetching(self, url: str) -> None:
        if self.verbose:
            self.info(f"> fetching {url}")

    def excluded(self, url: str) -> None:
        self.info(f"> exclude: {url}")

    def result(self, result: ResponseResult, seq: int, outstanding: int) -> None:
        line = format_result(result, seq, outstanding, color=self.color)
        if result.is_error:
            self.err.write(f"{line}{self._padding(line)}\n")
            self.err.flush()
        elif self.verbose:
            self.out.write(f"{line}\n")
            self._last_len = len(line)
        else:
            self.out.write(f"{line}{self._padding(line)}\r")
            self._last_len = len(line)

        if self.verbose:
            if result.message:
                self.out.write(f"> {result.message}\n")
            if result.error:
                error = colorize(result.error, RED) if self.color else result.error
                self.out.write(f"! {error}\n")
        self.out.flush()

    def summary(self, summary: CrawlSummary) -> None:
        line = summary.format(color=self.color)
        self.out.write(f"{line}{self._padding(line)}\n")
        self.out.flush()
