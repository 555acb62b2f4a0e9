"""
Crawl engine: frontier, dispatcher, completion tracking and result reporting.

Data flow:

    seed -> Frontier -> Dispatcher -> fetch -> results -> Reporter
                ^                       |
                +------ edges ----------+

The frontier loop runs in the calling thread and is the only place the seen
set is touched. Fetches run on a thread pool behind a counting semaphore.
The reporter runs in its own thread and consumes results in arrival order.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from queue import Queue
from typing import Optional, Set, Tuple
from urllib.parse import urlparse

import requests

from sitecheck.config import CrawlConfig
from sitecheck.fetcher import build_session, fetch
from sitecheck.governor import RateGovernor
from sitecheck.models import Edge, ResponseResult
from sitecheck.report import Console, CrawlSummary

logger = logging.getLogger(__name__)

# Results are bounded; edges are not, so a fetch never blocks while emitting
QUEUE_SIZE = 512


class CompletionTracker:
    """
    Counts work that can still produce more work.

    `outstanding` is the number of admitted URLs whose result has not been
    consumed yet. `pending_edges` is the number of emitted edges the frontier
    has not decided on. The crawl is idle, and stays idle, once both are zero.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._outstanding = 0
        self._pending_edges = 0
        self._started = False

    @property
    def outstanding(self) -> int:
        return self._outstanding

    def _idle(self) -> bool:
        return self._started and self._outstanding == 0 and self._pending_edges == 0

    def edge_emitted(self) -> None:
        with self._lock:
            self._pending_edges += 1
            self._started = True

    def admitted(self) -> None:
        with self._lock:
            self._outstanding += 1

    def edge_settled(self) -> bool:
        """Mark one edge as decided. Returns True if this made the crawl idle."""
        with self._lock:
            self._pending_edges -= 1
            return self._idle()

    def result_consumed(self) -> Tuple[int, bool]:
        """Mark one result as consumed. Returns (outstanding, became idle)."""
        with self._lock:
            if self._outstanding <= 0:
                raise RuntimeError("result consumed with no outstanding URL")
            self._outstanding -= 1
            return self._outstanding, self._idle()


class Permit:
    """One unit of the concurrency budget, handed back at most once."""

    def __init__(self, pool: threading.Semaphore) -> None:
        self._pool = pool
        self._held = True

    def release(self) -> None:
        if self._held:
            self._held = False
            self._pool.release()


class Dispatcher:
    """Admits URLs one at a time: pace, take a permit, hand off to the pool."""

    def __init__(
        self,
        session: requests.Session,
        governor: RateGovernor,
        tracker: CompletionTracker,
        edges: "Queue[Optional[Edge]]",
        results: "Queue[Optional[ResponseResult]]",
        console: Console,
        stop_event: threading.Event,
        max_concurrent: int,
        timeout: Tuple[float, Optional[float]],
    ) -> None:
        self.session = session
        self.governor = governor
        self.tracker = tracker
        self.edges = edges
        self.results = results
        self.console = console
        self.stop_event = stop_event
        self.timeout = timeout
        self.permits = threading.Semaphore(max_concurrent)
        self._pool = ThreadPoolExecutor(max_workers=max_concurrent, thread_name_prefix="fetch")

    def dispatch(self, edge: Edge) -> None:
        self.tracker.admitted()

        delay = self.governor.next_delay()
        logger.debug("waiting %.2fs before dispatching %s", delay, edge.target)
        # A stop request cuts the wait short; this URL is already counted
        self.stop_event.wait(delay)

        self.permits.acquire()
        self._pool.submit(self._run, edge)

    def emit(self, edge: Edge) -> None:
        self.tracker.edge_emitted()
        self.edges.put(edge)

    def _run(self, edge: Edge) -> None:
        permit = Permit(self.permits)
        try:
            self.console.fetching(edge.target)
            result = fetch(
                self.session,
                edge.target,
                edge.source,
                self.governor,
                permit.release,
                self.emit,
                timeout=self.timeout,
            )
        except Exception as e:
            logger.exception("Unexpected failure while processing %s", edge.target)
            result = ResponseResult(
                source=urlparse(edge.source).path,
                url=edge.target,
                error=f"{type(e).__name__}: {e}",
            )
        finally:
            permit.release()
        self.results.put(result)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


class Frontier:
    """Single owner of the seen set and the admit/drop decision."""

    def __init__(
        self,
        edges: "Queue[Optional[Edge]]",
        results: "Queue[Optional[ResponseResult]]",
        dispatcher: Dispatcher,
        tracker: CompletionTracker,
        console: Console,
        stop_event: threading.Event,
        exclude_pattern=None,
    ) -> None:
        self.edges = edges
        self.results = results
        self.dispatcher = dispatcher
        self.tracker = tracker
        self.console = console
        self.stop_event = stop_event
        self.exclude_pattern = exclude_pattern
        self.seen: Set[str] = set()

    def consider(self, edge: Edge) -> bool:
        """Decide on one edge. Returns True if its target was dispatched."""
        url = edge.target
        if self.stop_event.is_set():
            logger.debug("stopping, dropped %s", url)
            return False
        if self.exclude_pattern is not None and self.exclude_pattern.search(url):
            logger.info("excluded %s", url)
            self.console.excluded(url)
            return False
        if url in self.seen:
            return False
        self.seen.add(url)
        self.dispatcher.dispatch(edge)
        return True

    def run(self) -> None:
        while True:
            edge = self.edges.get()
            if edge is None:
                break
            self.consider(edge)
            if self.tracker.edge_settled():
                # Nothing in flight and this edge led nowhere: wake the reporter
                self.results.put(None)


class Reporter:
    """Consumes results, renders them and decides when the crawl is over."""

    def __init__(
        self,
        results: "Queue[Optional[ResponseResult]]",
        edges: "Queue[Optional[Edge]]",
        tracker: CompletionTracker,
        console: Console,
        stop_event: threading.Event,
        host: str,
    ) -> None:
        self.results = results
        self.edges = edges
        self.tracker = tracker
        self.console = console
        self.stop_event = stop_event
        self.summary = CrawlSummary(host=host)

    def run(self) -> None:
        start = time.monotonic()
        try:
            while True:
                result = self.results.get()
                if result is None:
                    break
                outstanding, idle = self.tracker.result_consumed()
                self.summary.total += 1
                if result.is_error:
                    self.summary.error_count += 1
                self.console.result(result, self.summary.total, outstanding)
                if idle:
                    break
        finally:
            # Always release the frontier, even if rendering failed
            self.edges.put(None)
        self.summary.elapsed = time.monotonic() - start
        self.summary.interrupted = self.stop_event.is_set()
        self.console.summary(self.summary)


class Crawler:
    """
    One crawl run over the same-host link graph of a start URL.

    run() blocks until every reachable URL has been fetched and reported,
    or until stop() was called and the in-flight fetches have drained.
    """

    def __init__(
        self,
        config: CrawlConfig,
        session: Optional[requests.Session] = None,
        governor: Optional[RateGovernor] = None,
        console: Optional[Console] = None,
    ) -> None:
        self.config = config
        self.session = session or build_session(config)
        self.governor = governor or RateGovernor()
        self.console = console or Console(verbose=config.verbose)
        self.tracker = CompletionTracker()
        self._stop = threading.Event()

        self.edges: "Queue[Optional[Edge]]" = Queue()
        self.results: "Queue[Optional[ResponseResult]]" = Queue(maxsize=QUEUE_SIZE)

        self.dispatcher = Dispatcher(
            self.session,
            self.governor,
            self.tracker,
            self.edges,
            self.results,
            self.console,
            self._stop,
            config.max_concurrent,
            timeout=(config.connect_timeout, None),
        )
        self.frontier = Frontier(
            self.edges,
            self.results,
            self.dispatcher,
            self.tracker,
            self.console,
            self._stop,
            exclude_pattern=config.exclude_pattern,
        )
        self.reporter = Reporter(
            self.results,
            self.edges,
            self.tracker,
            self.console,
            self._stop,
            host=config.host,
        )

    @property
    def seen(self) -> Set[str]:
        return self.frontier.seen

    def stop(self) -> None:
        """Stop admitting URLs; in-flight fetches still finish and are reported."""
        if not self._stop.is_set():
            logger.info("stop requested, draining in-flight fetches")
        self._stop.set()

    def run(self) -> CrawlSummary:
        self.console.starting(self.config.host)
        reporter = threading.Thread(target=self.reporter.run, name="reporter", daemon=True)
        reporter.start()

        seed = self.config.start_url
        self.dispatcher.emit(Edge(seed, seed))
        try:
            self.frontier.run()
        except BaseException:
            self.dispatcher.shutdown(wait=False)
            raise
        self.dispatcher.shutdown()
        reporter.join()
        return self.reporter.summary


def crawl(
    config: CrawlConfig,
    session: Optional[requests.Session] = None,
    governor: Optional[RateGovernor] = None,
    console: Optional[Console] = None,
) -> CrawlSummary:
    """Crawl every same-host page reachable from config.start_url."""
    return Crawler(config, session=session, governor=governor, console=console).run()
