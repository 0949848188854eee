"""Last-request-wins bookkeeping for asynchronous fetches.

Two categories of fetches run in the background: the dataset refresh after
a filter change and the history fetch for a selected site. Each category has
a RequestGeneration counter. A completion is applied only while its
generation is still the latest one issued for its category; superseded
responses are dropped.

Fetches run on a ThreadPoolExecutor, but their results are never applied
from the worker thread. Completions are queued and the hosting UI thread
applies them by calling BackgroundFetcher.drain(), so every mutation of
page state happens on one thread.
"""

import logging
import queue
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


class RequestGeneration:
    """Monotonically increasing request counter for one fetch category.

    Example:
        gen = RequestGeneration("dataset")
        token = gen.issue()
        ...
        if gen.is_current(token):
            apply(result)
    """

    def __init__(self, category: str) -> None:
        self.category = category
        self._latest = 0
        self._lock = threading.Lock()

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> int:
        """Start a new request, superseding every earlier one."""
        with self._lock:
            self._latest += 1
            return self._latest

    def invalidate(self) -> None:
        """Supersede all in-flight requests without starting a new one."""
        self.issue()

    def is_current(self, generation: int) -> bool:
        return generation == self._latest


@dataclass(frozen=True)
class Completion:
    """A finished fetch waiting to be applied on the UI thread."""

    category: str
    generation: int
    result: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BackgroundFetcher:
    """Runs fetch callables off the UI thread and queues their completions.

    With max_workers=0 fetches run inline on the calling thread, which keeps
    tests and scripts deterministic; completions are still queued and
    applied by drain().
    """

    def __init__(self, max_workers: int = 2) -> None:
        self._executor: ThreadPoolExecutor | None = None
        if max_workers > 0:
            self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="gis-fetch")
        self._completions: queue.Queue[Completion] = queue.Queue()
        self._in_flight = 0
        self._idle = threading.Condition()

    def submit(self, category: str, generation: int, fn: Callable[[], Any]) -> None:
        """Run fn in the background, tagging its result with category/generation."""
        if self._executor is None:
            self._completions.put(self._run(category=category, generation=generation, fn=fn))
            return
        with self._idle:
            self._in_flight += 1
        future: Future[Completion] = self._executor.submit(self._run, category, generation, fn)
        future.add_done_callback(self._on_done)

    def _on_done(self, future: "Future[Completion]") -> None:
        if not future.cancelled():
            self._completions.put(future.result())
        with self._idle:
            self._in_flight -= 1
            self._idle.notify_all()

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no fetch is running. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: self._in_flight == 0, timeout=timeout)

    @staticmethod
    def _run(category: str, generation: int, fn: Callable[[], Any]) -> Completion:
        try:
            return Completion(category=category, generation=generation, result=fn())
        except Exception as e:  # surfaced to the UI thread through Completion.error
            logger.warning(f"Background {category} fetch #{generation} failed: {e}")
            return Completion(category=category, generation=generation, error=e)

    def drain(self) -> list[Completion]:
        """Return all queued completions in arrival order (non-blocking)."""
        drained = []
        while True:
            try:
                drained.append(self._completions.get_nowait())
            except queue.Empty:
                return drained

    @property
    def pending(self) -> int:
        """Number of completions waiting to be drained."""
        return self._completions.qsize()

    @property
    def busy(self) -> bool:
        """True while a fetch is running or a completion is waiting to be drained."""
        with self._idle:
            running = self._in_flight > 0
        return running or self.pending > 0

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
