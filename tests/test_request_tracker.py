"""RequestGeneration and BackgroundFetcher - last request wins, applied on drain()."""

import threading

import pytest

from netops_gis.ui.request_tracker import BackgroundFetcher, Completion, RequestGeneration


class TestRequestGeneration:
    def test_issue_supersedes(self) -> None:
        gen = RequestGeneration("dataset")
        first = gen.issue()
        second = gen.issue()
        assert not gen.is_current(first)
        assert gen.is_current(second)
        assert gen.latest == second

    def test_invalidate(self) -> None:
        gen = RequestGeneration("history")
        token = gen.issue()
        gen.invalidate()
        assert not gen.is_current(token)


class TestInlineFetcher:
    """max_workers=0: run on the calling thread, still queued until drain()."""

    def test_result_queued(self) -> None:
        fetcher = BackgroundFetcher(max_workers=0)
        fetcher.submit(category="dataset", generation=1, fn=lambda: [1, 2])
        assert fetcher.pending == 1
        assert fetcher.drain() == [Completion(category="dataset", generation=1, result=[1, 2])]
        assert fetcher.drain() == []

    def test_error_captured(self) -> None:
        fetcher = BackgroundFetcher(max_workers=0)

        def boom() -> None:
            raise ConnectionError("down")

        fetcher.submit(category="history", generation=3, fn=boom)
        (completion,) = fetcher.drain()
        assert not completion.ok
        assert isinstance(completion.error, ConnectionError)
        assert completion.generation == 3

    def test_wait_idle_is_immediate(self) -> None:
        assert BackgroundFetcher(max_workers=0).wait_idle(timeout=0)

    def test_busy_until_drained(self) -> None:
        fetcher = BackgroundFetcher(max_workers=0)
        assert not fetcher.busy
        fetcher.submit(category="dataset", generation=1, fn=lambda: [])
        assert fetcher.busy
        fetcher.drain()
        assert not fetcher.busy


class TestThreadedFetcher:
    def test_completions_arrive_after_wait(self) -> None:
        fetcher = BackgroundFetcher(max_workers=2)
        release = threading.Event()
        try:
            fetcher.submit(category="dataset", generation=1, fn=lambda: release.wait(5) and "rows")
            assert not fetcher.wait_idle(timeout=0.05)
            assert fetcher.busy
            release.set()
            assert fetcher.wait_idle(timeout=5)
            assert fetcher.busy  # finished but not yet drained
            (completion,) = fetcher.drain()
            assert completion.result == "rows"
            assert not fetcher.busy
        finally:
            fetcher.shutdown()

    @pytest.mark.parametrize("count", [1, 5])
    def test_all_completions_drained(self, count: int) -> None:
        fetcher = BackgroundFetcher(max_workers=2)
        try:
            for generation in range(1, count + 1):
                fetcher.submit(category="dataset", generation=generation, fn=lambda g=generation: g)
            assert fetcher.wait_idle(timeout=5)
            assert sorted(c.result for c in fetcher.drain()) == list(range(1, count + 1))
        finally:
            fetcher.shutdown()
