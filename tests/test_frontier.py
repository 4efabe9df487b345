"""Tests for the per-job frontier: dedup, budget and shutdown semantics."""

import threading

import pytest

from webgather.crawler.frontier import EnqueueStatus, Frontier
from webgather.crawler.types import FrontierLabel


class TestEnqueue:
    def test_duplicate_after_normalization_is_skipped(self):
        frontier = Frontier(max_requests=10)

        first = frontier.push("https://a.test/b")
        second = frontier.push("https://A.test/b/#frag")

        assert first.status == EnqueueStatus.ENQUEUED
        assert second.status == EnqueueStatus.SKIPPED_SEEN
        assert frontier.qsize() == 1

    def test_invalid_url_is_skipped(self):
        frontier = Frontier(max_requests=10)
        assert frontier.push("not a url").status == EnqueueStatus.SKIPPED_INVALID_URL
        assert frontier.qsize() == 0

    def test_closed_frontier_refuses_new_urls(self):
        frontier = Frontier(max_requests=10)
        frontier.close()
        result = frontier.push("https://a.test/")
        assert result.status == EnqueueStatus.SKIPPED_CLOSED
        assert "https://a.test/" not in frontier.seen_urls()

    def test_label_and_referrer_are_kept(self):
        frontier = Frontier(max_requests=10)
        frontier.push("https://a.test/x", label=FrontierLabel.SEARCH, referrer="https://r.test/")
        item = frontier.pop(timeout=0.1)
        assert item.label == FrontierLabel.SEARCH
        assert item.referrer == "https://r.test/"

    def test_concurrent_pushes_of_same_url_enqueue_once(self):
        frontier = Frontier(max_requests=100)
        barrier = threading.Barrier(8)
        results = []
        results_lock = threading.Lock()

        def push():
            barrier.wait()
            result = frontier.push("https://a.test/shared")
            with results_lock:
                results.append(result.status)

        threads = [threading.Thread(target=push) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(EnqueueStatus.ENQUEUED) == 1
        assert frontier.qsize() == 1

    def test_max_requests_must_be_positive(self):
        with pytest.raises(ValueError):
            Frontier(max_requests=0)


class TestDequeue:
    def test_fifo_order(self):
        frontier = Frontier(max_requests=10)
        frontier.push_many(["https://a.test/1", "https://a.test/2", "https://a.test/3"])
        popped = [frontier.pop(timeout=0.1).url for _ in range(3)]
        assert popped == ["https://a.test/1", "https://a.test/2", "https://a.test/3"]

    def test_budget_caps_dequeues(self):
        frontier = Frontier(max_requests=2)
        frontier.push_many(["https://a.test/1", "https://a.test/2", "https://a.test/3"])

        assert frontier.pop(timeout=0.1) is not None
        assert frontier.pop(timeout=0.1) is not None
        assert frontier.pop(timeout=0.1) is None
        assert frontier.exhausted
        # Still enqueueable: enqueue is only gated by closed/seen.
        assert frontier.qsize() == 1

    def test_empty_and_idle_is_exhausted(self):
        frontier = Frontier(max_requests=5)
        assert frontier.exhausted
        assert frontier.pop(timeout=0.1) is None

    def test_outstanding_item_keeps_frontier_alive(self):
        frontier = Frontier(max_requests=5)
        frontier.push("https://a.test/")
        frontier.pop(timeout=0.1)

        assert not frontier.exhausted
        assert frontier.pop(timeout=0.05) is None

        frontier.task_done()
        assert frontier.exhausted

    def test_task_done_without_pop_raises(self):
        frontier = Frontier(max_requests=5)
        with pytest.raises(ValueError):
            frontier.task_done()

    def test_close_wakes_blocked_pop(self):
        frontier = Frontier(max_requests=5)
        frontier.push("https://a.test/")
        frontier.pop(timeout=0.1)
        returned = []

        waiter = threading.Thread(target=lambda: returned.append(frontier.pop()))
        waiter.start()
        frontier.close()
        waiter.join(timeout=2)

        assert not waiter.is_alive()
        assert returned == [None]

    def test_snapshot_counters(self):
        frontier = Frontier(max_requests=5)
        frontier.push_many(["https://a.test/1", "https://a.test/1", "bad"])
        snapshot = frontier.snapshot()
        assert snapshot["enqueued"] == 1
        assert snapshot["skipped_seen"] == 1
        assert snapshot["skipped_invalid"] == 1
        assert snapshot["max_requests"] == 5
