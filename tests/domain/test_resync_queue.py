"""Tests for ResyncQueue marker bookkeeping."""

from bundlesync.domain.service.keyed_serializer import KeyedSerializer
from bundlesync.domain.service.resync_queue import ResyncQueue
from tests.fakes import FakeDeferredBundleRepository


def _queue():
    repo = FakeDeferredBundleRepository()
    return ResyncQueue(repo, KeyedSerializer()), repo


class TestDefer:

    def test_first_deferral_creates_marker(self):
        queue, repo = _queue()

        marker = queue.defer("Kit", "set failed")

        assert repo.get("Kit") is marker
        assert marker.attempts == 0
        assert queue.is_deferred("Kit")

    def test_repeat_deferral_bumps_attempts_and_revision(self):
        queue, _ = _queue()
        first = queue.defer("Kit", "set failed").revision

        marker = queue.defer("Kit", "component read failed")

        assert marker.attempts == 1
        assert marker.reason == "component read failed"
        assert marker.revision != first


class TestClearIfUnchanged:

    def test_clears_when_nothing_changed(self):
        queue, repo = _queue()
        queue.defer("Kit", "set failed")
        seen = queue.revision("Kit")

        assert queue.clear_if_unchanged("Kit", seen)
        assert repo.get("Kit") is None

    def test_keeps_marker_deferred_after_snapshot(self):
        queue, repo = _queue()
        queue.defer("Kit", "set failed")
        seen = queue.revision("Kit")
        queue.defer("Kit", "component adjustment incomplete: Y")

        assert not queue.clear_if_unchanged("Kit", seen)
        assert repo.get("Kit").attempts == 1

    def test_keeps_marker_created_after_empty_snapshot(self):
        queue, repo = _queue()
        seen = queue.revision("Kit")
        queue.defer("Kit", "component adjustment incomplete: Y")

        assert seen is None
        assert not queue.clear_if_unchanged("Kit", seen)
        assert repo.get("Kit") is not None

    def test_nothing_to_clear(self):
        queue, _ = _queue()
        assert queue.clear_if_unchanged("Kit", None)

    def test_unconditional_clear(self):
        queue, repo = _queue()
        queue.defer("Kit", "set failed")

        queue.clear("Kit")

        assert repo.list_all() == []
        assert queue.pending() == []
