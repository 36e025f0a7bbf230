from uuid import uuid4

import pytest

from app.services.cache import ProfileSnapshotCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def snapshot_cache(clock):
    return ProfileSnapshotCache(ttl_seconds=300, clock=clock)


def test_get_returns_stored_snapshot(snapshot_cache):
    viewer, user = uuid4(), uuid4()
    snapshot_cache.set(viewer, user, {"page": 1})

    assert snapshot_cache.get(viewer, user) == {"page": 1}
    assert snapshot_cache.hits == 1


def test_key_includes_viewer(snapshot_cache):
    viewer, other_viewer, user = uuid4(), uuid4(), uuid4()
    snapshot_cache.set(viewer, user, "seen by viewer")

    assert snapshot_cache.get(other_viewer, user) is None
    assert snapshot_cache.misses == 1


def test_snapshot_expires_after_ttl(snapshot_cache, clock):
    viewer, user = uuid4(), uuid4()
    snapshot_cache.set(viewer, user, "page")

    clock.now += 300
    assert snapshot_cache.get(viewer, user) == "page"

    clock.now += 1
    assert snapshot_cache.get(viewer, user) is None
    assert len(snapshot_cache) == 0


def test_invalidate_drops_entries_touching_user_as_viewer_or_subject(snapshot_cache):
    alice, bob, carol, dave = uuid4(), uuid4(), uuid4(), uuid4()
    snapshot_cache.set(alice, bob, "a->b")
    snapshot_cache.set(bob, carol, "b->c")
    snapshot_cache.set(carol, dave, "c->d")

    removed = snapshot_cache.invalidate(bob)

    assert removed == 2
    assert snapshot_cache.get(alice, bob) is None
    assert snapshot_cache.get(bob, carol) is None
    assert snapshot_cache.get(carol, dave) == "c->d"


def test_clear(snapshot_cache):
    snapshot_cache.set(uuid4(), uuid4(), "page")
    snapshot_cache.clear()

    assert len(snapshot_cache) == 0
