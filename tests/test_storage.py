"""
Tests for StateStorage and BroadcastChannel.
"""

from __future__ import annotations

import gc
from pathlib import Path

import pytest

from mawaddah_client.infrastructure.storage import BroadcastChannel, StateStorage
from mawaddah_client.stores.session_store import SessionStore


@pytest.fixture
def storage(tmp_path: Path) -> StateStorage:
    return StateStorage(tmp_path / "state")


def test_write_then_read(storage: StateStorage) -> None:
    """Namespaces are stored as separate JSON files."""
    storage.write("mawaddah-auth", {"token": "t"})
    storage.write("mawaddah-search", {"filters": {"city": "عمان"}})

    assert storage.read("mawaddah-auth") == {"token": "t"}
    assert storage.read("mawaddah-search") == {"filters": {"city": "عمان"}}
    assert (storage.root / "mawaddah-auth.json").is_file()


def test_missing_namespace_reads_empty(storage: StateStorage) -> None:
    """Nothing persisted yet reads as an empty mapping."""
    assert storage.read("mawaddah-profile") == {}


def test_corrupt_file_reads_empty(storage: StateStorage) -> None:
    """A half-written or hand-edited file does not break startup."""
    storage.root.mkdir(parents=True, exist_ok=True)
    (storage.root / "mawaddah-auth.json").write_text("{not json", encoding="utf-8")
    assert storage.read("mawaddah-auth") == {}

    (storage.root / "mawaddah-auth.json").write_text("[1, 2]", encoding="utf-8")
    assert storage.read("mawaddah-auth") == {}


def test_remove_is_idempotent(storage: StateStorage) -> None:
    """Removing twice is fine."""
    storage.write("mawaddah-favorites", {"favorites": []})
    storage.remove("mawaddah-favorites")
    storage.remove("mawaddah-favorites")
    assert storage.read("mawaddah-favorites") == {}


def test_broadcast_skips_origin() -> None:
    """Subscribers other than the publisher receive the message."""
    channel = BroadcastChannel("test-skip-origin")
    me, other = object(), object()
    seen_me: list[dict] = []
    seen_other: list[dict] = []
    channel.subscribe(seen_me.append, owner=me)
    unsubscribe = channel.subscribe(seen_other.append, owner=other)

    channel.publish({"namespace": "mawaddah-auth"}, origin=me)
    assert seen_me == []
    assert seen_other == [{"namespace": "mawaddah-auth"}]

    unsubscribe()
    channel.publish({"namespace": "mawaddah-auth"}, origin=me)
    assert len(seen_other) == 1


def test_channel_shared_per_storage_root(tmp_path: Path) -> None:
    """Two storages on the same directory share one channel."""
    a = StateStorage(tmp_path / "shared")
    b = StateStorage(tmp_path / "shared")
    c = StateStorage(tmp_path / "other")
    assert BroadcastChannel.for_storage(a) is BroadcastChannel.for_storage(b)
    assert BroadcastChannel.for_storage(a) is not BroadcastChannel.for_storage(c)


def test_failing_listener_does_not_stop_others() -> None:
    """One broken subscriber does not starve the rest."""
    channel = BroadcastChannel("test-failing-listener")
    received: list[dict] = []

    def boom(_: dict) -> None:
        raise ValueError("listener bug")

    channel.subscribe(boom)
    channel.subscribe(received.append)
    channel.publish({"namespace": "x"})
    assert received == [{"namespace": "x"}]


def test_unserializable_write_is_logged_not_raised(storage: StateStorage) -> None:
    """A value JSON cannot encode leaves the previous file intact and no temp file."""
    storage.write("mawaddah-profile", {"profile": {"city": "Amman"}})
    storage.write("mawaddah-profile", {"profile": {"when": object()}})

    assert storage.read("mawaddah-profile") == {"profile": {"city": "Amman"}}
    assert list(storage.root.glob("*.tmp")) == []


def test_dropped_session_is_not_kept_alive_by_channel() -> None:
    """A session discarded without close() is released and pruned."""
    channel = BroadcastChannel("test-weak-listeners")
    kept = SessionStore(channel=channel)
    dropped = SessionStore(channel=channel)
    assert channel.listener_count == 2

    del dropped
    gc.collect()
    assert channel.listener_count == 1
    channel.publish({"namespace": "mawaddah-auth"})
    assert kept.is_ready
    kept.close()
    assert channel.listener_count == 0
