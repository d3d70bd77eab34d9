"""Unit tests for cache/store.py -- the SQLite remember-me store.

Covers:
- set() / get() / exists() / delete() round the value through JSON
- an entry is readable right up to its TTL and gone from that instant on
- expired entries are deleted on read and by purge_expired(); the on-read
  delete leaves a concurrently re-set entry alone
- set() on an existing key replaces value and expiry
- bad TTLs and unopenable databases are rejected
"""

import pytest

from cache.store import RememberStore
from core.errors import StoreUnavailable


def test_set_then_get(remember_store: RememberStore):
    remember_store.set("k", 42, ttl_seconds=60)
    assert remember_store.get("k") == 42
    assert remember_store.exists("k") is True


def test_missing_key(remember_store: RememberStore):
    assert remember_store.get("missing") is None
    assert remember_store.exists("missing") is False


def test_entry_expires_at_ttl(remember_store: RememberStore, clock):
    remember_store.set("k", 42, ttl_seconds=60)
    clock.advance(59)
    assert remember_store.get("k") == 42
    clock.advance(1)
    assert remember_store.get("k") is None
    assert remember_store.exists("k") is False


def test_expired_entry_removed_on_read(remember_store: RememberStore, clock):
    remember_store.set("k", 42, ttl_seconds=10)
    clock.advance(11)
    assert remember_store.get("k") is None
    # Row is gone, not merely hidden: a delete finds nothing left.
    assert remember_store.delete("k") is False


def test_expiry_on_read_spares_concurrent_set(remember_store: RememberStore, clock, monkeypatch):
    remember_store.set("k", 1, ttl_seconds=10)
    clock.advance(11)
    read = remember_store._fetchone

    def read_then_rewrite(sql, params):
        row = read(sql, params)
        # Another request re-sets the key after the expired row was read.
        remember_store.set("k", 2, ttl_seconds=60)
        return row

    monkeypatch.setattr(remember_store, "_fetchone", read_then_rewrite)
    assert remember_store.get("k") is None
    monkeypatch.undo()
    assert remember_store.get("k") == 2


def test_set_replaces_value_and_expiry(remember_store: RememberStore, clock):
    remember_store.set("k", 1, ttl_seconds=10)
    clock.advance(5)
    remember_store.set("k", 2, ttl_seconds=10)
    clock.advance(8)
    assert remember_store.get("k") == 2


def test_delete(remember_store: RememberStore):
    remember_store.set("k", 42, ttl_seconds=60)
    assert remember_store.delete("k") is True
    assert remember_store.get("k") is None
    assert remember_store.delete("k") is False


def test_purge_expired(remember_store: RememberStore, clock):
    remember_store.set("old-1", 1, ttl_seconds=10)
    remember_store.set("old-2", 2, ttl_seconds=10)
    remember_store.set("fresh", 3, ttl_seconds=1000)
    clock.advance(100)
    assert remember_store.purge_expired() == 2
    assert remember_store.get("fresh") == 3


@pytest.mark.parametrize("ttl", [0, -1])
def test_non_positive_ttl_rejected(remember_store: RememberStore, ttl):
    with pytest.raises(ValueError):
        remember_store.set("k", 1, ttl_seconds=ttl)


def test_ping(remember_store: RememberStore):
    assert remember_store.ping() is True


def test_unopenable_database_raises_store_unavailable(tmp_path):
    with pytest.raises(StoreUnavailable) as exc_info:
        RememberStore(tmp_path / "does-not-exist" / "remember.db")
    assert exc_info.value.store == "remember"
