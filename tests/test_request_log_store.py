"""Unit tests for RequestLogStore."""

import pytest

from rategate.infrastructure.request_log_store import RequestLogStore


def test_prune_never_creates(store):
    assert store.prune("missing", 100) is None
    assert "missing" not in store


def test_prune_drops_timestamps_at_or_before_window_start(store):
    for t in (10, 20, 30, 40):
        store.append("k", t)

    log = store.prune("k", 20)

    assert list(log) == [30, 40]


def test_delete_if_empty(store):
    store.append("k", 1)
    assert store.delete_if_empty("k") is False

    store.prune("k", 1)
    assert store.delete_if_empty("k") is True
    assert "k" not in store


def test_delete_reports_presence(store):
    store.append("k", 1)

    assert store.delete("k") is True
    assert store.delete("k") is False


def test_counts(store):
    store.append("a", 1)
    store.append("a", 2)
    store.append("b", 3)

    assert len(store) == 2
    assert store.total_timestamps() == 3
    assert sorted(store.keys()) == ["a", "b"]


def test_max_keys_evicts_least_recently_admitted():
    store = RequestLogStore(max_keys=2)
    store.append("a", 1)
    store.append("b", 2)
    store.append("a", 3)

    store.append("c", 4)

    assert "b" not in store
    assert list(store.get("a")) == [1, 3]
    assert list(store.get("c")) == [4]


def test_max_keys_must_be_positive():
    with pytest.raises(ValueError):
        RequestLogStore(max_keys=0)


def test_lock_is_reentrant(store):
    with store.locked():
        with store.locked():
            store.append("k", 1)

    assert len(store) == 1
