import threading

import pytest

from couponsys.cache import LRUCache


def test_set_then_get():
    cache = LRUCache()
    cache.set("applicable", [1, 2])
    assert cache.get("applicable") == [1, 2]
    assert "applicable" in cache


def test_get_missing_returns_default():
    cache = LRUCache()
    marker = object()
    assert cache.get("missing") is None
    assert cache.get("missing", marker) is marker
    assert "missing" not in cache


def test_falsy_values_are_stored():
    cache = LRUCache()
    cache.set("validate", False)
    assert cache.get("validate", "absent") is False


def test_delete_removes_entry():
    cache = LRUCache()
    cache.set("a", 1)
    cache.delete("a")
    assert "a" not in cache
    assert len(cache) == 0


def test_delete_missing_is_harmless():
    cache = LRUCache()
    cache.set("a", 1)
    cache.delete("b")
    assert len(cache) == 1


def test_default_capacity_is_one_hundred():
    cache = LRUCache()
    for n in range(150):
        cache.set(n, n)
    assert len(cache) == 100
    assert 49 not in cache
    assert 50 in cache
    assert 149 in cache


def test_overwrite_refreshes_entry():
    cache = LRUCache(capacity=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 3)
    cache.set("c", 4)
    assert "b" not in cache
    assert cache.get("a") == 3
    assert cache.get("c") == 4


def test_overwrite_does_not_grow():
    cache = LRUCache(capacity=3)
    for _ in range(10):
        cache.set("same", 1)
    assert len(cache) == 1


@pytest.mark.parametrize("capacity", [0, -5])
def test_invalid_capacity(capacity):
    with pytest.raises(ValueError):
        LRUCache(capacity=capacity)


def test_concurrent_sets_respect_capacity():
    cache = LRUCache(capacity=10)

    def worker(offset):
        for n in range(100):
            cache.set((offset, n), n)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(cache) == 10