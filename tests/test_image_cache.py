import numpy as np

from pixelcraft.image_cache import EvictionPolicy, ImageCache, get_global_cache

BIG = 400_000


def key(i):
    return np.full(16, i, dtype=np.uint8)


def value(i, size=BIG):
    return np.full(size, i, dtype=np.uint8)


def test_put_get_round_trip():
    cache = ImageCache(1)
    stored = np.arange(12, dtype=np.uint8).reshape(3, 4)
    cache.put(key(1), stored)
    got = cache.get(key(1).copy())
    assert np.array_equal(got, stored)
    assert cache.current_size == stored.nbytes


def test_miss_returns_none_and_hit_rate():
    cache = ImageCache(1)
    assert cache.hit_rate == 0.0
    assert cache.get(key(1)) is None
    cache.put(key(1), value(1, 10))
    cache.get(key(1))
    assert cache.hit_rate == 0.5


def test_max_size_in_bytes():
    cache = ImageCache(2)
    assert cache.max_size == 2 * 1024 * 1024


def test_value_larger_than_cache_is_skipped():
    cache = ImageCache(1)
    cache.put(key(1), value(1, 2 * 1024 * 1024))
    assert cache.get(key(1)) is None
    assert cache.current_size == 0


def test_updating_key_replaces_value():
    cache = ImageCache(1)
    cache.put(key(1), value(1, 100))
    cache.put(key(1), value(2, 50))
    assert cache.current_size == 50
    assert np.array_equal(cache.get(key(1)), value(2, 50))
    assert len(cache) == 1


def test_lru_evicts_least_recently_used():
    cache = ImageCache(1, EvictionPolicy.LRU)
    cache.put(key(1), value(1))
    cache.put(key(2), value(2))
    cache.get(key(1))
    cache.put(key(3), value(3))
    assert cache.get(key(2)) is None
    assert cache.get(key(1)) is not None and cache.get(key(3)) is not None


def test_lfu_evicts_least_frequently_used():
    cache = ImageCache(1, EvictionPolicy.LFU)
    cache.put(key(1), value(1))
    cache.put(key(2), value(2))
    cache.get(key(2))
    cache.get(key(2))
    cache.put(key(3), value(3))
    assert cache.get(key(1)) is None
    assert np.array_equal(cache.get(key(2)), value(2))


def test_fifo_evicts_first_inserted():
    cache = ImageCache(1, EvictionPolicy.FIFO)
    cache.put(key(1), value(1))
    cache.put(key(2), value(2))
    cache.get(key(1))
    cache.put(key(3), value(3))
    assert cache.get(key(1)) is None
    assert np.array_equal(cache.get(key(2)), value(2))


def test_policy_can_be_changed():
    cache = ImageCache(1)
    cache.policy = EvictionPolicy.FIFO
    assert cache.policy is EvictionPolicy.FIFO


def test_size_never_exceeds_capacity():
    cache = ImageCache(1)
    for i in range(10):
        cache.put(key(i), value(i))
        assert cache.current_size <= cache.max_size


def test_clear_resets_everything():
    cache = ImageCache(1)
    cache.put(key(1), value(1, 10))
    cache.get(key(1))
    cache.clear()
    assert cache.current_size == 0
    assert cache.hit_rate == 0.0
    assert cache.get(key(1)) is None


def test_resize_evicts_to_fit():
    cache = ImageCache(2)
    cache.put(key(1), value(1))
    cache.put(key(2), value(2))
    cache.put(key(3), value(3))
    cache.resize(1)
    assert cache.current_size <= cache.max_size
    assert len(cache) == 2


def test_returned_value_does_not_alias_cache():
    cache = ImageCache(1)
    cache.put(key(1), value(1, 10))
    got = cache.get(key(1))
    got[:] = 0
    assert np.array_equal(cache.get(key(1)), value(1, 10))


def test_global_cache_is_shared_while_alive():
    first = get_global_cache(5)
    second = get_global_cache(7)
    assert first is second
    assert first.max_size == 5 * 1024 * 1024