"""Thread-safe content-keyed cache of processed images."""

from __future__ import annotations

import enum
import hashlib
import itertools
import threading
import weakref
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

_MB = 1024 * 1024


class EvictionPolicy(enum.Enum):
    LRU = "lru"
    LFU = "lfu"
    FIFO = "fifo"


@dataclass
class _Entry:
    value: np.ndarray
    size: int
    last_access: int
    access_count: int


def _content_hash(array: np.ndarray) -> int:
    data = np.ascontiguousarray(array).tobytes()
    return int.from_bytes(hashlib.blake2b(data, digest_size=8).digest(), "little")


class ImageCache:
    """Caches arrays keyed by the content of a source array."""

    def __init__(self, max_size_mb: int, policy: EvictionPolicy = EvictionPolicy.LRU) -> None:
        self._max_size = max_size_mb * _MB
        self._policy = policy
        self._entries: Dict[int, _Entry] = {}
        self._current_size = 0
        self._hits = 0
        self._misses = 0
        self._clock = itertools.count()
        self._lock = threading.Lock()

    def get(self, key: np.ndarray) -> Optional[np.ndarray]:
        """Cached value for an array with the same content as key, or None."""
        digest = _content_hash(key)
        with self._lock:
            entry = self._entries.get(digest)
            if entry is None:
                self._misses += 1
                return None
            entry.last_access = next(self._clock)
            entry.access_count += 1
            self._hits += 1
            return entry.value.copy()

    def put(self, key: np.ndarray, value: np.ndarray) -> None:
        """Store value under key's content; values larger than the cache are skipped."""
        new_size = value.nbytes
        if new_size > self._max_size:
            return
        digest = _content_hash(key)
        with self._lock:
            entry = self._entries.get(digest)
            if entry is not None:
                self._current_size += new_size - entry.size
                entry.value = value.copy()
                entry.size = new_size
                entry.last_access = next(self._clock)
                entry.access_count += 1
                return
            self._make_space(new_size)
            self._entries[digest] = _Entry(value.copy(), new_size, next(self._clock), 1)
            self._current_size += new_size

    def _make_space(self, required: int) -> None:
        while self._entries and self._current_size + required > self._max_size:
            if self._policy is EvictionPolicy.LRU:
                victim = min(self._entries, key=lambda d: self._entries[d].last_access)
            elif self._policy is EvictionPolicy.LFU:
                victim = min(self._entries, key=lambda d: self._entries[d].access_count)
            else:
                victim = next(iter(self._entries))
            self._current_size -= self._entries.pop(victim).size

    def clear(self) -> None:
        """Drop every entry and reset the statistics."""
        with self._lock:
            self._entries.clear()
            self._current_size = 0
            self._hits = 0
            self._misses = 0

    @property
    def policy(self) -> EvictionPolicy:
        return self._policy

    @policy.setter
    def policy(self, policy: EvictionPolicy) -> None:
        with self._lock:
            self._policy = policy

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups that hit, 0.0 when there were none."""
        total = self._hits + self._misses
        return self._hits / total if total else 0.0

    @property
    def current_size(self) -> int:
        """Bytes currently held."""
        return self._current_size

    @property
    def max_size(self) -> int:
        """Capacity in bytes."""
        return self._max_size

    def resize(self, size_mb: int) -> None:
        """Change the capacity, evicting entries that no longer fit."""
        with self._lock:
            self._max_size = size_mb * _MB
            if self._current_size > self._max_size:
                self._make_space(0)

    def __len__(self) -> int:
        return len(self._entries)


_global_lock = threading.Lock()
_global_ref: Optional["weakref.ReferenceType[ImageCache]"] = None


def get_global_cache(size_mb: int = 100) -> ImageCache:
    """The shared cache, created with size_mb when no live instance exists."""
    global _global_ref
    with _global_lock:
        cache = _global_ref() if _global_ref is not None else None
        if cache is None:
            cache = ImageCache(size_mb)
            _global_ref = weakref.ref(cache)
        return cache