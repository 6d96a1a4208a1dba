"""Reusable byte buffers in three size classes."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

__all__ = [
    "SMALL_BUFFER_SIZE",
    "MEDIUM_BUFFER_SIZE",
    "LARGE_BUFFER_SIZE",
    "BufferPool",
    "PooledBuffer",
    "acquire_small_buffer",
    "release_small_buffer",
    "acquire_medium_buffer",
    "release_medium_buffer",
    "acquire_large_buffer",
    "release_large_buffer",
    "acquire_buffer",
    "release_buffer",
    "acquire_pooled_buffer",
]

SMALL_BUFFER_SIZE = 256
MEDIUM_BUFFER_SIZE = 4096
LARGE_BUFFER_SIZE = 65536


class _Buffer(bytearray):
    """A bytearray that remembers the size class it was made for."""

    def __init__(self, capacity: int) -> None:
        super().__init__()
        self.capacity = capacity


class BufferPool:
    """A thread-safe free list of empty buffers of one size class."""

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._free: list[bytearray] = []
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        """The size class of the buffers this pool hands out."""
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._free)

    def acquire(self) -> bytearray:
        """Return an empty buffer, reusing a released one when possible."""
        with self._lock:
            if self._free:
                return self._free.pop()
        return _Buffer(self._capacity)

    def release(self, buf: bytearray | None) -> None:
        """Empty ``buf`` and keep it for reuse; ``None`` is ignored."""
        if buf is None:
            return
        buf.clear()
        with self._lock:
            self._free.append(buf)


_small_pool = BufferPool(SMALL_BUFFER_SIZE)
_medium_pool = BufferPool(MEDIUM_BUFFER_SIZE)
_large_pool = BufferPool(LARGE_BUFFER_SIZE)


def _pool_for(size: int) -> BufferPool:
    if size <= SMALL_BUFFER_SIZE:
        return _small_pool
    if size <= MEDIUM_BUFFER_SIZE:
        return _medium_pool
    return _large_pool


def acquire_small_buffer() -> bytearray:
    """Get a buffer for small packets such as PINGREQ or PUBACK."""
    return _small_pool.acquire()


def release_small_buffer(buf: bytearray | None) -> None:
    """Return a small buffer for reuse."""
    _small_pool.release(buf)


def acquire_medium_buffer() -> bytearray:
    """Get a buffer for typical PUBLISH, SUBSCRIBE or CONNECT packets."""
    return _medium_pool.acquire()


def release_medium_buffer(buf: bytearray | None) -> None:
    """Return a medium buffer for reuse."""
    _medium_pool.release(buf)


def acquire_large_buffer() -> bytearray:
    """Get a buffer for large PUBLISH payloads."""
    return _large_pool.acquire()


def release_large_buffer(buf: bytearray | None) -> None:
    """Return a large buffer for reuse."""
    _large_pool.release(buf)


def acquire_buffer(size_hint: int) -> bytearray:
    """Get a buffer from the smallest size class that fits ``size_hint``."""
    return _pool_for(size_hint).acquire()


def release_buffer(buf: bytearray | None) -> None:
    """Return a buffer to the pool matching its size class."""
    if buf is None:
        return
    capacity = getattr(buf, "capacity", len(buf))
    _pool_for(capacity).release(buf)


@dataclass
class PooledBuffer:
    """A buffer that knows which pool it came from."""

    data: bytearray
    _pool: BufferPool | None = field(default=None, repr=False)

    def release(self) -> None:
        """Return the buffer to its pool; later calls do nothing."""
        if self._pool is not None:
            self._pool.release(self.data)
            self._pool = None


def acquire_pooled_buffer(size_hint: int) -> PooledBuffer:
    """Get a buffer for ``size_hint`` bytes that can release itself."""
    pool = _pool_for(size_hint)
    return PooledBuffer(pool.acquire(), pool)