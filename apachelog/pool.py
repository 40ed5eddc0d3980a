# -*- coding: utf-8 -*-
"""Free-lists for the objects needed once per request: the line
buffer, the :class:`~apachelog.logctx.LogCtx`, and the response
observer.

An item is either checked out, owned by exactly one request, or
available, owned by the pool. Only the free-list itself is shared, so
only it is locked.
"""

import io
from threading import Lock

from apachelog.context import get_context


class FreeList(object):
    """A simple, thread-safe pool of reusable objects.

    Args:
        factory (callable): Called with no arguments to allocate a new
            item when none are available.
        reset (callable): Optionally called with an item as it is
            released, to return it to a zero state.
        limit (int): The maximum number of available items kept
            around. Released items beyond this are dropped. Defaults
            to no limit.
    """
    def __init__(self, factory, reset=None, limit=None):
        if not callable(factory):
            raise TypeError('expected callable factory, not %r' % factory)
        if reset is not None and not callable(reset):
            raise TypeError('expected callable reset or None, not %r' % reset)
        self.factory = factory
        self.reset = reset
        self.limit = limit
        self.allocated = 0
        self._items = []
        self._lock = Lock()

    @property
    def available(self):
        return len(self._items)

    def acquire(self):
        with self._lock:
            if self._items:
                return self._items.pop()
            self.allocated += 1
        return self.factory()

    def release(self, item):
        if self.reset is not None:
            self.reset(item)
        with self._lock:
            if self.limit is None or len(self._items) < self.limit:
                self._items.append(item)
        return

    def __repr__(self):
        cn = self.__class__.__name__
        return ('<%s factory=%r available=%r allocated=%r>'
                % (cn, self.factory, self.available, self.allocated))


def reset_buffer(buf):
    buf.seek(0)
    buf.truncate()


_POOLS = {}
_POOLS_LOCK = Lock()


def get_pool(name, factory, reset=None):
    """Get the process-wide FreeList registered as *name*, creating it
    on first use with the current context's pool limit. Concurrent
    first callers all get the same pool.
    """
    try:
        return _POOLS[name]
    except KeyError:
        pass
    with _POOLS_LOCK:
        if name not in _POOLS:
            _POOLS[name] = FreeList(factory, reset,
                                    limit=get_context().pool_limit)
        return _POOLS[name]


def get_buffer_pool():
    return get_pool('buffer', io.BytesIO, reset_buffer)


def acquire_buffer():
    return get_buffer_pool().acquire()


def release_buffer(buf):
    get_buffer_pool().release(buf)
