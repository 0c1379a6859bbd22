"""Reusable interval stores for repeated and nested integration.

Integration inside a numerical pipeline may run thousands of times, and the
integrand itself may integrate. A ``WorkspacePool`` keeps every store it has
created together with an in-use flag: ``acquire`` hands out a free store (or
creates one when none fits) and ``release`` returns it. A nested call made
while an outer call holds a store therefore always receives a different
store, and steady-state use allocates nothing.

Pools are not synchronized. Use one pool per thread, as ``default_pool()``
does, or guard ``acquire``/``release`` with a lock.

Classes:
    PoolEntry: A pooled store and its in-use flag
    WorkspacePool: Registry lending interval stores

Functions:
    default_pool: Per-thread pool used when callers do not pass their own
"""

import atexit
import logging
import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from .config import PoolConfig
from .exceptions import WorkspaceInvariantError
from .workspace import IntervalStore

logger = logging.getLogger(__name__)


@dataclass
class PoolEntry:
    """A pooled interval store.

    Attributes:
        store: The store lent to integration calls
        in_use: Whether a call currently holds the store
    """

    store: IntervalStore
    in_use: bool = False


class WorkspacePool:
    """Registry of reusable interval stores.

    Attributes:
        config: Sizing of stores created by the pool
    """

    def __init__(self, config: PoolConfig | None = None):
        self.config = config if config is not None else PoolConfig()
        self._entries: list[PoolEntry] = []
        self._closed = False

    def __len__(self) -> int:
        return len(self._entries)

    def __enter__(self) -> "WorkspacePool":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def num_in_use(self) -> int:
        return sum(entry.in_use for entry in self._entries)

    def capacities(self) -> list[int]:
        """Capacities of all pooled stores, in creation order."""
        return [entry.store.capacity for entry in self._entries]

    def acquire(self, min_capacity: int | None = None) -> IntervalStore:
        """Lend a reset store with at least ``min_capacity`` slots.

        Args:
            min_capacity: Required capacity; defaults to the pool's default

        Returns:
            A store marked in use until passed to ``release``

        Raises:
            ValueError: If min_capacity is not positive
            WorkspaceInvariantError: If the pool has been closed
        """
        if self._closed:
            raise WorkspaceInvariantError("Cannot acquire from a closed pool")
        if min_capacity is None:
            min_capacity = self.config.default_capacity
        if min_capacity <= 0:
            raise ValueError(f"min_capacity must be positive, got {min_capacity}")

        for entry in self._entries:
            if not entry.in_use and entry.store.capacity >= min_capacity:
                entry.in_use = True
                entry.store.reset()
                return entry.store

        store = IntervalStore(
            capacity=max(self.config.default_capacity, min_capacity),
            initial_allocation=self.config.initial_allocation,
        )
        self._entries.append(PoolEntry(store, in_use=True))
        logger.debug(
            f"Allocated interval store #{len(self._entries)} "
            f"with capacity {store.capacity}"
        )
        return store

    def release(self, store: IntervalStore) -> None:
        """Return a store obtained from ``acquire``.

        Raises:
            ValueError: If the store does not belong to this pool
            WorkspaceInvariantError: If the store is not currently in use
        """
        for entry in self._entries:
            if entry.store is store:
                if not entry.in_use:
                    raise WorkspaceInvariantError("Store released twice")
                entry.in_use = False
                return
        raise ValueError("Store does not belong to this pool")

    @contextmanager
    def workspace(self, min_capacity: int | None = None) -> Iterator[IntervalStore]:
        """Hold a store for the duration of a ``with`` block.

        Example:
            >>> with pool.workspace(100) as store:
            ...     engine.run(f, 0.0, 1.0, 1e-8, 0.0, store, limit=100)
        """
        store = self.acquire(min_capacity)
        try:
            yield store
        finally:
            self.release(store)

    def close(self) -> None:
        """Free every pooled store. Safe to call more than once."""
        if self._closed:
            return
        if self.num_in_use:
            logger.warning(f"Closing pool with {self.num_in_use} store(s) in use")
        for entry in self._entries:
            entry.store.release_buffers()
        self._entries.clear()
        self._closed = True


_local = threading.local()
_default_pools: "weakref.WeakSet[WorkspacePool]" = weakref.WeakSet()


@atexit.register
def _close_default_pools() -> None:
    for pool in list(_default_pools):
        pool.close()


def default_pool() -> WorkspacePool:
    """Return the calling thread's pool, creating it on first use.

    The pool lives as long as its thread; pools still alive at interpreter
    exit are closed then.
    """
    pool = getattr(_local, "pool", None)
    if pool is None or pool.closed:
        pool = WorkspacePool()
        _local.pool = pool
        _default_pools.add(pool)
    return pool
