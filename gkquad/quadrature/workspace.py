"""Bounded interval store for adaptive quadrature.

An ``IntervalStore`` holds the live subintervals of one integration run in a
float64 arena (one row each for lower bound, upper bound, estimate and error)
indexed by integer slots, together with a list of slots ordered by descending
error. The arena grows on demand up to a fixed capacity and keeps its buffers
across ``reset()`` so that a pooled store reaches a steady state without
reallocating.

Classes:
    SubInterval: Immutable record of one piece of the integration domain
    IntervalStore: Capacity-bounded store ordered by error

Functions:
    pairwise_sum: Magnitude-ordered pairwise summation of a 1-D tensor
"""

from bisect import bisect_right
from collections.abc import Iterator
from dataclasses import dataclass

import torch
from torch import Tensor

from .config import DEFAULT_LIMIT
from .exceptions import WorkspaceInvariantError

_LOWER, _UPPER, _ESTIMATE, _ERROR = range(4)


@dataclass(frozen=True)
class SubInterval:
    """A subinterval of the domain with its local estimate and error.

    Attributes:
        lower: Left endpoint
        upper: Right endpoint
        estimate: Integral estimate over [lower, upper]
        error: Absolute error estimate for ``estimate``
    """

    lower: float
    upper: float
    estimate: float
    error: float

    @property
    def midpoint(self) -> float:
        return 0.5 * (self.lower + self.upper)

    def bisect(self) -> tuple[tuple[float, float], tuple[float, float]]:
        """Split at the midpoint into two bound pairs of equal width."""
        mid = self.midpoint
        return (self.lower, mid), (mid, self.upper)


def pairwise_sum(values: Tensor) -> float:
    """Sum values smallest-magnitude first, combining them pairwise.

    Values are sorted by ascending magnitude and adjacent pairs are added
    level by level, so small contributions are accumulated together before
    they meet the large ones.

    Args:
        values: 1-D float64 tensor

    Returns:
        The sum as a Python float (0.0 for an empty tensor)
    """
    if values.numel() == 0:
        return 0.0

    _, indices = torch.sort(values.abs(), stable=True)
    level = values[indices]
    while level.numel() > 1:
        if level.numel() % 2:
            level = torch.cat([level, level.new_zeros(1)])
        level = level[0::2] + level[1::2]
    return level.item()


class IntervalStore:
    """Capacity-bounded collection of subintervals ordered by error.

    Invariants maintained between public calls:
        - ``len(store) <= store.capacity``
        - ``order[0]`` is the slot of the live entry with maximum error
        - among equal errors, the entry inserted first ranks first

    Attributes:
        capacity: Maximum number of live subintervals
    """

    def __init__(self, capacity: int = DEFAULT_LIMIT, initial_allocation: int = 64):
        """Initialize an empty store.

        Args:
            capacity: Maximum number of live subintervals
            initial_allocation: Slots allocated up front; the arena doubles on
                demand up to ``capacity``

        Raises:
            ValueError: If capacity or initial_allocation is not positive
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        if initial_allocation <= 0:
            raise ValueError(
                f"initial_allocation must be positive, got {initial_allocation}"
            )

        self.capacity = capacity
        self._buffer = torch.zeros(
            4, min(capacity, initial_allocation), dtype=torch.float64
        )
        self._order: list[int] = []
        # error row mirrored by slot for ranking without tensor reads
        self._errors: list[float] = []
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(capacity={self.capacity}, size={self._size}, "
            f"allocated={self.allocated})"
        )

    @property
    def allocated(self) -> int:
        """Number of slots currently backed by the arena."""
        return self._buffer.shape[1]

    @property
    def is_full(self) -> bool:
        return self._size >= self.capacity

    def _reserve(self, slots: int) -> None:
        if slots > self.capacity:
            raise WorkspaceInvariantError(
                f"Interval store capacity {self.capacity} exceeded"
            )
        if slots <= self.allocated:
            return
        grown = torch.zeros(
            4, min(self.capacity, max(slots, 2 * self.allocated)), dtype=torch.float64
        )
        grown[:, : self.allocated] = self._buffer
        self._buffer = grown

    def _check_slot(self, slot: int) -> None:
        if not 0 <= slot < self._size:
            raise IndexError(f"Slot {slot} out of range for {self._size} entries")

    def _write(self, slot: int, entry: SubInterval) -> None:
        self._buffer[_LOWER, slot] = entry.lower
        self._buffer[_UPPER, slot] = entry.upper
        self._buffer[_ESTIMATE, slot] = entry.estimate
        self._buffer[_ERROR, slot] = entry.error
        if slot == len(self._errors):
            self._errors.append(entry.error)
        else:
            self._errors[slot] = entry.error

    def _rank_key(self, slot: int) -> float:
        return -self._errors[slot]

    def entry(self, slot: int) -> SubInterval:
        """Return the entry stored in ``slot``.

        Raises:
            IndexError: If the slot is not live
        """
        self._check_slot(slot)
        lower, upper, estimate, error = self._buffer[:, slot].tolist()
        return SubInterval(lower, upper, estimate, error)

    def ordered(self) -> Iterator[SubInterval]:
        """Yield live entries by descending error."""
        for slot in self._order:
            yield self.entry(slot)

    def seed(self, entry: SubInterval) -> None:
        """Start a run with a single entry covering the whole domain.

        Raises:
            WorkspaceInvariantError: If the store is not empty
        """
        if self._size:
            raise WorkspaceInvariantError(
                f"Cannot seed a store holding {self._size} entries"
            )
        self._reserve(1)
        self._write(0, entry)
        self._order.append(0)
        self._size = 1

    def peek_max(self) -> SubInterval:
        """Return the entry with the largest error.

        Raises:
            WorkspaceInvariantError: If the store is empty
        """
        if not self._size:
            raise WorkspaceInvariantError("peek_max called on an empty store")
        return self.entry(self._order[0])

    def replace_max(self, children: tuple[SubInterval, SubInterval]) -> None:
        """Replace the maximum-error entry with its two children.

        The left child takes over the parent's slot and the right child the
        next free slot. The larger-error child moves down from rank 0 to its
        place, shifting only the ranks it passes; the other child is inserted
        by binary search. Entries already present stay ahead of a new child
        with the same error, and the left child stays ahead of the right.

        Args:
            children: ``(left, right)`` halves of the current maximum

        Raises:
            WorkspaceInvariantError: If the store is empty or full
        """
        if not self._size:
            raise WorkspaceInvariantError("replace_max called on an empty store")
        if self.is_full:
            raise WorkspaceInvariantError(
                f"Interval store capacity {self.capacity} exceeded"
            )

        left, right = children
        parent_slot = self._order[0]
        new_slot = self._size
        self._reserve(new_slot + 1)
        self._write(parent_slot, left)
        self._write(new_slot, right)
        self._size += 1

        if right.error > left.error:
            self._sink_head(new_slot)
            self._insert(parent_slot)
        else:
            self._sink_head(parent_slot)
            self._insert(new_slot)

    def _sink_head(self, slot: int) -> None:
        order = self._order
        stop = bisect_right(order, self._rank_key(slot), lo=1, key=self._rank_key)
        rank = stop - 1
        order[0:rank] = order[1 : rank + 1]
        order[rank] = slot

    def _insert(self, slot: int) -> None:
        position = bisect_right(self._order, self._rank_key(slot), key=self._rank_key)
        self._order.insert(position, slot)

    def sum_all(self) -> tuple[float, float]:
        """Re-sum estimates and errors of all live entries.

        Returns:
            ``(result, abserr)`` computed with ``pairwise_sum``
        """
        live = self._buffer[:, : self._size]
        return pairwise_sum(live[_ESTIMATE]), pairwise_sum(live[_ERROR])

    def reset(self) -> None:
        """Drop all entries while keeping the allocated arena."""
        self._order.clear()
        self._errors.clear()
        self._size = 0

    def release_buffers(self) -> None:
        """Free the arena. The store must not be used afterwards."""
        self.reset()
        self._buffer = torch.zeros(4, 0, dtype=torch.float64)
