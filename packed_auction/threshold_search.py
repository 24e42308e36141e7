"""Binary-search clearing over the packed Fenwick store.

Two phases, priced separately by the cost model:

    search   O(log n) prefix queries to find the clearing price, i.e. the
             highest tick p with volume(t >= p) >= target.
    clear    walks ticks from the top of the book down to p, recovering each
             tick's standalone volume from two prefix queries and issuing a
             negative update until the target is filled. This phase is linear
             in the scanned range; it is the comparison point against the
             frontier model and is kept that way on purpose.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from .packed_store import PackedFenwickStore, QueryOperation, UpdateOperation

logger = logging.getLogger(__name__)

NO_CLEARING_PRICE: int = -1
"""Sentinel clearing price when the book holds less than the target."""


@dataclass(frozen=True)
class SearchResult:
    """Outcome of the search phase.

    Attributes:
        clearing_price: Highest tick satisfying the target, or -1.
        operations: Every query record issued, in issue order (empty when
            the book is too thin).
        total_volume: Book volume seen by the initial full-range query.
    """
    clearing_price: int
    operations: List[QueryOperation]
    total_volume: int = 0

    @property
    def found(self) -> bool:
        return self.clearing_price != NO_CLEARING_PRICE


@dataclass(frozen=True)
class TickFill:
    """Volume removed from one tick during the clear phase."""
    tick: int
    amount: int


@dataclass
class ClearResult:
    """Outcome of the clear (write) phase."""
    fills: List[TickFill] = field(default_factory=list)
    operations: List[UpdateOperation] = field(default_factory=list)
    scan_operations: List[QueryOperation] = field(default_factory=list)
    remaining_volume: int = 0

    @property
    def cleared_volume(self) -> int:
        return sum(fill.amount for fill in self.fills)


def find_clearing_price(store: PackedFenwickStore, target_volume: int) -> SearchResult:
    """Locate the clearing price for ``target_volume``.

    Args:
        store: Fenwick store holding per-tick bid volume.
        target_volume: Volume that must sit at or above the clearing price.

    Returns:
        ``SearchResult``; ``clearing_price == -1`` with no operations when
        the whole book holds less than ``target_volume``. A non-positive
        target is met everywhere and clears at the top tick, ``max_ticks - 1``.
    """
    max_ticks = store.max_ticks
    operations: List[QueryOperation] = []

    total = store.query(max_ticks - 1)
    total_volume = total.sum
    operations.extend(total.operations)

    if total_volume < target_volume:
        logger.info(
            "Insufficient volume: book=%d target=%d", total_volume, target_volume,
        )
        return SearchResult(NO_CLEARING_PRICE, [], total_volume)

    low, high = 0, max_ticks
    clearing_price = 0
    while low <= high:
        mid = (low + high) // 2
        if mid == 0:
            low = mid + 1
            continue

        below = store.query(mid - 1)
        operations.extend(below.operations)
        volume_above_mid = total_volume - below.sum

        if volume_above_mid >= target_volume:
            # only a non-positive target reaches mid == max_ticks
            clearing_price = min(mid, max_ticks - 1)
            low = mid + 1
        else:
            high = mid - 1

    logger.info(
        "Clearing price %d for target=%d (%d node reads)",
        clearing_price, target_volume, len(operations),
    )
    return SearchResult(clearing_price, operations, total_volume)


def clear_volume(
    store: PackedFenwickStore,
    clearing_price: int,
    target_volume: int,
) -> ClearResult:
    """Remove ``target_volume`` from the top of the book down to ``clearing_price``.

    Opens a new transaction on the store before writing.
    """
    store.begin_tx()
    result = ClearResult(remaining_volume=target_volume)

    for tick in range(store.max_ticks - 1, clearing_price - 1, -1):
        if result.remaining_volume <= 0:
            break

        upper = store.query(tick)
        lower = store.query(tick - 1)
        result.scan_operations.extend(upper.operations)
        result.scan_operations.extend(lower.operations)
        volume_at_tick = upper.sum - lower.sum
        if volume_at_tick <= 0:
            continue

        take = min(result.remaining_volume, volume_at_tick)
        result.operations.extend(store.update(tick, -take))
        result.fills.append(TickFill(tick=tick, amount=take))
        result.remaining_volume -= take
        logger.debug("Cleared tick %d, removed %d", tick, take)

    logger.info(
        "Clear phase done: %d ticks filled, %d volume left",
        len(result.fills), result.remaining_volume,
    )
    return result
