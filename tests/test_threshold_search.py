"""
Tests for binary-search clearing and the linear clear phase.

Verifies:
- Clearing price tightness: vol(t >= p) >= V and vol(t >= p+1) < V
- Insufficient-volume sentinel; a zero target stays inside the tick range
- Operation log contents and order
- Clear phase fills from the top of the book down
"""
from __future__ import annotations

from typing import Dict

import numpy as np
import pytest

from packed_auction.packed_store import PackedFenwickStore, QueryOperation
from packed_auction.threshold_search import (
    NO_CLEARING_PRICE,
    clear_volume,
    find_clearing_price,
)

BOOK: Dict[int, int] = {3: 10, 7: 20, 12: 5}


def _store_with(volumes: Dict[int, int], max_ticks: int = 16) -> PackedFenwickStore:
    store = PackedFenwickStore(max_ticks)
    for tick, amount in volumes.items():
        store.update(tick, amount)
    return store


def _volume_at_or_above(volumes: Dict[int, int], price: int) -> int:
    return sum(v for t, v in volumes.items() if t >= price)


class TestFindClearingPrice:
    """Highest price whose at-or-above volume covers the target."""

    @pytest.mark.parametrize(
        "target,expected",
        [(1, 12), (5, 12), (6, 7), (25, 7), (26, 3), (35, 3)],
    )
    def test_known_book(self, target, expected):
        """Book {3: 10, 7: 20, 12: 5} clears at the expected tick."""
        result = find_clearing_price(_store_with(BOOK), target)
        assert result.clearing_price == expected
        assert result.found
        assert result.total_volume == 35

    def test_tightness_on_random_books(self):
        """Clearing price is tight on random books."""
        rng = np.random.default_rng(11)
        max_ticks = 200
        for _ in range(20):
            ticks = rng.choice(max_ticks, size=15, replace=False)
            volumes = {int(t): int(rng.integers(1, 100)) for t in ticks}
            total = sum(volumes.values())
            store = _store_with(volumes, max_ticks)

            for target in (1, total // 3, total // 2, total):
                target = max(target, 1)
                p = find_clearing_price(store, target).clearing_price
                assert _volume_at_or_above(volumes, p) >= target
                assert _volume_at_or_above(volumes, p + 1) < target

    def test_insufficient_volume_returns_sentinel(self):
        """Target above the book returns -1 with no operations."""
        result = find_clearing_price(_store_with(BOOK), 36)
        assert result.clearing_price == NO_CLEARING_PRICE
        assert result.operations == []
        assert not result.found

    def test_empty_book(self):
        """An empty book cannot clear."""
        result = find_clearing_price(PackedFenwickStore(16), 1)
        assert result.clearing_price == -1

    def test_zero_target_clears_at_top_tick(self):
        """A zero target clears at max_ticks - 1, never past it."""
        result = find_clearing_price(_store_with(BOOK), 0)
        assert result.found
        assert result.clearing_price == 15

        empty = find_clearing_price(PackedFenwickStore(16), 0)
        assert empty.clearing_price == 15

    def test_operations_start_with_total_query(self):
        """Operation log begins with the total-volume query."""
        store = _store_with(BOOK)
        result = find_clearing_price(store, 25)

        # query(15): idx 16 -> single node at tick 15
        assert result.operations[0].tick == 15
        assert all(isinstance(op, QueryOperation) for op in result.operations)
        assert len(result.operations) > 1

    def test_search_is_logarithmic(self):
        """Node reads stay within log2(n) squared."""
        max_ticks = 1024
        store = _store_with({1000: 5, 10: 5}, max_ticks)
        result = find_clearing_price(store, 6)
        # at most log2(n)+1 search steps, each at most log2(n)+1 node reads
        assert len(result.operations) <= 12 * 12


class TestClearVolume:
    """Top-down linear scan applying negative updates."""

    def test_full_clear_of_upper_ticks(self):
        """Clearing 25 empties ticks 12 and 7."""
        store = _store_with(BOOK)
        cleared = clear_volume(store, 7, 25)

        assert [(f.tick, f.amount) for f in cleared.fills] == [(12, 5), (7, 20)]
        assert cleared.remaining_volume == 0
        assert cleared.cleared_volume == 25
        assert store.volume_at(12) == 0
        assert store.volume_at(7) == 0
        assert store.volume_at(3) == 10
        assert store.query(15).sum == 10

    def test_partial_fill_at_clearing_price(self):
        """The clearing tick is only partly filled."""
        store = _store_with(BOOK)
        price = find_clearing_price(store, 22).clearing_price
        assert price == 7

        cleared = clear_volume(store, price, 22)
        assert [(f.tick, f.amount) for f in cleared.fills] == [(12, 5), (7, 17)]
        assert store.volume_at(7) == 3

    def test_opens_new_transaction(self):
        """Clear phase starts a fresh write transaction."""
        store = _store_with(BOOK)
        cleared = clear_volume(store, 12, 5)
        # first write in the clear tx is cold even though word 3 was written before
        assert cleared.operations[0].writes[0].is_cold is True

    def test_scan_covers_every_tick_down_to_price(self):
        """Every tick from the top down to the price is scanned."""
        store = _store_with(BOOK)
        cleared = clear_volume(store, 7, 25)
        scanned = {op.tick for op in cleared.scan_operations}
        # query(t) always starts at node t, so each scanned tick shows up
        assert set(range(7, 16)) <= scanned

    def test_zero_target_fills_nothing(self):
        """A zero target leaves the book unchanged."""
        store = _store_with(BOOK)
        cleared = clear_volume(store, find_clearing_price(store, 0).clearing_price, 0)
        assert cleared.fills == []
        assert store.query(15).sum == 35
