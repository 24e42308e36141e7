"""Tests for lowest-set-bit and Fenwick index arithmetic."""
from __future__ import annotations

from packed_auction.bitops import (
    count_trailing_zeros,
    fenwick_parent,
    fenwick_prev,
    lowest_set_bit,
)


def test_lowest_set_bit() -> None:
    """Isolates the lowest set bit of a 256-bit mask."""
    assert lowest_set_bit(0b101000) == 0b1000
    assert lowest_set_bit(1 << 255) == 1 << 255
    assert lowest_set_bit(0) == 0


def test_count_trailing_zeros() -> None:
    """Counts zeros below the lowest set bit."""
    assert count_trailing_zeros(1) == 0
    assert count_trailing_zeros(0b101000) == 3
    assert count_trailing_zeros(1 << 200 | 1 << 255) == 200


def test_count_trailing_zeros_empty_mask_is_none() -> None:
    """An empty mask has no set bit."""
    assert count_trailing_zeros(0) is None


def test_fenwick_index_walks() -> None:
    """Parent adds the low bit, prev strips it."""
    # 1-based index 6 -> 8 -> 16 on update, 7 -> 6 -> 4 -> 0 on query
    assert fenwick_parent(6) == 8
    assert fenwick_parent(8) == 16
    assert fenwick_prev(7) == 6
    assert fenwick_prev(6) == 4
    assert fenwick_prev(4) == 0
