"""Bit tricks shared by the Fenwick index and the frontier bitmap.

Python ints are arbitrary precision but ``-x`` still behaves as an
infinitely sign-extended two's complement under ``&``, so ``x & -x``
isolates the lowest set bit exactly as it does on fixed-width words.
"""
from __future__ import annotations

from typing import Optional


def lowest_set_bit(mask: int) -> int:
    """Isolate the lowest set bit of ``mask`` (0 for an empty mask)."""
    return mask & -mask


def count_trailing_zeros(mask: int) -> Optional[int]:
    """Bit position of the lowest set bit, or ``None`` when ``mask == 0``."""
    if mask == 0:
        return None
    return lowest_set_bit(mask).bit_length() - 1


def fenwick_parent(idx: int) -> int:
    """Next 1-based Fenwick index on the update (root-ward) path."""
    return idx + (idx & -idx)


def fenwick_prev(idx: int) -> int:
    """Next 1-based Fenwick index on the prefix-query path."""
    return idx - (idx & -idx)
