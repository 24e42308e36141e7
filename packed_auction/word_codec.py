"""Word codec: four uint64 lanes packed into one 256-bit storage word.

Layout (lane 0 in the low bits):
    bits   0..63   -> lane 0 (tick 4w + 0)
    bits  64..127  -> lane 1 (tick 4w + 1)
    bits 128..191  -> lane 2 (tick 4w + 2)
    bits 192..255  -> lane 3 (tick 4w + 3)

Every lane is masked to 64 bits before placement so an oversized value can
never bleed into its neighbour.
"""
from __future__ import annotations

from typing import Sequence, Tuple

LANE_BITS: int = 64
"""Width of one logical slot."""

LANES_PER_WORD: int = 4
"""Fixed packing factor: slots per 256-bit word."""

WORD_BITS: int = LANE_BITS * LANES_PER_WORD

UINT64_MASK: int = (1 << LANE_BITS) - 1
UINT256_MASK: int = (1 << WORD_BITS) - 1

Lanes = Tuple[int, int, int, int]


def word_position(tick: int) -> Tuple[int, int]:
    """Return ``(word_index, lane)`` for a 0-based tick."""
    return tick // LANES_PER_WORD, tick % LANES_PER_WORD


def pack_word(lanes: Sequence[int]) -> int:
    """Pack up to four lane values into a single word.

    Missing trailing lanes are treated as zero.

    Args:
        lanes: Lane values, lane 0 first.

    Returns:
        Packed 256-bit integer.
    """
    packed = 0
    for i in range(LANES_PER_WORD):
        value = lanes[i] if i < len(lanes) else 0
        packed |= (value & UINT64_MASK) << (i * LANE_BITS)
    return packed


def unpack_word(word: int) -> Lanes:
    """Split a packed word into its four lane values."""
    return (
        (word >> (0 * LANE_BITS)) & UINT64_MASK,
        (word >> (1 * LANE_BITS)) & UINT64_MASK,
        (word >> (2 * LANE_BITS)) & UINT64_MASK,
        (word >> (3 * LANE_BITS)) & UINT64_MASK,
    )


def replace_lane(word: int, lane: int, value: int) -> int:
    """Return ``word`` with one lane overwritten (unpack, mutate, repack)."""
    lanes = list(unpack_word(word))
    lanes[lane] = value
    return pack_word(lanes)
