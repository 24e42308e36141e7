"""Packed Fenwick store over a sparse, word-addressed persistent storage.

Four 64-bit Fenwick nodes share one 256-bit storage word. The store keeps a
sparse ``word_index -> packed word`` mapping (absent word == four zero
slots) and classifies every word access as cold or warm:

    read-seen    monotone for the lifetime of the store. A word read once is
                 warm for every later read, across transactions.
    write-dirty  transaction scoped. Cleared by ``begin_tx()``; a word
                 written earlier in the same transaction is warm.

The two sets are independent and must stay that way.

Fenwick math is 1-based: tick ``t`` lives at Fenwick index ``t + 1``.
Tick range is a caller precondition and is not checked here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Set, Tuple

from .bitops import fenwick_parent, fenwick_prev
from .word_codec import (
    LANES_PER_WORD,
    UINT64_MASK,
    Lanes,
    replace_lane,
    unpack_word,
    word_position,
)

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────
# Operation records
# ──────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SlotAccess:
    """One storage word access and its cold/warm classification."""
    word_index: int
    is_cold: bool


@dataclass(frozen=True)
class SlotRead:
    """Result of reading one logical slot."""
    value: int
    word_index: int
    is_cold: bool


@dataclass(frozen=True)
class UpdateOperation:
    """One Fenwick node touched by ``update``: a read then a write."""
    tick: int
    word_index: int
    reads: Tuple[SlotAccess, ...]
    writes: Tuple[SlotAccess, ...]


@dataclass(frozen=True)
class QueryOperation:
    """One Fenwick node touched by ``query``."""
    tick: int
    word_index: int
    is_cold: bool


@dataclass(frozen=True)
class QueryResult:
    """Prefix sum and the node reads that produced it."""
    sum: int
    operations: List[QueryOperation]


# ──────────────────────────────────────────────────────────────────────
# Store
# ──────────────────────────────────────────────────────────────────────

class PackedFenwickStore:
    """Fenwick tree over ``max_ticks`` slots packed four per storage word.

    Usage:
        store = PackedFenwickStore(16)
        store.update(5, 10)
        store.query(5).sum   # 10
        store.query(4).sum   # 0
    """

    def __init__(self, max_ticks: int) -> None:
        self.max_ticks = max_ticks
        self._words: Dict[int, int] = {}
        self._read_seen: Set[int] = set()
        self._write_dirty: Set[int] = set()

    # ────────────────────────────────────────────────────────────────
    # Slot access
    # ────────────────────────────────────────────────────────────────

    def read_slot(self, tick: int) -> SlotRead:
        """Read one slot; the first read of a word ever is cold."""
        word_index, lane = word_position(tick)
        word = self._words.get(word_index, 0)

        is_cold = word_index not in self._read_seen
        self._read_seen.add(word_index)

        return SlotRead(
            value=unpack_word(word)[lane],
            word_index=word_index,
            is_cold=is_cold,
        )

    def write_slot(self, tick: int, value: int) -> SlotAccess:
        """Overwrite one slot; the first write of a word per tx is cold."""
        word_index, lane = word_position(tick)
        word = self._words.get(word_index, 0)
        self._words[word_index] = replace_lane(word, lane, value)

        is_cold = word_index not in self._write_dirty
        self._write_dirty.add(word_index)

        return SlotAccess(word_index=word_index, is_cold=is_cold)

    def begin_tx(self) -> None:
        """Start a new transaction: writes become cold again, reads do not."""
        self._write_dirty.clear()

    # ────────────────────────────────────────────────────────────────
    # Fenwick operations
    # ────────────────────────────────────────────────────────────────

    def update(self, tick: int, delta: int) -> List[UpdateOperation]:
        """Add ``delta`` to ``tick`` and propagate to every covering node.

        Node arithmetic is unsigned 64-bit with wraparound, so a negative
        ``delta`` subtracts. Callers must not drive a node below zero.

        Returns:
            One record per node, in root-ward propagation order.
        """
        operations: List[UpdateOperation] = []
        idx = tick + 1
        while idx <= self.max_ticks:
            read = self.read_slot(idx - 1)
            write = self.write_slot(idx - 1, (read.value + delta) & UINT64_MASK)
            operations.append(UpdateOperation(
                tick=idx - 1,
                word_index=read.word_index,
                reads=(SlotAccess(read.word_index, read.is_cold),),
                writes=(write,),
            ))
            idx = fenwick_parent(idx)

        logger.debug(
            "update tick=%d delta=%d touched %d nodes", tick, delta, len(operations),
        )
        return operations

    def query(self, tick: int) -> QueryResult:
        """Prefix sum over ticks ``0..tick`` inclusive. ``query(-1)`` is empty."""
        total = 0
        operations: List[QueryOperation] = []
        idx = tick + 1
        while idx > 0:
            read = self.read_slot(idx - 1)
            total += read.value
            operations.append(QueryOperation(
                tick=idx - 1, word_index=read.word_index, is_cold=read.is_cold,
            ))
            idx = fenwick_prev(idx)
        return QueryResult(sum=total, operations=operations)

    def volume_at(self, tick: int) -> int:
        """Standalone volume at one tick (two prefix queries)."""
        return self.query(tick).sum - self.query(tick - 1).sum

    # ────────────────────────────────────────────────────────────────
    # Inspection (no access bookkeeping)
    # ────────────────────────────────────────────────────────────────

    def words(self) -> Dict[int, int]:
        """Copy of the materialized ``word_index -> packed word`` mapping."""
        return dict(self._words)

    def lanes(self, word_index: int) -> Lanes:
        """Unpacked node values of one word (zeros when absent)."""
        return unpack_word(self._words.get(word_index, 0))

    def active_ticks(self) -> List[int]:
        """Ticks whose Fenwick node currently holds a non-zero value."""
        ticks: List[int] = []
        for word_index in sorted(self._words):
            for lane, value in enumerate(unpack_word(self._words[word_index])):
                if value:
                    ticks.append(word_index * LANES_PER_WORD + lane)
        return ticks

    def is_read_warm(self, word_index: int) -> bool:
        return word_index in self._read_seen

    def is_write_dirty(self, word_index: int) -> bool:
        return word_index in self._write_dirty
