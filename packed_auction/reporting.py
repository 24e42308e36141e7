"""Tabular views of auction state for scripts and notebooks.

Everything here reads state through public accessors and returns pandas
objects; nothing mutates a store or a backend.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

import pandas as pd

from .bitops import fenwick_parent
from .cost_model import DEFAULT_GAS_SCHEDULE, GasSchedule, cost_of_update
from .models.frontier_auction import BLOCK_BITS, FrontierAuction
from .packed_store import PackedFenwickStore
from .word_codec import LANES_PER_WORD, word_position

SLOT_BYTES: int = 32


@dataclass(frozen=True)
class UpdatePath:
    """Fenwick nodes (0-based ticks) and words an update to ``tick`` touches."""
    tick: int
    ticks: List[int]
    words: List[int]

    @property
    def distinct_words(self) -> List[int]:
        return sorted(set(self.words))


def update_path(tick: int, max_ticks: int) -> UpdatePath:
    """Compute an update path from index arithmetic alone (no store access)."""
    ticks: List[int] = []
    idx = tick + 1
    while idx <= max_ticks:
        ticks.append(idx - 1)
        idx = fenwick_parent(idx)
    words = [word_position(t)[0] for t in ticks]
    return UpdatePath(tick=tick, ticks=ticks, words=words)


def memory_layout_frame(store: PackedFenwickStore) -> pd.DataFrame:
    """One row per materialized word: ``word_index, first_tick, lane_0 .. lane_3``."""
    rows = []
    for word_index in sorted(store.words()):
        row = {"word_index": word_index, "first_tick": word_index * LANES_PER_WORD}
        for lane, value in enumerate(store.lanes(word_index)):
            row[f"lane_{lane}"] = value
        rows.append(row)
    columns = ["word_index", "first_tick"] + [f"lane_{i}" for i in range(LANES_PER_WORD)]
    return pd.DataFrame(rows, columns=columns)


def storage_comparison(
    max_ticks: int,
    tick: int,
    gas: GasSchedule = DEFAULT_GAS_SCHEDULE,
) -> pd.DataFrame:
    """Compare one-slot-per-node against four-nodes-per-word storage.

    ``update_gas`` is the price of a first update to ``tick`` on an empty
    book: every node is a cold read and a cold write in the standard
    layout, while the packed layout is priced by actually running the
    update on a fresh store.
    """
    path = update_path(tick, max_ticks)

    packed_store = PackedFenwickStore(max_ticks)
    packed_gas = cost_of_update(packed_store.update(tick, 1), gas).total_gas
    standard_gas = len(path.ticks) * (gas.cold_read + gas.cold_write)

    packed_slots = -(-max_ticks // LANES_PER_WORD)
    return pd.DataFrame(
        [
            {
                "layout": "standard",
                "slots": max_ticks,
                "bytes": max_ticks * SLOT_BYTES,
                "nodes_touched": len(path.ticks),
                "words_touched": len(path.ticks),
                "update_gas": standard_gas,
            },
            {
                "layout": "packed",
                "slots": packed_slots,
                "bytes": packed_slots * SLOT_BYTES,
                "nodes_touched": len(path.ticks),
                "words_touched": len(path.distinct_words),
                "update_gas": packed_gas,
            },
        ]
    )


def frontier_state_frame(auction: FrontierAuction) -> pd.DataFrame:
    """Resting volume per tick with its presence block and frontier flag."""
    state = auction.get_state()
    rows = [
        {
            "tick": tick,
            "volume": volume,
            "block": tick // BLOCK_BITS,
            "at_frontier": tick == state["p_star"],
        }
        for tick, volume in state["volume"].items()
    ]
    return pd.DataFrame(rows, columns=["tick", "volume", "block", "at_frontier"])
