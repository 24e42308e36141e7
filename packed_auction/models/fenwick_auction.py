"""Auction backend storing bid volume in the packed Fenwick store."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from ..cost_model import (
    DEFAULT_GAS_SCHEDULE,
    CostResult,
    GasSchedule,
    cost_of_query,
    cost_of_update,
)
from ..packed_store import PackedFenwickStore, QueryResult, UpdateOperation
from ..threshold_search import (
    ClearResult,
    SearchResult,
    clear_volume,
    find_clearing_price,
)
from .base import BidResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FenwickBidSummary:
    tick: int
    amount: int
    operations: List[UpdateOperation]

    @property
    def words_touched(self) -> List[int]:
        """Distinct word indices in first-touch order."""
        return list(dict.fromkeys(op.word_index for op in self.operations))


@dataclass(frozen=True)
class ClearingOutcome:
    """Both clearing phases and their prices."""
    target_volume: int
    search: SearchResult
    search_cost: CostResult
    clear: ClearResult
    scan_cost: CostResult
    update_cost: CostResult

    @property
    def clearing_price(self) -> int:
        return self.search.clearing_price

    @property
    def write_phase_gas(self) -> int:
        return self.scan_cost.total_gas + self.update_cost.total_gas


class FenwickAuction:
    """Each bid is one transaction: ``begin_tx`` then a Fenwick update."""

    name = "fenwick"

    def __init__(self, max_ticks: int, gas: GasSchedule = DEFAULT_GAS_SCHEDULE) -> None:
        self.max_ticks = max_ticks
        self.gas = gas
        self.store = PackedFenwickStore(max_ticks)

    def bid(self, tick: int, amount: int) -> BidResult:
        self.store.begin_tx()
        operations = self.store.update(tick, amount)
        cost = cost_of_update(operations, self.gas)
        logger.debug("fenwick bid tick=%d amount=%d gas=%d", tick, amount, cost.total_gas)
        return BidResult(cost=cost, summary=FenwickBidSummary(tick, amount, operations))

    def clear(self, target_volume: int) -> ClearingOutcome:
        """Find the clearing price, then remove ``target_volume`` from the book.

        When the book is too thin the write phase is skipped and the
        outcome carries the ``-1`` sentinel with empty logs.
        """
        search = find_clearing_price(self.store, target_volume)
        search_cost = cost_of_query(search.operations, self.gas)

        if not search.found:
            return ClearingOutcome(
                target_volume=target_volume,
                search=search,
                search_cost=search_cost,
                clear=ClearResult(remaining_volume=target_volume),
                scan_cost=CostResult(),
                update_cost=CostResult(),
            )

        cleared = clear_volume(self.store, search.clearing_price, target_volume)
        return ClearingOutcome(
            target_volume=target_volume,
            search=search,
            search_cost=search_cost,
            clear=cleared,
            scan_cost=cost_of_query(cleared.scan_operations, self.gas),
            update_cost=cost_of_update(cleared.operations, self.gas),
        )

    # ────────────────────────────────────────────────────────────────
    # Passthroughs
    # ────────────────────────────────────────────────────────────────

    def query(self, tick: int) -> QueryResult:
        return self.store.query(tick)

    def update(self, tick: int, delta: int) -> List[UpdateOperation]:
        return self.store.update(tick, delta)

    def begin_tx(self) -> None:
        self.store.begin_tx()

    def get_state(self) -> Dict[str, Any]:
        return {
            "model": self.name,
            "max_ticks": self.max_ticks,
            "words": {w: self.store.lanes(w) for w in sorted(self.store.words())},
            "active_ticks": self.store.active_ticks(),
        }
