"""Bid-stream simulator for comparing auction backends under one gas model.

The simulator only consumes backend return values; it never reaches into
backend state. Bid generation is seeded so runs are reproducible.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from .config import AuctionRuntimeConfig, with_model
from .models.base import AuctionModel, BidResult
from .models.factory import build_auction_model
from .models.fenwick_auction import ClearingOutcome, FenwickAuction, FenwickBidSummary
from .models.frontier_auction import FrontierBidSummary

logger = logging.getLogger(__name__)

DEFAULT_BASE_PRICE: int = 100
"""Bid anchor before any clearing price or frontier is known."""

AGGRESSIVE_PROBABILITY: float = 0.15
AGGRESSIVE_OFFSET_RANGE: Tuple[int, int] = (50, 1050)
STANDARD_OFFSET_RANGE: Tuple[int, int] = (0, 50)
AMOUNT_RANGE: Tuple[int, int] = (1, 51)
"""Half-open integer ranges, as passed to ``Generator.integers``."""


class BidGenerator:
    """Bids clustered near the last clearing price with occasional outliers."""

    def __init__(self, max_ticks: int, seed: Optional[int] = None) -> None:
        self.max_ticks = max_ticks
        self._rng = np.random.default_rng(seed)

    def next_bid(self, last_clearing_price: int = 0) -> Tuple[int, int]:
        base = last_clearing_price if last_clearing_price > 0 else DEFAULT_BASE_PRICE
        if self._rng.random() < AGGRESSIVE_PROBABILITY:
            offset = int(self._rng.integers(*AGGRESSIVE_OFFSET_RANGE))
        else:
            offset = int(self._rng.integers(*STANDARD_OFFSET_RANGE))
        tick = min(base + offset, self.max_ticks - 1)
        amount = int(self._rng.integers(*AMOUNT_RANGE))
        return tick, amount


@dataclass(frozen=True)
class BidRecord:
    index: int
    tick: int
    amount: int
    result: BidResult

    def to_row(self, model_name: str) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "bid": self.index,
            "model": model_name,
            "tick": self.tick,
            "amount": self.amount,
            "gas": self.result.total_gas,
            "words_touched": None,
            "clear_events": None,
            "p_star": None,
            "admitted": True,
        }
        summary = self.result.summary
        if isinstance(summary, FenwickBidSummary):
            row["words_touched"] = len(summary.words_touched)
        elif isinstance(summary, FrontierBidSummary):
            row["clear_events"] = len(summary.clear_events)
            row["p_star"] = summary.p_star
            row["admitted"] = summary.admitted
        return row


class AuctionSimulator:
    """Drives one backend with generated bids and optional clears.

    Bids are anchored on the last clearing price. For the frontier backend
    that price is the running frontier ``p_star``, so generated bids stay
    at or above it until the frontier is exhausted.
    """

    def __init__(self, model: AuctionModel, generator: BidGenerator) -> None:
        self.model = model
        self.generator = generator
        self.last_clearing_price = 0
        self._bids_placed = 0

    @classmethod
    def from_config(
        cls, config: AuctionRuntimeConfig, seed: Optional[int] = None,
    ) -> "AuctionSimulator":
        return cls(build_auction_model(config), BidGenerator(config.max_ticks, seed))

    def place_next_bid(self) -> BidRecord:
        tick, amount = self.generator.next_bid(self.last_clearing_price)
        result = self.model.bid(tick, amount)
        record = BidRecord(self._bids_placed, tick, amount, result)
        self._bids_placed += 1

        summary = result.summary
        if isinstance(summary, FrontierBidSummary):
            if not summary.admitted:
                logger.debug("bid %d at tick %d not admitted", record.index, tick)
            elif summary.p_star < self.model.max_ticks:
                self.last_clearing_price = summary.p_star
        return record

    def run(self, n_bids: int) -> pd.DataFrame:
        """Place ``n_bids`` bids and return one row per bid."""
        if n_bids <= 0:
            raise ValueError(f"n_bids must be > 0, got {n_bids}")
        rows: List[Dict[str, Any]] = [
            self.place_next_bid().to_row(self.model.name) for _ in range(n_bids)
        ]
        frame = pd.DataFrame(rows)
        logger.info(
            "%s: %d bids (%d admitted), total gas %d",
            self.model.name, n_bids, int(frame["admitted"].sum()), int(frame["gas"].sum()),
        )
        return frame

    def clear(self, target_volume: int) -> ClearingOutcome:
        """Run both clearing phases (packed Fenwick backend only)."""
        if not isinstance(self.model, FenwickAuction):
            raise ValueError(
                f"Clearing is only available for the fenwick model, not {self.model.name!r}"
            )
        outcome = self.model.clear(target_volume)
        if outcome.search.found:
            self.last_clearing_price = outcome.clearing_price
        else:
            logger.warning(
                "Not enough volume in the book to clear %d (book=%d)",
                target_volume, outcome.search.total_volume,
            )
        return outcome


def compare_models(
    config: AuctionRuntimeConfig,
    n_bids: int,
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """Drive every backend with an identically seeded bid generator.

    Gas statistics cover admitted bids only; a bid the frontier rejects
    costs nothing and would otherwise deflate the mean.

    Returns:
        One row per model with bid and admitted counts plus total, mean and
        max gas per admitted bid.
    """
    rows = []
    for model_name in ("fenwick", "frontier"):
        model = build_auction_model(with_model(config, model_name))
        simulator = AuctionSimulator(model, BidGenerator(config.max_ticks, seed))
        frame = simulator.run(n_bids)
        gas = frame.loc[frame["admitted"], "gas"]
        rows.append({
            "model": model_name,
            "bids": n_bids,
            "admitted": int(frame["admitted"].sum()),
            "total_gas": int(gas.sum()),
            "mean_gas": float(gas.mean()) if len(gas) else 0.0,
            "max_gas": int(gas.max()) if len(gas) else 0,
        })
    return pd.DataFrame(rows)

