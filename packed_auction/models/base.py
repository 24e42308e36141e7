"""Capability shared by the auction backends.

Backends do not inherit from a common base and share no state; anything
that provides ``bid`` and ``get_state`` can be driven by the simulator.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Protocol, runtime_checkable

from ..cost_model import CostResult


@dataclass(frozen=True)
class BidResult:
    """Gas breakdown of a bid plus a backend-specific summary."""
    cost: CostResult
    summary: Any

    @property
    def total_gas(self) -> int:
        return self.cost.total_gas


@runtime_checkable
class AuctionModel(Protocol):
    name: str
    max_ticks: int

    def bid(self, tick: int, amount: int) -> BidResult:
        ...

    def get_state(self) -> Dict[str, Any]:
        ...
