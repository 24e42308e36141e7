"""Gas cost model for packed Fenwick storage operations.

Prices the operation log returned by ``PackedFenwickStore`` using EVM-style
storage costs:

    SLOAD   cold 2100 / warm 100
    SSTORE  cold 20000 / warm 5000
    bit op  3 (unpack = 4 shifts + 4 masks, pack = 4 shifts + 4 ORs)

Every function here is a pure fold over the log. Nothing is cached.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

import pandas as pd

from .packed_store import QueryOperation, SlotAccess, UpdateOperation

# ──────────────────────────────────────────────────────────────────────
# Schedule
# ──────────────────────────────────────────────────────────────────────

COLD_SLOAD_COST: int = 2100
WARM_SLOAD_COST: int = 100
COLD_SSTORE_COST: int = 20000
WARM_SSTORE_COST: int = 5000
BIT_OP_COST: int = 3

UNPACK_BIT_OPS: int = 8
"""4 shifts + 4 masks."""

PACK_BIT_OPS: int = 8
"""4 shifts + 4 ORs."""


@dataclass(frozen=True)
class GasSchedule:
    """Per-operation gas prices."""
    cold_read: int = COLD_SLOAD_COST
    warm_read: int = WARM_SLOAD_COST
    cold_write: int = COLD_SSTORE_COST
    warm_write: int = WARM_SSTORE_COST
    bit_op: int = BIT_OP_COST

    @property
    def unpack_cost(self) -> int:
        return self.bit_op * UNPACK_BIT_OPS

    @property
    def pack_cost(self) -> int:
        return self.bit_op * PACK_BIT_OPS

    def read_cost(self, is_cold: bool) -> int:
        return self.cold_read if is_cold else self.warm_read

    def write_cost(self, is_cold: bool) -> int:
        return self.cold_write if is_cold else self.warm_write

    def to_dict(self) -> dict:
        return {
            "cold_read": self.cold_read,
            "warm_read": self.warm_read,
            "cold_write": self.cold_write,
            "warm_write": self.warm_write,
            "bit_op": self.bit_op,
        }


DEFAULT_GAS_SCHEDULE = GasSchedule()


# ──────────────────────────────────────────────────────────────────────
# Results
# ──────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CostDetail:
    """Gas charged for one itemized step.

    ``tick`` / ``word_index`` are ``None`` for steps that do not map to a
    single Fenwick node (e.g. frontier bookkeeping).
    """
    op: str
    gas: int
    tick: Optional[int] = None
    word_index: Optional[int] = None


@dataclass
class CostResult:
    """Total gas plus the itemization that sums to it."""
    total_gas: int = 0
    details: List[CostDetail] = field(default_factory=list)

    def add(self, detail: CostDetail) -> None:
        self.details.append(detail)
        self.total_gas += detail.gas

    @classmethod
    def combine(cls, *results: "CostResult") -> "CostResult":
        """Concatenate itemizations in argument order."""
        combined = cls()
        for result in results:
            for detail in result.details:
                combined.add(detail)
        return combined

    def to_frame(self) -> pd.DataFrame:
        """Itemization as a DataFrame (columns: op, tick, word_index, gas)."""
        return pd.DataFrame(
            [
                {
                    "op": d.op,
                    "tick": d.tick,
                    "word_index": d.word_index,
                    "gas": d.gas,
                }
                for d in self.details
            ],
            columns=["op", "tick", "word_index", "gas"],
        )


# ──────────────────────────────────────────────────────────────────────
# Pricing
# ──────────────────────────────────────────────────────────────────────

def _access_cost(accesses: Iterable[SlotAccess], price: Callable[[bool], int]) -> int:
    return sum(price(access.is_cold) for access in accesses)


def cost_of_update(
    operations: Iterable[UpdateOperation],
    schedule: GasSchedule = DEFAULT_GAS_SCHEDULE,
) -> CostResult:
    """Price an update log: read + unpack + write + pack per node."""
    result = CostResult()
    for op in operations:
        gas = _access_cost(op.reads, schedule.read_cost)
        gas += schedule.unpack_cost
        gas += _access_cost(op.writes, schedule.write_cost)
        gas += schedule.pack_cost
        result.add(CostDetail(op="update", gas=gas, tick=op.tick, word_index=op.word_index))
    return result


def cost_of_query(
    operations: Iterable[QueryOperation],
    schedule: GasSchedule = DEFAULT_GAS_SCHEDULE,
) -> CostResult:
    """Price a query log: read + unpack per node."""
    result = CostResult()
    for op in operations:
        gas = schedule.read_cost(op.is_cold) + schedule.unpack_cost
        result.add(CostDetail(op="query", gas=gas, tick=op.tick, word_index=op.word_index))
    return result
