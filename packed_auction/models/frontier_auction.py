"""Monotone frontier auction over a two-level presence bitmap.

State:
    volume      tick -> resting volume
    block_bits  block index -> 256-bit presence mask (bit i == tick 256*b + i)
    p_star      frontier: lowest tick still admitted, never decreases
    v_star      volume resting at or above p_star

A bid adds volume and sets its presence bit. While ``v_star`` exceeds the
sale supply, the whole frontier tick is evicted and ``p_star`` jumps to the
next present tick found by a forward block scan. ``p_star == max_ticks``
means the frontier is exhausted.

Bids below the current frontier are outbid on arrival: they are reported
as not admitted and leave state untouched.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from ..bitops import count_trailing_zeros, lowest_set_bit
from ..cost_model import DEFAULT_GAS_SCHEDULE, CostDetail, CostResult, GasSchedule
from .base import BidResult

logger = logging.getLogger(__name__)

BLOCK_BITS: int = 256
"""Ticks per presence block."""

BLOCK_SHIFT: int = 8
BLOCK_MASK: int = BLOCK_BITS - 1
FULL_BLOCK_MASK: int = (1 << BLOCK_BITS) - 1

DEFAULT_SALE_SUPPLY: int = 1000


@dataclass(frozen=True)
class ClearEvent:
    """One frontier eviction step."""
    from_tick: int
    to_tick: int
    evicted_volume: int
    gas: int


@dataclass(frozen=True)
class FrontierBidSummary:
    tick: int
    amount: int
    p_star: int
    v_star: int
    clear_events: List[ClearEvent] = field(default_factory=list)
    admitted: bool = True


class FrontierAuction:
    """Amortized O(1) bidding with frontier eviction."""

    name = "frontier"

    def __init__(
        self,
        max_ticks: int,
        sale_supply: int = DEFAULT_SALE_SUPPLY,
        gas: GasSchedule = DEFAULT_GAS_SCHEDULE,
    ) -> None:
        self.max_ticks = max_ticks
        self.sale_supply = sale_supply
        self.gas = gas
        self.volume: Dict[int, int] = {}
        self.block_bits: Dict[int, int] = {}
        self.p_star = 0
        self.v_star = 0

    @property
    def n_blocks(self) -> int:
        return (self.max_ticks + BLOCK_MASK) >> BLOCK_SHIFT

    @property
    def exhausted(self) -> bool:
        return self.p_star >= self.max_ticks

    def bid(self, tick: int, amount: int) -> BidResult:
        cost = CostResult()

        if tick < self.p_star:
            logger.debug("bid at tick %d below frontier %d, not admitted", tick, self.p_star)
            return BidResult(
                cost=cost,
                summary=FrontierBidSummary(
                    tick, amount, self.p_star, self.v_star, admitted=False,
                ),
            )

        # 1. Volume slot
        is_new = tick not in self.volume
        self.volume[tick] = self.volume.get(tick, 0) + amount
        cost.add(CostDetail(
            op=f"Update volume at tick {tick}",
            gas=self.gas.write_cost(is_new),
            tick=tick,
        ))

        # 2. Running volume above frontier
        self.v_star += amount

        # 3. Presence bit
        block_index = tick >> BLOCK_SHIFT
        old_mask = self.block_bits.get(block_index, 0)
        new_mask = old_mask | (1 << (tick & BLOCK_MASK))
        if new_mask != old_mask:
            self.block_bits[block_index] = new_mask
            cost.add(CostDetail(
                op=f"Set bit for block {block_index}",
                gas=self.gas.write_cost(old_mask == 0),
                word_index=block_index,
            ))

        # 4. Evict while oversubscribed
        clear_events: List[ClearEvent] = []
        while self.v_star > self.sale_supply:
            event = self._evict_frontier()
            clear_events.append(event)
            cost.add(CostDetail(
                op=f"Clear from {event.from_tick} to {event.to_tick}",
                gas=event.gas,
                tick=event.from_tick,
            ))

        summary = FrontierBidSummary(
            tick=tick,
            amount=amount,
            p_star=self.p_star,
            v_star=self.v_star,
            clear_events=clear_events,
        )
        return BidResult(cost=cost, summary=summary)

    def _evict_frontier(self) -> ClearEvent:
        old_p_star = self.p_star
        evicted = self.volume.pop(old_p_star, 0)
        self.v_star -= evicted

        block_index = old_p_star >> BLOCK_SHIFT
        mask = self.block_bits.get(block_index, 0)
        self.block_bits[block_index] = mask & ~(1 << (old_p_star & BLOCK_MASK))

        self.p_star, scan_gas = self.find_next_set_bit(old_p_star + 1)
        gas = 2 * self.gas.warm_write + scan_gas
        logger.debug(
            "evicted tick %d (%d volume), frontier -> %d", old_p_star, evicted, self.p_star,
        )
        return ClearEvent(old_p_star, self.p_star, evicted, gas)

    def find_next_set_bit(self, start_tick: int) -> Tuple[int, int]:
        """First present tick at or after ``start_tick``.

        Returns:
            ``(tick, scan_gas)``; tick is ``max_ticks`` when no bit is set.
            Every block mask loaded costs one cold read.
        """
        gas = 0
        block_index = start_tick >> BLOCK_SHIFT
        resume = start_tick & BLOCK_MASK

        while block_index < self.n_blocks:
            mask = self.block_bits.get(block_index, 0)
            gas += self.gas.cold_read

            mask &= (FULL_BLOCK_MASK << resume) & FULL_BLOCK_MASK
            offset = count_trailing_zeros(lowest_set_bit(mask))
            if offset is not None:
                return (block_index << BLOCK_SHIFT) + offset, gas

            block_index += 1
            resume = 0

        return self.max_ticks, gas

    def get_state(self) -> Dict[str, Any]:
        return {
            "model": self.name,
            "max_ticks": self.max_ticks,
            "p_star": self.p_star,
            "v_star": self.v_star,
            "sale_supply": self.sale_supply,
            "volume": dict(sorted(self.volume.items())),
            "block_bits": {b: m for b, m in sorted(self.block_bits.items()) if m},
        }
