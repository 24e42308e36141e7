"""
Tests for the monotone frontier auction.

Verifies:
- Eviction scenario from an oversubscribed book
- Bid gas: cold/warm volume slot and presence block
- Forward block scan across empty blocks and exhaustion sentinel
- P* never decreases, V* never exceeds supply, V* matches resting volume
"""
from __future__ import annotations

import numpy as np
import pytest

from packed_auction.cost_model import GasSchedule
from packed_auction.models.frontier_auction import ClearEvent, FrontierAuction


def _resting_above_frontier(auction: FrontierAuction) -> int:
    return sum(v for t, v in auction.volume.items() if t >= auction.p_star)


class TestEvictionScenario:
    """SALE_SUPPLY=100, bids (10, 60) then (20, 60)."""

    def test_frontier_advances_past_first_tick(self):
        """Second bid evicts tick 10 and moves P* to 20."""
        auction = FrontierAuction(1000, sale_supply=100)
        first = auction.bid(10, 60)
        assert first.summary.clear_events == []
        assert first.summary.p_star == 0

        second = auction.bid(20, 60)
        assert auction.v_star <= 100
        assert auction.p_star > 10
        assert auction.p_star == 20
        assert auction.v_star == 60
        assert [(e.from_tick, e.to_tick) for e in second.summary.clear_events] == [
            (0, 10),
            (10, 20),
        ]
        assert [e.evicted_volume for e in second.summary.clear_events] == [0, 60]
        assert 10 not in auction.volume

    def test_bid_gas_breakdown(self):
        """Bid gas itemizes volume, bitmap and evictions."""
        auction = FrontierAuction(1000, sale_supply=100)
        first = auction.bid(10, 60)
        # cold volume slot + cold (empty) block mask
        assert first.total_gas == 20000 + 20000

        second = auction.bid(20, 60)
        evictions = 2 * (5000 + 5000 + 2100)
        assert second.total_gas == 20000 + 5000 + evictions
        assert sum(d.gas for d in second.cost.details) == second.total_gas


class TestBidCosts:
    def test_repeat_tick_is_warm_and_sets_no_bit(self):
        """Repeat bid pays one warm write and no bitmap write."""
        auction = FrontierAuction(1000, sale_supply=1000)
        auction.bid(10, 5)
        again = auction.bid(10, 5)
        assert again.total_gas == 5000
        assert auction.volume[10] == 10

    def test_custom_schedule(self):
        """Custom write prices flow through to bid gas."""
        gas = GasSchedule(cold_write=7, warm_write=3)
        auction = FrontierAuction(1000, sale_supply=1000, gas=gas)
        assert auction.bid(10, 5).total_gas == 14
        assert auction.bid(11, 5).total_gas == 7 + 3


class TestFrontierScan:
    def test_scan_crosses_empty_blocks(self):
        """Scan pays one cold read per block loaded."""
        auction = FrontierAuction(1024, sale_supply=100)
        auction.bid(5, 60)
        result = auction.bid(700, 60)

        assert auction.p_star == 700
        events = result.summary.clear_events
        assert events[0] == ClearEvent(0, 5, 0, 10000 + 2100)
        # blocks 0, 1 and 2 loaded before bit 188 of block 2 is found
        assert events[1] == ClearEvent(5, 700, 60, 10000 + 3 * 2100)

    def test_exhausted_frontier(self):
        """Evicting the last tick parks P* at max_ticks."""
        auction = FrontierAuction(300, sale_supply=100)
        result = auction.bid(10, 150)

        assert auction.p_star == 300
        assert auction.exhausted
        assert auction.v_star == 0
        assert result.summary.clear_events[-1].to_tick == 300

    def test_find_next_set_bit(self):
        """Forward scan finds the next present tick or the sentinel."""
        auction = FrontierAuction(1024, sale_supply=10_000)
        auction.bid(3, 1)
        auction.bid(260, 1)
        assert auction.find_next_set_bit(0)[0] == 3
        assert auction.find_next_set_bit(3)[0] == 3
        assert auction.find_next_set_bit(4) == (260, 2 * 2100)
        assert auction.find_next_set_bit(261)[0] == 1024

    def test_small_book_below_one_block(self):
        """Books smaller than one block still evict."""
        auction = FrontierAuction(16, sale_supply=10)
        auction.bid(4, 6)
        auction.bid(9, 6)
        assert auction.p_star == 9
        assert auction.v_star == 6


class TestFrontierInvariants:
    def test_bid_below_frontier_not_admitted(self):
        """A bid under P* is rejected and changes nothing."""
        auction = FrontierAuction(1000, sale_supply=100)
        auction.bid(10, 60)
        auction.bid(20, 60)

        result = auction.bid(5, 30)
        assert result.summary.admitted is False
        assert result.total_gas == 0
        assert auction.v_star == 60
        assert 5 not in auction.volume

    def test_random_bid_stream(self):
        """P* is monotone and V* matches resting volume."""
        rng = np.random.default_rng(3)
        auction = FrontierAuction(2048, sale_supply=500)
        previous = auction.p_star

        for _ in range(500):
            tick = int(rng.integers(0, 2048))
            amount = int(rng.integers(1, 80))
            auction.bid(tick, amount)

            assert auction.p_star >= previous
            assert auction.v_star <= auction.sale_supply
            assert auction.v_star == _resting_above_frontier(auction)
            assert all(t >= auction.p_star for t in auction.volume)
            previous = auction.p_star

    @pytest.mark.parametrize("sale_supply", [1, 50, 10_000])
    def test_v_star_bounded_after_every_bid(self, sale_supply):
        """V* never exceeds supply after a bid."""
        auction = FrontierAuction(512, sale_supply=sale_supply)
        for tick in (400, 100, 300, 450, 500):
            auction.bid(tick, 40)
            assert auction.v_star <= sale_supply

    def test_get_state(self):
        """State exposes frontier, volume and non-empty blocks."""
        auction = FrontierAuction(1000, sale_supply=100)
        auction.bid(10, 60)
        state = auction.get_state()

        assert state["model"] == "frontier"
        assert state["p_star"] == 0
        assert state["v_star"] == 60
        assert state["volume"] == {10: 60}
        assert state["block_bits"] == {0: 1 << 10}
