"""Factory for creating auction backends from AuctionRuntimeConfig."""
from __future__ import annotations

from ..config import AuctionRuntimeConfig
from .base import AuctionModel
from .fenwick_auction import FenwickAuction
from .frontier_auction import FrontierAuction


def build_auction_model(config: AuctionRuntimeConfig) -> AuctionModel:
    """Create the backend selected by ``config.model``."""
    if config.model == FenwickAuction.name:
        return FenwickAuction(config.max_ticks, gas=config.gas)
    if config.model == FrontierAuction.name:
        return FrontierAuction(
            config.max_ticks,
            sale_supply=config.sale_supply,
            gas=config.gas,
        )
    raise ValueError(f"Unknown auction model: {config.model!r}")
