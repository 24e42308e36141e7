"""Auction backends: packed Fenwick index and monotone bitmap frontier."""
from .base import AuctionModel, BidResult
from .factory import build_auction_model
from .fenwick_auction import ClearingOutcome, FenwickAuction, FenwickBidSummary
from .frontier_auction import ClearEvent, FrontierAuction, FrontierBidSummary

__all__ = [
    "AuctionModel",
    "BidResult",
    "ClearEvent",
    "ClearingOutcome",
    "FenwickAuction",
    "FenwickBidSummary",
    "FrontierAuction",
    "FrontierBidSummary",
    "build_auction_model",
]
