"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PriceReading:
    """Single answer from a price feed.

    ``answer`` is a fixed-point integer with ``decimals`` decimals and
    ``updated_at`` a unix timestamp in seconds.
    """

    answer: int
    updated_at: int
    decimals: int = 8


@dataclass(frozen=True)
class AccountInformation:
    total_dsc_minted: int
    collateral_value_usd: int


@dataclass(frozen=True)
class CollateralDeposited:
    user: str
    asset: str
    amount: int


@dataclass(frozen=True)
class CollateralRedeemed:
    redeemed_from: str
    redeemed_to: str
    asset: str
    amount: int


@dataclass(frozen=True)
class LiquidationResult:
    """Outcome of a successful liquidation."""

    user: str
    liquidator: str
    asset: str
    debt_covered: int
    collateral_seized: int
    bonus_collateral: int
    starting_health_factor: int
    ending_health_factor: int
