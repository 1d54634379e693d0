"""Price conversion and health factor evaluation.

health_factor = (collateral_usd * LIQUIDATION_THRESHOLD / LIQUIDATION_PRECISION)
                * PRECISION / total_debt

A position with no debt has the maximum representable health factor.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..constants import (
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MAX_HEALTH_FACTOR,
    MIN_HEALTH_FACTOR,
    PRECISION,
)
from ..errors import BreaksHealthFactor
from ..models import AccountInformation, PriceReading
from ..oracles.guard import OracleGuard

if TYPE_CHECKING:
    from .ledgers import CollateralLedger, DebtLedger

logger = logging.getLogger(__name__)

_PRICE_DECIMALS = 18


def normalised_price(reading: PriceReading) -> int:
    """Scale a feed answer to 18 decimals (8-decimal feeds gain 1e10)."""
    if reading.decimals <= _PRICE_DECIMALS:
        return reading.answer * 10 ** (_PRICE_DECIMALS - reading.decimals)
    return reading.answer // 10 ** (reading.decimals - _PRICE_DECIMALS)


class PriceConverter:
    """Converts between collateral amounts and USD through the oracle guard."""

    def __init__(self, guard: OracleGuard) -> None:
        self._guard = guard

    def price_of(self, asset: str) -> int:
        return normalised_price(self._guard.read(asset))

    def usd_value(self, asset: str, amount: int) -> int:
        return self.price_of(asset) * amount // PRECISION

    def token_amount_from_usd(self, asset: str, usd_amount: int) -> int:
        return usd_amount * PRECISION // self.price_of(asset)


def calculate_health_factor(total_debt: int, collateral_value_usd: int) -> int:
    if total_debt == 0:
        return MAX_HEALTH_FACTOR
    adjusted = collateral_value_usd * LIQUIDATION_THRESHOLD // LIQUIDATION_PRECISION
    return adjusted * PRECISION // total_debt


class HealthFactorEvaluator:
    """Solvency ratio of a user from both ledgers and the price feed."""

    def __init__(self, collateral: "CollateralLedger", debt: "DebtLedger") -> None:
        self._collateral = collateral
        self._debt = debt

    def account_information(self, user: str) -> AccountInformation:
        return AccountInformation(
            total_dsc_minted=self._debt.minted_of(user),
            collateral_value_usd=self._collateral.total_value_usd(user),
        )

    def health_factor(self, user: str) -> int:
        total_debt = self._debt.minted_of(user)
        if total_debt == 0:
            return MAX_HEALTH_FACTOR
        return calculate_health_factor(total_debt, self._collateral.total_value_usd(user))

    def assert_safe(self, user: str) -> None:
        health_factor = self.health_factor(user)
        if health_factor < MIN_HEALTH_FACTOR:
            logger.debug("Health factor of %s broken: %d", user, health_factor)
            raise BreaksHealthFactor(user, health_factor)
