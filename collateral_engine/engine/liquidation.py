"""Liquidation of unsafe positions."""
from __future__ import annotations

import logging

from ..constants import LIQUIDATION_BONUS, LIQUIDATION_PRECISION, MIN_HEALTH_FACTOR
from ..errors import HealthFactorNotBroken, HealthFactorNotImproved, NeedsMoreThanZero
from ..models import LiquidationResult
from .health import HealthFactorEvaluator, PriceConverter
from .ledgers import CollateralLedger, DebtLedger

logger = logging.getLogger(__name__)


def liquidation_bonus(token_amount: int) -> int:
    return token_amount * LIQUIDATION_BONUS // LIQUIDATION_PRECISION


class LiquidationEngine:
    """Forced partial or full debt repayment in exchange for collateral.

    The liquidator pays ``debt_to_cover`` debt tokens on behalf of ``user``
    and receives the equivalent amount of ``asset`` plus a 10% bonus. The
    victim's health factor must strictly improve and the liquidator must
    remain safe, otherwise the whole liquidation is rejected.
    """

    def __init__(
        self,
        collateral: CollateralLedger,
        debt: DebtLedger,
        evaluator: HealthFactorEvaluator,
        converter: PriceConverter,
    ) -> None:
        self._collateral = collateral
        self._debt = debt
        self._evaluator = evaluator
        self._converter = converter

    def liquidate(
        self, asset: str, user: str, debt_to_cover: int, liquidator: str
    ) -> LiquidationResult:
        if debt_to_cover <= 0:
            raise NeedsMoreThanZero(debt_to_cover)
        self._collateral.require_allowed(asset)

        starting = self._evaluator.health_factor(user)
        if starting >= MIN_HEALTH_FACTOR:
            raise HealthFactorNotBroken(
                f"{user} is not liquidatable (health factor {starting})"
            )

        token_amount = self._converter.token_amount_from_usd(asset, debt_to_cover)
        bonus = liquidation_bonus(token_amount)
        seized = token_amount + bonus

        self._collateral.redeem(asset, seized, user, liquidator)
        self._debt.burn(debt_to_cover, user, liquidator)

        ending = self._evaluator.health_factor(user)
        if ending <= starting:
            raise HealthFactorNotImproved(
                f"Health factor of {user} went from {starting} to {ending}"
            )
        self._evaluator.assert_safe(liquidator)

        logger.info(
            "Liquidated %s: %s covered %d debt for %d %s (bonus %d), HF %d -> %d",
            user, liquidator, debt_to_cover, seized, asset, bonus, starting, ending,
        )
        return LiquidationResult(
            user=user,
            liquidator=liquidator,
            asset=asset,
            debt_covered=debt_to_cover,
            collateral_seized=seized,
            bonus_collateral=bonus,
            starting_health_factor=starting,
            ending_health_factor=ending,
        )
