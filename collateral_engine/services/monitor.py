"""Liquidation monitor — tracks accounts from engine events and alerts on risk."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from ..constants import MAX_HEALTH_FACTOR, MIN_HEALTH_FACTOR, PRECISION
from ..engine import DSCEngine
from ..errors import EngineError
from ..interfaces.notifier import Notifier
from ..models import CollateralDeposited, CollateralRedeemed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountHealth:
    """Health snapshot of a single account."""

    user: str
    collateral_value_usd: int
    total_debt: int
    health_factor: int
    error: str = ""

    @property
    def liquidatable(self) -> bool:
        return not self.error and self.health_factor < MIN_HEALTH_FACTOR


def format_health_factor(health_factor: int) -> str:
    if health_factor == MAX_HEALTH_FACTOR:
        return "∞"
    return f"{health_factor / PRECISION:.4f}"


def format_usd(amount: int) -> str:
    return f"${amount / PRECISION:,.2f}"


class LiquidationMonitor:
    """Watches engine accounts and notifies when positions become unsafe."""

    def __init__(
        self,
        engine: DSCEngine,
        notifiers: list[Notifier] | None = None,
        warning_health_factor: float = 1.5,
    ) -> None:
        self._engine = engine
        self._notifiers: list[Notifier] = list(notifiers or [])
        self._warning = int(warning_health_factor * PRECISION)
        self._tracked: set[str] = set()
        engine.subscribe(self.on_event)

    @property
    def tracked_users(self) -> list[str]:
        return sorted(self._tracked)

    def on_event(self, event: object) -> None:
        if isinstance(event, CollateralDeposited):
            self._tracked.add(event.user)
        elif isinstance(event, CollateralRedeemed):
            # Redemptions (and liquidations) lower the owner's margin.
            self._tracked.add(event.redeemed_from)
            logger.debug(
                "Collateral redeemed: %d %s from %s to %s",
                event.amount, event.asset, event.redeemed_from, event.redeemed_to,
            )

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, user: str) -> AccountHealth:
        try:
            info = self._engine.get_account_information(user)
            health_factor = self._engine.get_health_factor(user)
        except EngineError as e:
            logger.error("Cannot evaluate %s: %s", user, e)
            return AccountHealth(
                user=user,
                collateral_value_usd=0,
                total_debt=self._engine.get_minted_dsc(user),
                health_factor=0,
                error=e.reason,
            )
        return AccountHealth(
            user=user,
            collateral_value_usd=info.collateral_value_usd,
            total_debt=info.total_dsc_minted,
            health_factor=health_factor,
        )

    def _get_status(self, health: AccountHealth) -> str:
        if health.error:
            return f"❓ UNKNOWN ({health.error})"
        if health.health_factor < MIN_HEALTH_FACTOR:
            return "🚨 LIQUIDATABLE"
        if health.health_factor < self._warning:
            return "⚠️ WARNING"
        return "✅ Healthy"

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def _build_log_message(self, health: AccountHealth) -> str:
        return (
            f"📊 {health.user}\n"
            f"\n"
            f"{self._get_status(health)}\n"
            f"\n"
            f"Collateral: {format_usd(health.collateral_value_usd)}\n"
            f"Debt: {format_usd(health.total_debt)}\n"
            f"HF: {format_health_factor(health.health_factor)}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    def _build_liquidation_alert(self, health: AccountHealth) -> str:
        return (
            f"🚨 LIQUIDATABLE — HF {format_health_factor(health.health_factor)}\n"
            f"\n"
            f"Account: {health.user}\n"
            f"Collateral: {format_usd(health.collateral_value_usd)}\n"
            f"Debt: {format_usd(health.total_debt)}\n"
            f"\n"
            f"Position can be liquidated for a 10% collateral bonus.\n"
            f"{self._now_str()} UTC"
        )

    def _build_warning_alert(self, health: AccountHealth) -> str:
        return (
            f"⚠️ WARNING — HF {format_health_factor(health.health_factor)}\n"
            f"\n"
            f"Account: {health.user}\n"
            f"Collateral: {format_usd(health.collateral_value_usd)}\n"
            f"Debt: {format_usd(health.total_debt)}\n"
            f"\n"
            f"Consider adding collateral or repaying debt.\n"
            f"{self._now_str()} UTC"
        )

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str, silent: bool = True) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    # ------------------------------------------------------------------
    # Core workflow
    # ------------------------------------------------------------------

    async def check_and_alert(self) -> list[AccountHealth]:
        """Evaluate every tracked account and send alerts when needed."""
        results: list[AccountHealth] = []

        for user in self.tracked_users:
            health = self.evaluate(user)
            results.append(health)

            logger.info(
                "Account %s · Collateral: %s  Debt: %s  HF: %s",
                user,
                format_usd(health.collateral_value_usd),
                format_usd(health.total_debt),
                format_health_factor(health.health_factor),
            )
            await self._send_log(self._build_log_message(health))

            if health.error:
                continue
            if health.liquidatable:
                await self._send_alert(
                    self._build_liquidation_alert(health),
                    subject="🚨 Liquidation opportunity",
                )
            elif health.health_factor < self._warning:
                await self._send_alert(
                    self._build_warning_alert(health), subject="⚠️ Low health factor"
                )

        return results
