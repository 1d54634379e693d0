"""DSCEngine — public entry point for collateral, debt and liquidation operations."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Mapping, Sequence

from .. import constants
from ..errors import ConfigMismatch, EngineError
from ..interfaces.price_feed import PriceFeed
from ..interfaces.tokens import AssetToken, DebtToken
from ..models import AccountInformation, LiquidationResult
from ..oracles.guard import OracleGuard
from .execution import NonReentrantGuard, Transaction, is_journaled
from .health import HealthFactorEvaluator, PriceConverter, calculate_health_factor
from .ledgers import CollateralLedger, DebtLedger
from .liquidation import LiquidationEngine

logger = logging.getLogger(__name__)

EventListener = Callable[[object], None]


class DSCEngine:
    """Over-collateralized debt engine.

    Every mutating method is non-reentrant and all-or-nothing: if any step
    fails, the ledgers (and every journaled token ledger) are restored and
    no events are delivered.
    """

    def __init__(
        self,
        assets: Sequence[str],
        price_feed_ids: Sequence[str],
        price_feed: PriceFeed,
        asset_tokens: Mapping[str, AssetToken],
        debt_token: DebtToken,
        address: str = "dsc-engine",
        price_timeout: int = constants.PRICE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if len(assets) != len(price_feed_ids):
            raise ConfigMismatch(
                f"{len(assets)} assets but {len(price_feed_ids)} price feeds"
            )
        if len(set(assets)) != len(assets):
            raise ConfigMismatch("Collateral assets must be unique")
        missing = [a for a in assets if a not in asset_tokens]
        if missing:
            raise ConfigMismatch(f"No token ledger for {', '.join(missing)}")

        self.address = address
        self._price_feed_ids = dict(zip(assets, price_feed_ids))
        self._asset_tokens = {a: asset_tokens[a] for a in assets}
        self._debt_token = debt_token

        self._guard = OracleGuard(price_feed, timeout=price_timeout, clock=clock)
        self._converter = PriceConverter(self._guard)
        self._collateral = CollateralLedger(
            assets, self._asset_tokens, address, self._converter, self._record_event
        )
        self._debt = DebtLedger(debt_token, address)
        self._evaluator = HealthFactorEvaluator(self._collateral, self._debt)
        self._liquidation = LiquidationEngine(
            self._collateral, self._debt, self._evaluator, self._converter
        )

        self._lock = NonReentrantGuard()
        self._listeners: list[EventListener] = []
        self._pending_events: list[object] = []

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def _record_event(self, event: object) -> None:
        self._pending_events.append(event)

    def _deliver_events(self) -> None:
        events, self._pending_events = self._pending_events, []
        for event in events:
            for listener in self._listeners:
                try:
                    listener(event)
                except Exception as e:
                    logger.error("Event listener failed on %s: %s", event, e)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _participants(self) -> list:
        participants: list = [self._collateral, self._debt]
        seen: set[int] = set()
        for token in [self._debt_token, *self._asset_tokens.values()]:
            if id(token) not in seen and is_journaled(token):
                seen.add(id(token))
                participants.append(token)
        return participants

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        with self._lock.hold(name):
            self._pending_events = []
            try:
                with Transaction(self._participants(), name=name):
                    yield
            except EngineError as e:
                self._pending_events = []
                logger.warning("%s rejected: %s (%s)", name, e.reason, e)
                raise
            except Exception:
                self._pending_events = []
                raise
        # Outside the lock: listeners may start further operations.
        self._deliver_events()

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def deposit_collateral(self, user: str, asset: str, amount: int) -> None:
        with self._operation("deposit_collateral"):
            self._collateral.deposit(user, asset, amount)
        logger.info("%s deposited %d %s", user, amount, asset)

    def deposit_collateral_and_mint_dsc(
        self, user: str, asset: str, amount_collateral: int, amount_dsc: int
    ) -> None:
        with self._operation("deposit_collateral_and_mint_dsc"):
            self._collateral.deposit(user, asset, amount_collateral)
            self._debt.mint(user, amount_dsc)
            self._evaluator.assert_safe(user)
        logger.info(
            "%s deposited %d %s and minted %d", user, amount_collateral, asset, amount_dsc
        )

    def mint_dsc(self, user: str, amount: int) -> None:
        with self._operation("mint_dsc"):
            self._debt.mint(user, amount)
            self._evaluator.assert_safe(user)
        logger.info("%s minted %d", user, amount)

    def redeem_collateral(self, user: str, asset: str, amount: int) -> None:
        with self._operation("redeem_collateral"):
            self._collateral.redeem(asset, amount, user, user)
            self._evaluator.assert_safe(user)
        logger.info("%s redeemed %d %s", user, amount, asset)

    def redeem_collateral_for_dsc(
        self, user: str, asset: str, amount_collateral: int, amount_dsc: int
    ) -> None:
        """Burn debt and withdraw collateral in one operation."""
        with self._operation("redeem_collateral_for_dsc"):
            self._debt.burn(amount_dsc, user, user)
            self._collateral.redeem(asset, amount_collateral, user, user)
            self._evaluator.assert_safe(user)
        logger.info(
            "%s burned %d and redeemed %d %s", user, amount_dsc, amount_collateral, asset
        )

    def burn_dsc(self, user: str, amount: int) -> None:
        with self._operation("burn_dsc"):
            self._debt.burn(amount, user, user)
            self._evaluator.assert_safe(user)
        logger.info("%s burned %d", user, amount)

    def liquidate(
        self, liquidator: str, asset: str, user: str, debt_to_cover: int
    ) -> LiquidationResult:
        with self._operation("liquidate"):
            result = self._liquidation.liquidate(asset, user, debt_to_cover, liquidator)
        return result

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_health_factor(self, user: str) -> int:
        return self._evaluator.health_factor(user)

    def calculate_health_factor(self, total_dsc_minted: int, collateral_value_usd: int) -> int:
        return calculate_health_factor(total_dsc_minted, collateral_value_usd)

    def get_account_information(self, user: str) -> AccountInformation:
        return self._evaluator.account_information(user)

    def get_account_collateral_value(self, user: str) -> int:
        return self._collateral.total_value_usd(user)

    def get_usd_value(self, asset: str, amount: int) -> int:
        self._collateral.require_allowed(asset)
        return self._converter.usd_value(asset, amount)

    def get_token_amount_from_usd(self, asset: str, usd_amount: int) -> int:
        self._collateral.require_allowed(asset)
        return self._converter.token_amount_from_usd(asset, usd_amount)

    def get_collateral_balance_of_user(self, user: str, asset: str) -> int:
        return self._collateral.balance_of(user, asset)

    def get_collateral_tokens(self) -> list[str]:
        return list(self._collateral.assets)

    def get_collateral_token_price_feed(self, asset: str) -> str:
        self._collateral.require_allowed(asset)
        return self._price_feed_ids[asset]

    def get_minted_dsc(self, user: str) -> int:
        return self._debt.minted_of(user)

    def get_total_debt(self) -> int:
        return self._debt.total_minted()

    def get_total_collateral_value_usd(self) -> int:
        """USD value of all collateral the engine holds on behalf of users."""
        return sum(
            self._converter.usd_value(asset, self._collateral.total_deposited(asset))
            for asset in self._collateral.assets
            if self._collateral.total_deposited(asset)
        )

    def get_users(self) -> list[str]:
        return sorted(set(self._collateral.users()) | set(self._debt.users()))

    @staticmethod
    def get_precision() -> int:
        return constants.PRECISION

    @staticmethod
    def get_additional_feed_precision() -> int:
        return constants.ADDITIONAL_FEED_PRECISION

    @staticmethod
    def get_liquidation_threshold() -> int:
        return constants.LIQUIDATION_THRESHOLD

    @staticmethod
    def get_liquidation_bonus() -> int:
        return constants.LIQUIDATION_BONUS

    @staticmethod
    def get_liquidation_precision() -> int:
        return constants.LIQUIDATION_PRECISION

    @staticmethod
    def get_min_health_factor() -> int:
        return constants.MIN_HEALTH_FACTOR
