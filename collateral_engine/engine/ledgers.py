"""Collateral and debt ledgers.

Both ledgers update their own balances first and call the external token
ledger last. Neither checks solvency: callers re-validate the health factor
after mutating.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Sequence

from ..errors import (
    InsufficientBalance,
    MintFailed,
    NeedsMoreThanZero,
    TokenNotAllowed,
    TransferFailed,
)
from ..interfaces.tokens import AssetToken, DebtToken
from ..models import CollateralDeposited, CollateralRedeemed
from .health import PriceConverter

logger = logging.getLogger(__name__)

EventSink = Callable[[object], None]


def _require_positive(amount: int) -> None:
    if amount <= 0:
        raise NeedsMoreThanZero(amount)


def _checked_sub(account: str, balance: int, amount: int) -> int:
    if amount > balance:
        raise InsufficientBalance(account, amount, balance)
    return balance - amount


class CollateralLedger:
    """Per-user, per-asset deposited balances."""

    def __init__(
        self,
        assets: Sequence[str],
        tokens: Mapping[str, AssetToken],
        engine_address: str,
        converter: PriceConverter,
        emit: EventSink,
    ) -> None:
        self.assets = tuple(assets)
        self._tokens = dict(tokens)
        self._engine = engine_address
        self._converter = converter
        self._emit = emit
        self._deposited: dict[str, dict[str, int]] = {}

    def require_allowed(self, asset: str) -> None:
        if asset not in self._tokens:
            raise TokenNotAllowed(asset)

    def balance_of(self, user: str, asset: str) -> int:
        self.require_allowed(asset)
        return self._deposited.get(user, {}).get(asset, 0)

    def total_deposited(self, asset: str) -> int:
        self.require_allowed(asset)
        return sum(balances.get(asset, 0) for balances in self._deposited.values())

    def users(self) -> list[str]:
        return sorted(self._deposited)

    def deposit(self, user: str, asset: str, amount: int) -> None:
        _require_positive(amount)
        self.require_allowed(asset)

        balances = self._deposited.setdefault(user, {})
        balances[asset] = balances.get(asset, 0) + amount
        self._emit(CollateralDeposited(user=user, asset=asset, amount=amount))

        if not self._tokens[asset].transfer_from(self._engine, user, self._engine, amount):
            raise TransferFailed(f"Could not pull {amount} {asset} from {user}")

    def redeem(self, asset: str, amount: int, from_user: str, to_user: str) -> None:
        _require_positive(amount)
        self.require_allowed(asset)

        balances = self._deposited.setdefault(from_user, {})
        balances[asset] = _checked_sub(from_user, balances.get(asset, 0), amount)
        self._emit(
            CollateralRedeemed(
                redeemed_from=from_user, redeemed_to=to_user, asset=asset, amount=amount
            )
        )

        if not self._tokens[asset].transfer(self._engine, to_user, amount):
            raise TransferFailed(f"Could not send {amount} {asset} to {to_user}")

    def total_value_usd(self, user: str) -> int:
        """USD value (18 decimals) of everything ``user`` has deposited."""
        balances = self._deposited.get(user, {})
        total = 0
        for asset in self.assets:
            amount = balances.get(asset, 0)
            if amount:
                total += self._converter.usd_value(asset, amount)
        return total

    def snapshot(self) -> dict[str, dict[str, int]]:
        return {user: dict(balances) for user, balances in self._deposited.items()}

    def restore(self, state: dict[str, dict[str, int]]) -> None:
        self._deposited = {user: dict(balances) for user, balances in state.items()}


class DebtLedger:
    """Per-user minted debt balances."""

    def __init__(self, debt_token: DebtToken, engine_address: str) -> None:
        self._token = debt_token
        self._engine = engine_address
        self._minted: dict[str, int] = {}

    def minted_of(self, user: str) -> int:
        return self._minted.get(user, 0)

    def total_minted(self) -> int:
        return sum(self._minted.values())

    def users(self) -> list[str]:
        return sorted(self._minted)

    def mint(self, user: str, amount: int) -> None:
        _require_positive(amount)
        self._minted[user] = self.minted_of(user) + amount

        if not self._token.mint(self._engine, user, amount):
            raise MintFailed(f"Debt token refused to mint {amount} to {user}")

    def burn(self, amount: int, on_behalf_of: str, payer: str) -> None:
        _require_positive(amount)
        self._minted[on_behalf_of] = _checked_sub(
            on_behalf_of, self.minted_of(on_behalf_of), amount
        )

        if not self._token.transfer_from(self._engine, payer, self._engine, amount):
            raise TransferFailed(f"Could not pull {amount} debt tokens from {payer}")
        self._token.burn(self._engine, amount)

    def snapshot(self) -> dict[str, Any]:
        return dict(self._minted)

    def restore(self, state: dict[str, int]) -> None:
        self._minted = dict(state)
