"""In-memory fungible token ledger.

Stands in for the on-chain debt token and collateral token contracts when the
engine runs in-process (CLI scenarios, tests). Failed transfers return
``False`` rather than raising, like ERC-20 ``transfer``/``transferFrom``.
"""
from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any

from .errors import OnlyOwner

logger = logging.getLogger(__name__)


class InMemoryToken:
    """Balances, allowances and owner-restricted supply changes."""

    def __init__(self, symbol: str, owner: str = "") -> None:
        self.symbol = symbol
        self.owner = owner
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._total_supply = 0

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    @property
    def total_supply(self) -> int:
        return self._total_supply

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        self._allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        return self._move(sender, recipient, amount)

    def transfer_from(
        self, spender: str, sender: str, recipient: str, amount: int
    ) -> bool:
        allowed = self.allowance(sender, spender)
        if allowed < amount:
            logger.debug(
                "%s transfer_from rejected: allowance %d < %d", self.symbol, allowed, amount
            )
            return False
        if not self._move(sender, recipient, amount):
            return False
        self._allowances[(sender, spender)] = allowed - amount
        return True

    def _move(self, sender: str, recipient: str, amount: int) -> bool:
        balance = self.balance_of(sender)
        if amount < 0 or balance < amount:
            logger.debug(
                "%s transfer rejected: balance of %s is %d < %d",
                self.symbol, sender, balance, amount,
            )
            return False
        self._balances[sender] = balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        return True

    # ------------------------------------------------------------------
    # Supply
    # ------------------------------------------------------------------

    def mint(self, caller: str, to: str, amount: int) -> bool:
        if self.owner and caller != self.owner:
            raise OnlyOwner(f"{caller} may not mint {self.symbol}")
        if amount <= 0:
            return False
        self._balances[to] = self.balance_of(to) + amount
        self._total_supply += amount
        return True

    def burn(self, caller: str, amount: int) -> None:
        if self.owner and caller != self.owner:
            raise OnlyOwner(f"{caller} may not burn {self.symbol}")
        balance = self.balance_of(caller)
        if amount <= 0 or balance < amount:
            raise ValueError(
                f"Cannot burn {amount} {self.symbol}: balance is {balance}"
            )
        self._balances[caller] = balance - amount
        self._total_supply -= amount

    # ------------------------------------------------------------------
    # Journaling
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        return {
            "balances": dict(self._balances),
            "allowances": dict(self._allowances),
            "total_supply": self._total_supply,
        }

    def restore(self, state: dict[str, Any]) -> None:
        state = deepcopy(state)
        self._balances = state["balances"]
        self._allowances = state["allowances"]
        self._total_supply = state["total_supply"]
