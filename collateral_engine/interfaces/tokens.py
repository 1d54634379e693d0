"""Token ledger protocols — external fungible-token collaborators.

There is no implicit message sender in-process, so every call names the
account acting on the ledger (``spender`` for allowance-based pulls,
``caller`` for owner-only supply changes).
"""
from typing import Protocol


class AssetToken(Protocol):
    """Transfer ledger of a single collateral asset."""

    def transfer_from(
        self, spender: str, sender: str, recipient: str, amount: int
    ) -> bool: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...


class DebtToken(Protocol):
    """Debt token ledger. Only the engine may call ``mint`` and ``burn``."""

    def mint(self, caller: str, to: str, amount: int) -> bool: ...

    def burn(self, caller: str, amount: int) -> None: ...

    def transfer_from(
        self, spender: str, sender: str, recipient: str, amount: int
    ) -> bool: ...

    def balance_of(self, account: str) -> int: ...
