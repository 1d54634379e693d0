"""Engine error taxonomy.

Every error rejects the whole in-flight operation. ``reason`` is a stable
code suitable for logs and scenario reports.
"""
from __future__ import annotations


class EngineError(Exception):
    """Base class for all engine rejections."""

    reason = "EngineError"


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class NeedsMoreThanZero(EngineError):
    reason = "NeedsMoreThanZero"

    def __init__(self, amount: int = 0) -> None:
        super().__init__(f"Amount must be more than zero, got {amount}")
        self.amount = amount


class TokenNotAllowed(EngineError):
    reason = "TokenNotAllowed"

    def __init__(self, asset: str) -> None:
        super().__init__(f"Asset '{asset}' is not an allowed collateral")
        self.asset = asset


class ConfigMismatch(EngineError):
    """Asset and price-feed lists of different lengths, or missing ledgers."""

    reason = "TokenAddressesAndPriceFeedAddressesMustBeSameLength"


class InsufficientBalance(EngineError):
    reason = "InsufficientBalance"

    def __init__(self, account: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient balance for {account}: requested {requested}, "
            f"available {available}"
        )
        self.account = account
        self.requested = requested
        self.available = available


# ---------------------------------------------------------------------------
# External calls
# ---------------------------------------------------------------------------


class TransferFailed(EngineError):
    reason = "TransferFailed"


class MintFailed(EngineError):
    reason = "MintFailed"


# ---------------------------------------------------------------------------
# Solvency and liquidation
# ---------------------------------------------------------------------------


class BreaksHealthFactor(EngineError):
    reason = "BreaksHealthFactor"

    def __init__(self, user: str, health_factor: int) -> None:
        super().__init__(f"Health factor of {user} would drop to {health_factor}")
        self.user = user
        self.health_factor = health_factor


class HealthFactorNotBroken(EngineError):
    reason = "HealthFactorOk"


class HealthFactorNotImproved(EngineError):
    reason = "HealthFactorNotImproved"


# ---------------------------------------------------------------------------
# Oracle
# ---------------------------------------------------------------------------


class StalePrice(EngineError):
    reason = "StalePrice"

    def __init__(self, asset: str, age_seconds: float) -> None:
        super().__init__(f"Price for {asset} is stale ({age_seconds:.0f}s old)")
        self.asset = asset
        self.age_seconds = age_seconds


class InvalidPrice(EngineError):
    reason = "InvalidPrice"

    def __init__(self, asset: str, answer: int) -> None:
        super().__init__(f"Price for {asset} must be positive, got {answer}")
        self.asset = asset
        self.answer = answer


class PriceFeedUnavailable(EngineError):
    reason = "PriceFeedUnavailable"

    def __init__(self, asset: str) -> None:
        super().__init__(f"No price reading available for {asset}")
        self.asset = asset


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class ReentrantCall(EngineError):
    reason = "ReentrancyGuardReentrantCall"


class OnlyOwner(EngineError):
    reason = "OnlyOwner"
