"""Price oracle modules."""
from .guard import OracleGuard
from .memory import InMemoryPriceFeed
from .pyth import PythPriceSource

__all__ = ["InMemoryPriceFeed", "OracleGuard", "PythPriceSource"]
