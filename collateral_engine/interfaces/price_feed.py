"""Price feed protocol — read-only price source abstraction."""
from typing import Protocol

from ..models import PriceReading


class PriceFeed(Protocol):
    """Abstract interface for reading the latest price of an asset."""

    def latest_reading(self, asset: str) -> PriceReading: ...
