"""In-memory price feed holding the latest reading per asset."""
from __future__ import annotations

from ..errors import PriceFeedUnavailable
from ..models import PriceReading


class InMemoryPriceFeed:
    """Price feed backed by a dict of readings.

    Readings are pushed in by a refresher (Pyth, a scenario file, a test)
    and read back by the oracle guard.
    """

    def __init__(self, readings: dict[str, PriceReading] | None = None) -> None:
        self._readings: dict[str, PriceReading] = dict(readings or {})

    def set_reading(self, asset: str, reading: PriceReading) -> None:
        self._readings[asset] = reading

    def update(self, readings: dict[str, PriceReading]) -> None:
        self._readings.update(readings)

    def latest_reading(self, asset: str) -> PriceReading:
        try:
            return self._readings[asset]
        except KeyError:
            raise PriceFeedUnavailable(asset) from None

    def assets(self) -> list[str]:
        return sorted(self._readings)
