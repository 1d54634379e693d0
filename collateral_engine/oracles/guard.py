"""Oracle guard — rejects stale and non-positive price readings."""
from __future__ import annotations

import logging
import time
from typing import Callable

from ..constants import PRICE_TIMEOUT_SECONDS
from ..errors import InvalidPrice, StalePrice
from ..interfaces.price_feed import PriceFeed
from ..models import PriceReading

logger = logging.getLogger(__name__)


class OracleGuard:
    """Read-only wrapper around a price feed.

    A reading is rejected when ``now - updated_at`` exceeds ``timeout``
    seconds. A reading of exactly ``timeout`` seconds is still accepted.
    Non-positive answers are rejected as well: they would otherwise value
    collateral at zero and make every conversion degenerate.
    """

    def __init__(
        self,
        feed: PriceFeed,
        timeout: int = PRICE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._feed = feed
        self.timeout = timeout
        self._clock = clock

    def read(self, asset: str) -> PriceReading:
        reading = self._feed.latest_reading(asset)

        age = self._clock() - reading.updated_at
        if age > self.timeout:
            logger.warning(
                "Stale price for %s: updated %.0fs ago (timeout %ds)",
                asset, age, self.timeout,
            )
            raise StalePrice(asset, age)

        if reading.answer <= 0:
            logger.warning("Non-positive price for %s: %d", asset, reading.answer)
            raise InvalidPrice(asset, reading.answer)

        return reading
