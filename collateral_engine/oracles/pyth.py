"""Pyth Network price source — fetches signed readings from Hermes."""
import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from ..models import PriceReading
from .memory import InMemoryPriceFeed

logger = logging.getLogger(__name__)


def parse_price_item(item: dict) -> PriceReading:
    """Convert a Hermes ``parsed`` entry into a fixed-point reading.

    Hermes reports ``price`` as an integer string with a (usually negative)
    exponent, e.g. ``{"price": "200000000000", "expo": -8}`` for 2000.00.
    """
    price_data = item.get("price", {})
    answer = int(price_data.get("price", 0))
    expo = int(price_data.get("expo", 0))
    publish_time = int(price_data.get("publish_time", 0))

    if expo > 0:
        return PriceReading(answer=answer * 10**expo, updated_at=publish_time, decimals=0)
    return PriceReading(answer=answer, updated_at=publish_time, decimals=-expo)


class PythPriceSource:
    """Fetch collateral prices from Pyth Network oracle."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = dict(config.feeds)

    async def fetch_readings(
        self, assets: list[str] | None = None
    ) -> dict[str, PriceReading]:
        """Fetch current readings from Pyth Network.

        Args:
            assets: Optional list of assets to fetch. If None, fetches all
                    configured feeds.
        """
        readings: dict[str, PriceReading] = {}

        feeds = self.price_feeds
        if assets is not None:
            feeds = {k: v for k, v in self.price_feeds.items() if k in assets}

        feed_ids = sorted(set(feeds.values()))
        if not feed_ids:
            return readings

        query_params = "&".join([f"ids[]={fid}" for fid in feed_ids])
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        return readings

                    data = await response.json()
                    parsed = data.get("parsed", [])

                    id_to_assets: dict[str, list[str]] = {}
                    for asset, feed_id in feeds.items():
                        id_to_assets.setdefault(feed_id.lower().removeprefix("0x"), []).append(asset)

                    for item in parsed:
                        feed_id = str(item.get("id", "")).lower().removeprefix("0x")
                        if feed_id not in id_to_assets:
                            continue
                        reading = parse_price_item(item)
                        for asset in id_to_assets[feed_id]:
                            readings[asset] = reading

                    logger.info("Fetched %d readings from Pyth Network", len(readings))
                    for asset, reading in sorted(readings.items()):
                        logger.debug(
                            "  %s: %d (1e-%d) at %d",
                            asset, reading.answer, reading.decimals, reading.updated_at,
                        )

        except Exception as e:
            logger.error("Error fetching prices from Pyth: %s", e)

        return readings

    async def refresh(self, feed: InMemoryPriceFeed) -> int:
        """Pull fresh readings into ``feed``; returns how many were updated."""
        readings = await self.fetch_readings()
        feed.update(readings)
        return len(readings)
