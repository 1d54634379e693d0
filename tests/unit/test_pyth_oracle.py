"""Unit tests for the Pyth price source — response parsing and error handling."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from collateral_engine.config import PythConfig
from collateral_engine.models import PriceReading
from collateral_engine.oracles.memory import InMemoryPriceFeed
from collateral_engine.oracles.pyth import PythPriceSource, parse_price_item


@pytest.fixture()
def source() -> PythPriceSource:
    return PythPriceSource(
        PythConfig(
            hermes_url="https://hermes.example.com/v2/updates/price/latest",
            feeds={"WETH": "0xAAA111", "WBTC": "bbb222"},
        )
    )


def _make_pyth_response(items: list[dict]) -> dict:
    return {"parsed": items}


def _mock_session(status: int = 200, data: dict | None = None) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=data or {})
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.get = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


SAMPLE_ITEMS = [
    {
        "id": "aaa111",
        "price": {"price": "200000000000", "expo": -8, "publish_time": 1_700_000_000},
    },
    {
        "id": "bbb222",
        "price": {"price": "3000000000000", "expo": -8, "publish_time": 1_700_000_005},
    },
    {"id": "ffffff", "price": {"price": "1", "expo": -8, "publish_time": 1}},
]


class TestFetchReadings:
    @pytest.mark.asyncio
    async def test_parses_response_correctly(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(data=_make_pyth_response(SAMPLE_ITEMS))

        with patch("collateral_engine.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("collateral_engine.oracles.pyth.aiohttp.TCPConnector"):
                readings = await source.fetch_readings()

        assert readings == {
            "WETH": PriceReading(answer=2000 * 10**8, updated_at=1_700_000_000, decimals=8),
            "WBTC": PriceReading(answer=30000 * 10**8, updated_at=1_700_000_005, decimals=8),
        }

    @pytest.mark.asyncio
    async def test_handles_http_error(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(status=500)

        with patch("collateral_engine.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("collateral_engine.oracles.pyth.aiohttp.TCPConnector"):
                readings = await source.fetch_readings()

        assert readings == {}

    @pytest.mark.asyncio
    async def test_handles_network_error(self, source: PythPriceSource) -> None:
        mock_session = AsyncMock()
        mock_session.get = MagicMock(side_effect=ConnectionError("timeout"))
        mock_session.__aenter__ = AsyncMock(return_value=mock_session)
        mock_session.__aexit__ = AsyncMock(return_value=None)

        with patch("collateral_engine.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("collateral_engine.oracles.pyth.aiohttp.TCPConnector"):
                readings = await source.fetch_readings()

        assert readings == {}

    @pytest.mark.asyncio
    async def test_filters_by_asset(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(data=_make_pyth_response(SAMPLE_ITEMS))

        with patch("collateral_engine.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("collateral_engine.oracles.pyth.aiohttp.TCPConnector"):
                readings = await source.fetch_readings(assets=["WBTC"])

        assert list(readings) == ["WBTC"]
        url = mock_session.get.call_args[0][0]
        assert "ids[]=bbb222" in url
        assert "AAA111" not in url

    @pytest.mark.asyncio
    async def test_no_feeds_skips_request(self) -> None:
        source = PythPriceSource(PythConfig(hermes_url="https://x", feeds={}))
        with patch("collateral_engine.oracles.pyth.aiohttp.ClientSession") as session_cls:
            readings = await source.fetch_readings()
        assert readings == {}
        session_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_updates_feed(self, source: PythPriceSource) -> None:
        mock_session = _mock_session(data=_make_pyth_response(SAMPLE_ITEMS))
        feed = InMemoryPriceFeed()

        with patch("collateral_engine.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("collateral_engine.oracles.pyth.aiohttp.TCPConnector"):
                count = await source.refresh(feed)

        assert count == 2
        assert feed.assets() == ["WBTC", "WETH"]
        assert feed.latest_reading("WETH").answer == 2000 * 10**8


class TestParsePriceItem:
    def test_negative_exponent_becomes_decimals(self) -> None:
        reading = parse_price_item(
            {"price": {"price": "350000000", "expo": "-8", "publish_time": 10}}
        )
        assert reading == PriceReading(answer=350000000, updated_at=10, decimals=8)

    def test_positive_exponent_is_scaled(self) -> None:
        reading = parse_price_item({"price": {"price": "5", "expo": 2, "publish_time": 1}})
        assert reading == PriceReading(answer=500, updated_at=1, decimals=0)

    def test_missing_fields_default_to_zero(self) -> None:
        reading = parse_price_item({})
        assert reading == PriceReading(answer=0, updated_at=0, decimals=0)
