"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from collateral_engine.config import (
    AppConfig,
    CollateralConfig,
    EngineConfig,
    MonitorConfig,
    NotificationsConfig,
    PythConfig,
    RiskConfig,
    TelegramConfig,
)
from collateral_engine.engine import DSCEngine
from collateral_engine.models import PriceReading
from collateral_engine.oracles.memory import InMemoryPriceFeed
from collateral_engine.services.scenario import ScenarioClock
from collateral_engine.tokens import InMemoryToken

NOW = 1_700_000_000
ENGINE = "dsc-engine"
USER = "alice"
LIQUIDATOR = "bob"

ETH_USD_PRICE = 2000 * 10**8
BTC_USD_PRICE = 1000 * 10**8

COLLATERAL_AMOUNT = 10 * 10**18
AMOUNT_TO_MINT = 100 * 10**18
COLLATERAL_TO_COVER = 20 * 10**18
STARTING_BALANCE = 50 * 10**18
UNLIMITED = 2**256 - 1


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> ScenarioClock:
    return ScenarioClock(NOW)


@pytest.fixture()
def feed() -> InMemoryPriceFeed:
    return InMemoryPriceFeed(
        {
            "WETH": PriceReading(answer=ETH_USD_PRICE, updated_at=NOW),
            "WBTC": PriceReading(answer=BTC_USD_PRICE, updated_at=NOW),
        }
    )


@pytest.fixture()
def weth() -> InMemoryToken:
    return InMemoryToken("WETH")


@pytest.fixture()
def wbtc() -> InMemoryToken:
    return InMemoryToken("WBTC")


@pytest.fixture()
def dsc() -> InMemoryToken:
    return InMemoryToken("DSC", owner=ENGINE)


@pytest.fixture()
def dsce(
    feed: InMemoryPriceFeed,
    weth: InMemoryToken,
    wbtc: InMemoryToken,
    dsc: InMemoryToken,
    clock: ScenarioClock,
) -> DSCEngine:
    for user in (USER, LIQUIDATOR):
        for token in (weth, wbtc):
            token.mint("", user, STARTING_BALANCE)
        for token in (weth, wbtc, dsc):
            token.approve(user, ENGINE, UNLIMITED)

    return DSCEngine(
        assets=["WETH", "WBTC"],
        price_feed_ids=["eth-usd", "btc-usd"],
        price_feed=feed,
        asset_tokens={"WETH": weth, "WBTC": wbtc},
        debt_token=dsc,
        address=ENGINE,
        clock=clock,
    )


@pytest.fixture()
def deposited(dsce: DSCEngine) -> DSCEngine:
    dsce.deposit_collateral(USER, "WETH", COLLATERAL_AMOUNT)
    return dsce


@pytest.fixture()
def deposited_and_minted(dsce: DSCEngine) -> DSCEngine:
    dsce.deposit_collateral_and_mint_dsc(USER, "WETH", COLLATERAL_AMOUNT, AMOUNT_TO_MINT)
    return dsce


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_engine_config() -> EngineConfig:
    return EngineConfig(
        address=ENGINE,
        debt_symbol="DSC",
        collateral=(
            CollateralConfig(symbol="WETH", price_feed_id="eth-usd"),
            CollateralConfig(symbol="WBTC", price_feed_id="btc-usd"),
        ),
        risk=RiskConfig(price_timeout_seconds=10800),
    )


@pytest.fixture()
def sample_app_config(sample_engine_config: EngineConfig) -> AppConfig:
    return AppConfig(
        engine=sample_engine_config,
        pyth=PythConfig(
            hermes_url="https://hermes.example.com",
            feeds={"WETH": "eth-usd", "WBTC": "btc-usd"},
        ),
        monitor=MonitorConfig(warning_health_factor=1.5),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    engine:
      address: dsc-engine
      debt_symbol: DSC
      collateral:
        - symbol: WETH
          price_feed_id: "aaa"
        - symbol: WBTC
          price_feed_id: "bbb"
      risk:
        price_timeout_seconds: 3600
    pyth:
      hermes_url: "https://hermes.example.com"
    monitor:
      warning_health_factor: 2.0
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: 999
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
