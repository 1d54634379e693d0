"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .constants import PRICE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CollateralConfig:
    symbol: str = ""
    price_feed_id: str = ""


@dataclass(frozen=True)
class RiskConfig:
    price_timeout_seconds: int = PRICE_TIMEOUT_SECONDS


@dataclass(frozen=True)
class EngineConfig:
    address: str = "dsc-engine"
    debt_symbol: str = "DSC"
    collateral: tuple[CollateralConfig, ...] = ()
    risk: RiskConfig = field(default_factory=RiskConfig)

    @property
    def assets(self) -> list[str]:
        return [c.symbol for c in self.collateral]

    @property
    def price_feed_ids(self) -> list[str]:
        return [c.price_feed_id for c in self.collateral]


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class MonitorConfig:
    warning_health_factor: float = 1.5


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    pyth: PythConfig = field(default_factory=PythConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_collateral(raw: list[dict[str, Any]]) -> tuple[CollateralConfig, ...]:
    return tuple(
        CollateralConfig(
            symbol=str(c.get("symbol", "")),
            price_feed_id=str(c.get("price_feed_id", "")),
        )
        for c in raw
    )


def _build_engine(raw: dict[str, Any]) -> EngineConfig:
    risk_raw = raw.get("risk", {}) or {}
    return EngineConfig(
        address=raw.get("address", EngineConfig.address),
        debt_symbol=raw.get("debt_symbol", EngineConfig.debt_symbol),
        collateral=_build_collateral(raw.get("collateral", []) or []),
        risk=RiskConfig(
            price_timeout_seconds=int(
                risk_raw.get("price_timeout_seconds", PRICE_TIMEOUT_SECONDS)
            ),
        ),
    )


def _build_pyth(raw: dict[str, Any], engine: EngineConfig) -> PythConfig:
    # Feed ids come from the collateral list; the pyth section only
    # overrides the endpoint.
    return PythConfig(
        hermes_url=raw.get("hermes_url", PythConfig.hermes_url),
        feeds={c.symbol: c.price_feed_id for c in engine.collateral},
    )


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(
        warning_health_factor=float(raw.get("warning_health_factor", 1.5)),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {}) or {}
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    engine = _build_engine(raw.get("engine", {}) or {})
    cfg = AppConfig(
        engine=engine,
        pyth=_build_pyth(raw.get("pyth", {}) or {}, engine),
        monitor=_build_monitor(raw.get("monitor", {}) or {}),
        notifications=_build_notifications(raw.get("notifications", {}) or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.engine.collateral:
        raise ValueError("At least one collateral asset must be configured")

    seen: set[str] = set()
    for c in cfg.engine.collateral:
        if not c.symbol:
            raise ValueError("Collateral entry has no symbol")
        if c.symbol in seen:
            raise ValueError(f"Collateral '{c.symbol}' is configured twice")
        seen.add(c.symbol)
        if not c.price_feed_id:
            raise ValueError(f"Collateral '{c.symbol}' has no price_feed_id")

    if cfg.engine.risk.price_timeout_seconds <= 0:
        raise ValueError("risk.price_timeout_seconds must be positive")
