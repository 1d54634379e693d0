"""Scenario runner — replays a YAML list of operations against an in-memory engine.

Amounts and prices in scenario files are human units (``10`` WETH, ``2000``
USD) and are converted to fixed point on load. A rejected step is recorded
with its reason code and the run continues with the next step.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from ..config import EngineConfig
from ..constants import FEED_PRECISION, PRECISION
from ..engine import DSCEngine
from ..errors import EngineError
from ..models import PriceReading
from ..oracles.memory import InMemoryPriceFeed
from ..tokens import InMemoryToken
from .monitor import format_health_factor

logger = logging.getLogger(__name__)

UNLIMITED_ALLOWANCE = 2**256 - 1

REQUIRED_KEYS: dict[str, tuple[str, ...]] = {
    "set_price": ("asset", "price"),
    "advance_time": ("seconds",),
    "deposit": ("user", "asset", "amount"),
    "deposit_and_mint": ("user", "asset", "amount", "dsc"),
    "mint": ("user", "dsc"),
    "redeem": ("user", "asset", "amount"),
    "redeem_for_dsc": ("user", "asset", "amount", "dsc"),
    "burn": ("user", "dsc"),
    "liquidate": ("user", "liquidator", "asset", "debt"),
}


def to_wei(value: Any) -> int:
    return int(Decimal(str(value)) * PRECISION)


def to_feed_answer(value: Any) -> int:
    return int(Decimal(str(value)) * FEED_PRECISION)


class ScenarioClock:
    """Manually advanced clock so staleness can be scripted."""

    def __init__(self, now: float | None = None) -> None:
        self.now = float(now if now is not None else time.time())

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class Deployment:
    engine: DSCEngine
    feed: InMemoryPriceFeed
    collateral_tokens: dict[str, InMemoryToken]
    debt_token: InMemoryToken
    clock: ScenarioClock


@dataclass(frozen=True)
class StepResult:
    index: int
    op: str
    ok: bool
    reason: str = ""
    detail: str = ""


@dataclass
class ScenarioReport:
    steps: list[StepResult] = field(default_factory=list)

    @property
    def failed(self) -> list[StepResult]:
        return [s for s in self.steps if not s.ok]


def deploy_in_memory(
    config: EngineConfig,
    feed: InMemoryPriceFeed | None = None,
    clock: ScenarioClock | None = None,
) -> Deployment:
    """Wire an engine to in-memory token ledgers and a price feed."""
    feed = feed or InMemoryPriceFeed()
    clock = clock or ScenarioClock()
    collateral_tokens = {asset: InMemoryToken(asset) for asset in config.assets}
    debt_token = InMemoryToken(config.debt_symbol, owner=config.address)

    engine = DSCEngine(
        assets=config.assets,
        price_feed_ids=config.price_feed_ids,
        price_feed=feed,
        asset_tokens=collateral_tokens,
        debt_token=debt_token,
        address=config.address,
        price_timeout=config.risk.price_timeout_seconds,
        clock=clock,
    )
    return Deployment(engine, feed, collateral_tokens, debt_token, clock)


def _check_step(index: int, step: Any) -> None:
    if not isinstance(step, dict):
        raise ValueError(f"Scenario step {index} must be a mapping")
    op = str(step.get("op", ""))
    if op not in REQUIRED_KEYS:
        raise ValueError(f"Unknown scenario op '{op}'")
    for key in REQUIRED_KEYS[op]:
        if key not in step:
            raise ValueError(f"Scenario step {index} '{op}' missing '{key}'")


def load_scenario(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw.get("steps", []), list):
        raise ValueError("Scenario 'steps' must be a list")
    return raw


class ScenarioRunner:
    """Executes scenario steps against a deployment."""

    def __init__(self, deployment: Deployment) -> None:
        self._d = deployment

    def seed(self, scenario: dict[str, Any], use_prices: bool = True) -> None:
        """Apply starting prices and wallet balances."""
        if use_prices:
            for asset, price in (scenario.get("prices") or {}).items():
                self._set_price(asset, price)

        for user, balances in (scenario.get("balances") or {}).items():
            for asset, amount in balances.items():
                token = self._d.collateral_tokens.get(asset)
                if token is None:
                    raise ValueError(f"Scenario funds unknown asset '{asset}'")
                token.mint(token.owner, user, to_wei(amount))

    def run(self, scenario: dict[str, Any]) -> ScenarioReport:
        report = ScenarioReport()
        steps = scenario.get("steps") or []
        for index, step in enumerate(steps):
            _check_step(index, step)

        for index, step in enumerate(steps):
            op = str(step.get("op", ""))
            try:
                detail = self._execute(op, step)
            except EngineError as e:
                report.steps.append(StepResult(index, op, False, e.reason, str(e)))
                logger.info("Step %d %s rejected: %s", index, op, e.reason)
                continue
            report.steps.append(StepResult(index, op, True, detail=detail))
            logger.info("Step %d %s ok %s", index, op, detail)
        return report

    # ------------------------------------------------------------------
    # Step dispatch
    # ------------------------------------------------------------------

    def _approve(self, user: str) -> None:
        engine = self._d.engine.address
        for token in [*self._d.collateral_tokens.values(), self._d.debt_token]:
            token.approve(user, engine, UNLIMITED_ALLOWANCE)

    def _set_price(self, asset: str, price: Any) -> None:
        self._d.feed.set_reading(
            asset,
            PriceReading(answer=to_feed_answer(price), updated_at=int(self._d.clock())),
        )

    def _execute(self, op: str, step: dict[str, Any]) -> str:
        engine = self._d.engine

        if op == "set_price":
            self._set_price(step["asset"], step["price"])
            return f"{step['asset']}={step['price']}"
        if op == "advance_time":
            self._d.clock.advance(float(step["seconds"]))
            return f"+{step['seconds']}s"

        user = step.get("user", "")
        if user:
            self._approve(user)

        if op == "deposit":
            engine.deposit_collateral(user, step["asset"], to_wei(step["amount"]))
        elif op == "deposit_and_mint":
            engine.deposit_collateral_and_mint_dsc(
                user, step["asset"], to_wei(step["amount"]), to_wei(step["dsc"])
            )
        elif op == "mint":
            engine.mint_dsc(user, to_wei(step["dsc"]))
        elif op == "redeem":
            engine.redeem_collateral(user, step["asset"], to_wei(step["amount"]))
        elif op == "redeem_for_dsc":
            engine.redeem_collateral_for_dsc(
                user, step["asset"], to_wei(step["amount"]), to_wei(step["dsc"])
            )
        elif op == "burn":
            engine.burn_dsc(user, to_wei(step["dsc"]))
        elif op == "liquidate":
            liquidator = step["liquidator"]
            self._approve(liquidator)
            result = engine.liquidate(
                liquidator, step["asset"], user, to_wei(step["debt"])
            )
            return (
                f"seized {result.collateral_seized / PRECISION:.6f} {result.asset} "
                f"(bonus {result.bonus_collateral / PRECISION:.6f})"
            )
        else:
            raise ValueError(f"Unknown scenario op '{op}'")

        try:
            return f"HF {format_health_factor(engine.get_health_factor(user))}"
        except EngineError as e:
            return f"HF unavailable ({e.reason})"
