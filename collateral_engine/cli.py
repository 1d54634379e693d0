"""Command-line interface for the collateral engine."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import AppConfig, load_config
from .errors import EngineError
from .interfaces.notifier import Notifier
from .logging_setup import configure_logging
from .notifications import TelegramNotifier
from .oracles import InMemoryPriceFeed, OracleGuard, PythPriceSource
from .services import LiquidationMonitor, ScenarioRunner, deploy_in_memory, load_scenario
from .services.scenario import ScenarioClock


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="collateral-engine",
        description="Over-collateralized synthetic-asset engine",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("prices", help="Fetch collateral prices and run them through the oracle guard")

    run_parser = sub.add_parser("run", help="Replay a scenario file, then check account health")
    run_parser.add_argument("scenario", help="Path to a scenario YAML file")
    run_parser.add_argument(
        "--live-prices",
        action="store_true",
        help="Seed prices from Pyth instead of the scenario file",
    )

    return parser


def _build_notifiers(config: AppConfig) -> list[Notifier]:
    notifiers: list[Notifier] = []
    if config.notifications.telegram.enabled:
        notifiers.append(TelegramNotifier(config.notifications.telegram))
    return notifiers


async def _prices(config: AppConfig) -> int:
    feed = InMemoryPriceFeed()
    await PythPriceSource(config.pyth).refresh(feed)
    guard = OracleGuard(feed, timeout=config.engine.risk.price_timeout_seconds)

    status = 0
    for asset in config.engine.assets:
        try:
            reading = guard.read(asset)
        except EngineError as e:
            print(f"{asset:<8} {e.reason}: {e}")
            status = 1
            continue
        price = reading.answer / 10**reading.decimals
        print(f"{asset:<8} ${price:,.4f}  (updated {reading.updated_at})")
    return status


async def _run_scenario(config: AppConfig, path: str, live_prices: bool) -> int:
    scenario = load_scenario(path)
    clock = None if live_prices else ScenarioClock(scenario.get("now"))
    deployment = deploy_in_memory(config.engine, clock=clock)
    monitor = LiquidationMonitor(
        deployment.engine,
        _build_notifiers(config),
        warning_health_factor=config.monitor.warning_health_factor,
    )

    if live_prices:
        await PythPriceSource(config.pyth).refresh(deployment.feed)

    runner = ScenarioRunner(deployment)
    runner.seed(scenario, use_prices=not live_prices)
    report = runner.run(scenario)

    for step in report.steps:
        mark = "ok " if step.ok else "REJ"
        suffix = step.reason if not step.ok else step.detail
        print(f"[{step.index:>3}] {mark} {step.op:<18} {suffix}")

    await monitor.check_and_alert()
    return 0


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "prices":
        return await _prices(config)
    if args.command == "run":
        return await _run_scenario(config, args.scenario, args.live_prices)

    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
