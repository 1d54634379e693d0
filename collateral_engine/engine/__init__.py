"""Collateral and debt accounting engine."""
from .core import DSCEngine
from .health import HealthFactorEvaluator, PriceConverter, calculate_health_factor
from .ledgers import CollateralLedger, DebtLedger
from .liquidation import LiquidationEngine

__all__ = [
    "CollateralLedger",
    "DSCEngine",
    "DebtLedger",
    "HealthFactorEvaluator",
    "LiquidationEngine",
    "PriceConverter",
    "calculate_health_factor",
]
