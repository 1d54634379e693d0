"""Service modules"""
from .monitor import AccountHealth, LiquidationMonitor
from .scenario import ScenarioRunner, deploy_in_memory, load_scenario

__all__ = [
    "AccountHealth",
    "LiquidationMonitor",
    "ScenarioRunner",
    "deploy_in_memory",
    "load_scenario",
]
