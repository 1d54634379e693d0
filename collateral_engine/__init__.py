"""Over-collateralized synthetic-asset accounting engine."""
from .engine import DSCEngine

__all__ = ["DSCEngine"]
