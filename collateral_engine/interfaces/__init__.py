"""Protocol interfaces for the engine's external collaborators."""
from .notifier import Notifier
from .price_feed import PriceFeed
from .tokens import AssetToken, DebtToken

__all__ = ["AssetToken", "DebtToken", "Notifier", "PriceFeed"]
