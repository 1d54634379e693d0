"""Fixed-point scales and risk parameters.

All amounts are integers with 18 decimals unless noted otherwise.
"""

PRECISION = 10**18
FEED_PRECISION = 10**8
ADDITIONAL_FEED_PRECISION = 10**10

# Only 50% of nominal collateral value counts toward the health factor.
LIQUIDATION_THRESHOLD = 50
LIQUIDATION_PRECISION = 100
LIQUIDATION_BONUS = 10  # percent of seized collateral

MIN_HEALTH_FACTOR = PRECISION
MAX_HEALTH_FACTOR = 2**256 - 1

PRICE_TIMEOUT_SECONDS = 3 * 60 * 60
