from decimal import Decimal


REAL_TOKEN_RESERVES = Decimal("800000000")
TOKEN_INCREMENT = Decimal("10000000")

DEFAULT_VIRTUAL_SOL_RESERVES = Decimal("30")
DEFAULT_VIRTUAL_TOKEN_RESERVES = Decimal("1000000000")

# Increment schedules longer than this are truncated.
MAX_INCREMENT_STEPS = 100

# Price curve sampling stops one increment short of full depletion,
# the price grows without bound as tokens sold approach the virtual token reserves.
PRICE_CURVE_TOKEN_CAP = Decimal("790000000")
DEFAULT_SAMPLE_COUNT = 100

PRICE_DISPLAY_SCALE = Decimal("1000000")
