"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

PRESENT_MIN_HOURS = 4.0
HALF_DAY_MIN_HOURS = 2.0
HALF_DAY_WEIGHT = 0.5

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

DEFAULT_BULK_WORKERS = 4
