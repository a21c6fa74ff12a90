"""Internal constants shared across the library."""

import re

DEFAULT_DB_FAMILY = "timeconditions"
DEFAULT_REFRESH_INTERVAL: float = 60.0
DEFAULT_STORE_TIMEOUT: float = 10.0
DEFAULT_UPCOMING_HOLIDAY_DAYS = 30

# ------------------------------------------------------------------
# Default weekly schedule (Mon-Fri 09:00-17:00)
# ------------------------------------------------------------------

DEFAULT_OPEN_TIME = "09:00"
DEFAULT_CLOSE_TIME = "17:00"

# Days scanned forward when projecting the next opening.
NEXT_CHANGE_HORIZON_DAYS = 7

# ------------------------------------------------------------------
# Input formats
# ------------------------------------------------------------------

TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
CONDITION_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")

# ------------------------------------------------------------------
# Stored payload schema
# ------------------------------------------------------------------

SCHEMA_VERSION = 1
