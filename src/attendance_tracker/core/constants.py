"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
MIN_PASSWORD_LENGTH = 6

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 500
DEFAULT_MY_LOGS_LIMIT = 30
DEFAULT_PERSON_LOGS_LIMIT = 100

AUTO_ABSENT_CUTOFF_HOUR = 13
AUTO_ABSENT_NOTE = "auto-marked"

MAPS_URL = "https://www.google.com/maps?q={lat},{lng}"
