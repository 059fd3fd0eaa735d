"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

APP_NAME = "CICO"

MAX_SHIFT_HOURS = 12
AUTO_CLOSE_DESCRIPTION = f"[Auto-closed: Shift exceeded {MAX_SHIFT_HOURS} hours]"

PIN_MAX_ATTEMPTS = 5
PIN_WINDOW_SECONDS = 15 * 60
LOOKUP_MAX_REQUESTS = 20
LOOKUP_WINDOW_SECONDS = 60
RATE_LIMIT_CLEANUP_THRESHOLD = 5000

FACE_MATCH_THRESHOLD = 0.55
FACE_EMBEDDING_SIZE = 128
FACE_VERIFICATION_VERSION = "embedding-v1"

DEFAULT_TIMEZONE = "America/Los_Angeles"
WEEKLY_REGULAR_MINUTES = 40 * 60

PHOTO_BUCKET = "timeclock-photos"
SIGNED_URL_TTL_SECONDS = 3600

OTHER_TASK_CODES = ("8050", "OTH")
AUTO_OTHER = "auto-other"

DEFAULT_HISTORY_LIMIT = 200
DEFAULT_REPORT_DAYS = 7
