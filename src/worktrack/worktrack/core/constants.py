"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EDIT_GRANT_HOURS = 24

MAX_REASON_LENGTH = 500
MAX_TASK_LENGTH = 500
MAX_NOTES_LENGTH = 1000
MAX_NAME_LENGTH = 255

MIN_HOURS_WORKED = 0.1
MAX_HOURS_WORKED = 24

MAX_MANUAL_MINUTES = 1440

DEFAULT_HISTORY_DAYS = 7
DEFAULT_TOKEN_HOURS = 24

RECENT_ACTIVITY_LIMIT = 20
PENDING_PREVIEW_LIMIT = 10
