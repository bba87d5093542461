"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EDIT_WINDOW_HOURS = 48
DEFAULT_ATTENDANCE_THRESHOLD = 75
DEFAULT_TREND_MONTHS = 6
SETTINGS_ROW_ID = 1
