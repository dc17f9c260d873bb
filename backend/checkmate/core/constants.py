"""Shared application constants.

Centralizes calendar and recurrence values used across the engine so we can
document and adjust them in one place.
"""

# Day-of-week numbering: 0 = Sunday ... 6 = Saturday.
SUNDAY = 0
MONDAY = 1
TUESDAY = 2
WEDNESDAY = 3
THURSDAY = 4
FRIDAY = 5
SATURDAY = 6

WEEKDAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

DAYS_PER_WEEK = 7

# Period scopes used in miss-marker keys
SCOPE_DAY = "day"
SCOPE_WEEK = "week"

# Hard cap for forward scans (one leap year of days)
MAX_SCAN_DAYS = 366

# Recurrence kinds as persisted in goals.recurrence_kind
KIND_NONE = "none"
KIND_DAILY = "daily"
KIND_WEEKLY = "weekly"
KIND_CUSTOM_DAYS = "custom_days"
KIND_X_PER_WEEK = "x_per_week"
