# backend/consultly/core/constants.py
"""Application-wide constants."""

BRAND_NAME = "Consultly"

SLOT_INCREMENT_MINUTES = 30
CALENDAR_SYNC_WINDOW_DAYS = 90
CALENDAR_TOKEN_REFRESH_MARGIN_MINUTES = 5
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600

DEFAULT_CURRENCY = "HKD"

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_API_URL = "https://www.googleapis.com/calendar/v3"

DEFAULT_SERVICE_TIMEZONE = "Asia/Hong_Kong"

API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = "Booking, availability and calendar sync API for independent teachers"
API_VERSION = "1.0.0"
