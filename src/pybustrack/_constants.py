"""Internal constants shared across the library."""

BASE_URL = "http://localhost:8080"
USER_AGENT = "pybustrack"

#: Watermark returned by an empty store.
EPOCH_ZERO = 0

#: Maximum notifications kept locally after each write.
MAX_RETAINED_NOTIFICATIONS = 30

#: Literal payload the position feed sends when it has nothing to report.
NO_DATA_PLACEHOLDER = "undefined"

NOTIFICATIONS_ENDPOINT = "/api/notifications"
STREAM_ENDPOINT = "/substream"
LOCATION_ENDPOINT = "/get-location/obu"
ROUTE_PATH_ENDPOINT = "/get-path"
REPORT_LOCATION_ENDPOINT = "/update-location"

#: Message sent by the service worker when a new notification was pushed.
NEW_NOTIFICATION_MESSAGE = "NEW_NOTIFICATION"

STREAM_ERROR_MESSAGE = "Live location connection failed. Try refreshing."

# ------------------------------------------------------------------
# Display timing
# ------------------------------------------------------------------

ANIMATION_DURATION_MS = 8000
STALENESS_INTERVAL_S = 1.0
STALE_AFTER_S = 5.0
RELOAD_PROMPT_AFTER_S = 10.0
REPORT_INTERVAL_S = 5.0
