"""Delivery schedule constants."""

# Default daily grid offered when a whole day is opened for deliveries.
DEFAULT_TIME_SLOTS: tuple[str, ...] = (
    "08:00",
    "09:00",
    "10:00",
    "11:00",
    "14:00",
    "15:00",
    "16:00",
    "17:00",
)
