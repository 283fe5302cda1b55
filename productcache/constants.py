"""
productcache Global Constants

Centralized location for all system-wide constants used across the package.
"""

from datetime import datetime, timezone
from typing import Optional

# Scope Constants
# Shop id of the platform operator; it sees products of every shop.
PLATFORM = 0


# Timestamp Functions
def get_current_timestamp() -> datetime:
    """Get current timestamp with UTC timezone.

    Returns:
        datetime: Current UTC timestamp

    Note: Use this function instead of a constant to get real-time timestamps.
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps read back from the row store."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# Application Constants
APP_NAME = "productcache"
APP_VERSION = "1.0.0"
