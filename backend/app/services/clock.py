"""
Wall clock for request handlers.

Handlers read the clock once per request through the get_now dependency
and pass the value down; the scheduling core never reads it.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from ..config import settings


def now_local() -> datetime:
    """Current shop-local time as a naive datetime (bookings are stored naive)."""
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


# FastAPI dependency
def get_now() -> datetime:
    return now_local()
