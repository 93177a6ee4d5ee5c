"""
Wall clock for the configured reading timezone
"""
from datetime import datetime
from zoneinfo import ZoneInfo

from reading_tracker.config import settings


def local_now() -> datetime:
    """
    Current wall time in settings.TIMEZONE, returned naive
    
    Timestamps are stored without tzinfo; calendar days follow the
    configured zone.
    """
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)
