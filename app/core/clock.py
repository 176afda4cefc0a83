"""
Time helpers shared by models and services
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching what DateTime columns store"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def whole_hours_between(start: datetime, end: datetime) -> int:
    """Whole hours elapsed from start to end, truncated toward zero"""
    return int((end - start).total_seconds() / 3600)
