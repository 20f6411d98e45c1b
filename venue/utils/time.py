"""
venue/utils/time.py
───────────────────
One clock for the whole service.

All timestamps are stored as naive UTC ``DateTime`` columns. Calendar
dates (event date, payment date) are stored as UTC midnight of that day,
which makes day-range searches exact: ``[midnight, midnight + 1 day)``.
"""
from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Current instant as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_midnight(value) -> datetime:
    """
    Normalise a date-ish value to naive UTC midnight.

    Accepts ``date``/``datetime`` objects, ``'YYYY-MM-DD'`` and ISO datetime
    strings (only the date part is kept). Raises ValueError otherwise.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return datetime(value.year, value.month, value.day)
    if hasattr(value, 'year') and hasattr(value, 'month') and hasattr(value, 'day'):
        return datetime(value.year, value.month, value.day)

    text = str(value or '').strip()
    if not text:
        raise ValueError('Date is required.')
    day = datetime.strptime(text[:10], '%Y-%m-%d')
    return day


def day_range(value):
    """Return ``(start, end)`` covering the UTC day of ``value``; end is exclusive."""
    start = utc_midnight(value)
    return start, start + timedelta(days=1)


def isoformat_utc(value):
    """Serialise a stored naive-UTC datetime as ISO 8601 with a ``Z`` suffix."""
    if value is None:
        return None
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f'{value.microsecond // 1000:03d}Z'
