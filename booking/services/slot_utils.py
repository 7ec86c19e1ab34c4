"""
slot_utils.py
-------------
Time helpers shared by the scheduling services:
- scheduling configuration (slot interval, optional default working hours),
  read from settings.SCHEDULING and overridable via configmgr.SystemSetting
- timezone-aware construction of datetimes from (date, time-of-day)
- the half-open interval overlap predicate
"""

from datetime import datetime, time, timedelta

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date

DEFAULT_SLOT_INTERVAL_MINUTES = 30


def _parse_hhmm(value: str) -> time:
    h, m = value.strip().split(":")[:2]
    return time(int(h), int(m))


def _system_setting(key):
    from configmgr.models import SystemSetting

    row = SystemSetting.objects.filter(key=key).first()
    return row.value if row else None


def get_slot_interval_minutes() -> int:
    """
    Step between candidate slot starts.
    SystemSetting SLOT_INTERVAL_MINUTES wins over settings.SCHEDULING.
    """
    configured = getattr(settings, "SCHEDULING", {}).get(
        "SLOT_INTERVAL_MINUTES", DEFAULT_SLOT_INTERVAL_MINUTES
    )
    override = _system_setting("SLOT_INTERVAL_MINUTES")
    if override:
        try:
            configured = int(override)
        except ValueError:
            pass
    return configured if configured and configured > 0 else DEFAULT_SLOT_INTERVAL_MINUTES


def get_default_working_hours():
    """
    Return (start, end) time objects used for staff with no schedule rows at all,
    or None when no default is configured (the normal case).
    """
    start_raw = _system_setting("DEFAULT_WORK_START")
    end_raw = _system_setting("DEFAULT_WORK_END")
    if not (start_raw and end_raw):
        configured = getattr(settings, "SCHEDULING", {}).get("DEFAULT_WORKING_HOURS")
        if not configured:
            return None
        start_raw, end_raw = configured

    try:
        start, end = _parse_hhmm(start_raw), _parse_hhmm(end_raw)
    except (ValueError, AttributeError):
        return None
    if start >= end:
        return None
    return start, end


def make_aware(dt_naive: datetime):
    """
    Convert a naive datetime to an aware one using Django's current timezone.
    """
    if timezone.is_aware(dt_naive):
        return dt_naive
    return timezone.make_aware(dt_naive, timezone.get_current_timezone())


def combine(day, tod: time):
    """Aware datetime for time-of-day `tod` on calendar date `day`."""
    return make_aware(datetime.combine(day, tod))


def local_date(dt):
    """Calendar date of an aware datetime in the current timezone."""
    return timezone.localtime(dt).date()


def day_range(day):
    """Aware [start, end) bounds of a calendar date."""
    start = combine(day, time(0, 0))
    return start, start + timedelta(days=1)


def coerce_date(value):
    """
    Accept a date or a 'YYYY-MM-DD' string (anything after a 'T' or space is
    trimmed). Returns None when the value can't be parsed.
    """
    if value is None:
        return None
    if hasattr(value, "isoweekday") and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    raw = str(value).strip()
    for sep in ("T", " "):
        if sep in raw:
            raw = raw.split(sep, 1)[0]
    try:
        return parse_date(raw)
    except ValueError:
        return None


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    """
    Half-open interval overlap: [a) and [b) overlap iff start_a < end_b and start_b < end_a.
    Touching endpoints (back-to-back) do not overlap.
    """
    return start_a < end_b and start_b < end_a
