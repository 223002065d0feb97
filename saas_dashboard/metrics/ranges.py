"""Date range helpers."""
from datetime import date, timedelta
from typing import Iterator, Optional

PRESET_DAYS = {
    "7d": 7,
    "14d": 14,
    "30d": 30,
    "90d": 90,
}
DEFAULT_PRESET = "30d"
ALL_TIME_START = date(2023, 1, 1)


def iter_days(start_date: date, end_date: date) -> Iterator[date]:
    """Yield every calendar day in [start_date, end_date]."""
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def resolve_time_range(
    preset: str,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
    today: Optional[date] = None,
) -> tuple[date, date]:
    """Turn a dashboard range preset into (start_date, end_date).

    Presets are snapped to whole days ending today, so every request made
    on the same day resolves to the same range. Unknown presets, and
    ``custom`` without both bounds, fall back to the last 30 days.
    """
    today = today or date.today()

    if preset == "custom" and custom_start and custom_end:
        if custom_start > custom_end:
            raise ValueError(f"start date {custom_start} is after end date {custom_end}")
        return custom_start, custom_end

    if preset == "ytd":
        return date(today.year, 1, 1), today

    if preset == "all":
        return ALL_TIME_START, today

    days = PRESET_DAYS.get(preset, PRESET_DAYS[DEFAULT_PRESET])
    return today - timedelta(days=days), today
