"""Symbolic range selector -> concrete inclusive window.

Every bound is built in one calendar zone (the configured
``settings.timezone``). "Today" is always part of the window.
"""

import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional

from outputdash.core.constants import MAX_RANGE_DAYS
from outputdash.core.time_utils import end_of_day, start_of_day, to_zone
from outputdash.schemas.series import RangeKind, TimeWindow

logger = logging.getLogger(__name__)


class InvalidRange(ValueError):
    """Custom range bounds are missing or start after end."""


# Days before today where each rolling window starts.
# year/all are capped like 90days: the measurements API rejects longer spans.
LOOKBACK_DAYS: dict[RangeKind, int] = {
    RangeKind.today: 0,
    RangeKind.days7: 6,
    RangeKind.days30: 29,
    RangeKind.days90: MAX_RANGE_DAYS - 1,
    RangeKind.year: MAX_RANGE_DAYS - 1,
    RangeKind.all: MAX_RANGE_DAYS - 1,
}


def resolve(
    range_kind: RangeKind,
    now: datetime,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> TimeWindow:
    """Compute the [start, end] window for `range_kind` as seen at `now`.

    `now` is converted into `tz` (or kept in its own zone when `tz` is None);
    a naive `now` is taken to already be wall time in `tz`.
    """
    range_kind = RangeKind(range_kind)
    if tz is None:
        tz = now.tzinfo or timezone.utc
    if now.tzinfo is None:
        now = now.replace(tzinfo=tz)
    else:
        now = to_zone(now, tz)

    if range_kind == RangeKind.custom:
        if custom_start is None or custom_end is None:
            raise InvalidRange("custom range requires both start and end dates")
        if custom_start > custom_end:
            raise InvalidRange(
                f"custom start {custom_start.isoformat()} is after end {custom_end.isoformat()}"
            )
        return TimeWindow(
            start=start_of_day(custom_start, tz),
            end=end_of_day(custom_end, tz),
            kind=range_kind,
        )

    today = now.date()
    first_day = today - timedelta(days=LOOKBACK_DAYS[range_kind])
    window = TimeWindow(
        start=start_of_day(first_day, tz),
        end=end_of_day(today, tz),
        kind=range_kind,
    )
    logger.debug("Resolved %s to %s .. %s", range_kind.value, window.start, window.end)
    return window


def span_days(window: TimeWindow) -> int:
    """Number of calendar days the window covers, inclusive."""
    return (window.end.date() - window.start.date()).days + 1
