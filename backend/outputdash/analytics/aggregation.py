"""Group measurements into chart buckets and average their metrics.

Granularity by range:

    today            one bucket per measurement, 'H:MM'
    7days            calendar day,               'M/D'
    30days           Jan-1-anchored 7-day block, 'M/D-M/D'
    90days/year/all  calendar month,             'March 2025'

"showAll" mode skips grouping entirely and emits one bucket per
measurement labelled 'M/D H:MM'. Custom ranges pick the granularity of
the closest rolling range from the window's length.

Weeks here are NOT ISO weeks: week n of a year starts on Jan 1 + 7n, so
the last block of a year is cut short at Dec 31.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Iterable, Optional

from outputdash.analytics.date_range import span_days
from outputdash.analytics.filtering import completed_at
from outputdash.core.time_utils import clock, month_day, month_day_clock, start_of_day
from outputdash.schemas.measurement import Measurement
from outputdash.schemas.series import AggregationMode, Bucket, RangeKind, TimeWindow

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


class Granularity(str, Enum):
    measurement = "measurement"
    day = "day"
    week = "week"
    month = "month"


RANGE_GRANULARITY: dict[RangeKind, Granularity] = {
    RangeKind.today: Granularity.measurement,
    RangeKind.days7: Granularity.day,
    RangeKind.days30: Granularity.week,
    RangeKind.days90: Granularity.month,
    RangeKind.year: Granularity.month,
    RangeKind.all: Granularity.month,
}


def granularity_for_span(days: int) -> Granularity:
    if days <= 1:
        return Granularity.measurement
    if days <= 7:
        return Granularity.day
    if days <= 30:
        return Granularity.week
    return Granularity.month


def week_of_year(d: date) -> int:
    return (d - date(d.year, 1, 1)).days // 7


def week_block(year: int, week: int) -> tuple[date, date]:
    """First and last day of Jan-1-anchored week `week` of `year`."""
    start = date(year, 1, 1) + timedelta(days=7 * week)
    end = min(start + timedelta(days=6), date(year, 12, 31))
    return start, end


def _group_key(d: date, granularity: Granularity, tz: tzinfo):
    """(sort key, bucket key, display label, representative instant) for day `d`."""
    if granularity == Granularity.day:
        return (d.year, d.month, d.day), d.isoformat(), month_day(d), start_of_day(d, tz)
    if granularity == Granularity.week:
        n = week_of_year(d)
        first, last = week_block(d.year, n)
        label = f"{month_day(first)}-{month_day(last)}"
        return (d.year, n), f"{d.year}-W{n}", label, start_of_day(first, tz)
    first = d.replace(day=1)
    label = f"{MONTH_NAMES[d.month - 1]} {d.year}"
    return (d.year, d.month), f"{d.year}-{d.month:02d}", label, start_of_day(first, tz)


def series_fields(measurements: Iterable[Measurement]) -> list[str]:
    """Union of metric fields, in order of first appearance."""
    fields: dict[str, None] = {}
    for m in measurements:
        for metric in m.metrics:
            fields.setdefault(metric.field, None)
    return list(fields)


def average_metrics(measurements: list[Measurement], fields: list[str]) -> dict[str, Optional[float]]:
    """Mean of each field over the measurements that carry it; None if none do."""
    sums: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)
    for m in measurements:
        for metric in m.metrics:
            sums[metric.field] += metric.value
            counts[metric.field] += 1
    return {
        f: (sums[f] / counts[f]) if counts[f] else None
        for f in fields
    }


def _bucket(
    key: str,
    label: str,
    when: datetime,
    contributors: list[Measurement],
    fields: list[str],
) -> Bucket:
    head = contributors[0]
    return Bucket(
        bucket_key=key,
        display_label=label,
        representative_date=when,
        measurement_count=len(contributors),
        athlete_id=head.athlete_id,
        athlete_name=head.athlete_name,
        exercise_id=head.exercise_id,
        exercise_category=head.exercise_category,
        exercise_type=head.exercise_type,
        variant=head.variant,
        metric_averages=average_metrics(contributors, fields),
    )


def aggregate(
    measurements: Iterable[Measurement],
    range_kind: RangeKind,
    mode: AggregationMode,
    tz: tzinfo,
    window: Optional[TimeWindow] = None,
) -> list[Bucket]:
    """Turn a filtered measurement list into chart buckets.

    Measurements with an unparseable `completedDate` are skipped with a
    warning. Every bucket carries the same metric field set. Days, weeks
    and months without data produce no bucket.
    """
    range_kind = RangeKind(range_kind)
    mode = AggregationMode(mode)

    timed: list[tuple[datetime, Measurement]] = []
    for m in measurements:
        when = completed_at(m, tz)
        if when is not None:
            timed.append((when, m))
    if not timed:
        return []
    timed.sort(key=lambda pair: (pair[0], pair[1].id))
    fields = series_fields(m for _, m in timed)

    if mode == AggregationMode.show_all:
        return [_bucket(m.id, month_day_clock(when), when, [m], fields) for when, m in timed]

    if range_kind == RangeKind.custom:
        if window is not None:
            days = span_days(window)
        else:
            days = (timed[-1][0].date() - timed[0][0].date()).days + 1
        granularity = granularity_for_span(days)
    else:
        granularity = RANGE_GRANULARITY[range_kind]

    if granularity == Granularity.measurement:
        return [_bucket(m.id, clock(when), when, [m], fields) for when, m in timed]

    groups: dict[tuple, tuple[str, str, datetime, list[Measurement]]] = {}
    for when, m in timed:
        sort_key, key, label, rep = _group_key(when.date(), granularity, tz)
        if sort_key not in groups:
            groups[sort_key] = (key, label, rep, [])
        groups[sort_key][3].append(m)

    buckets = [
        _bucket(key, label, rep, contributors, fields)
        for _, (key, label, rep, contributors) in sorted(groups.items())
    ]
    logger.debug(
        "Aggregated %d measurements into %d %s buckets",
        len(timed),
        len(buckets),
        granularity.value,
    )
    return buckets
