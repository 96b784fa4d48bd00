import logging
from datetime import date, datetime, tzinfo
from typing import Optional, Sequence

from outputdash.analytics.aggregation import aggregate, series_fields
from outputdash.analytics.axes import classify_axes
from outputdash.analytics.date_range import resolve
from outputdash.analytics.filtering import filter_measurements, reconcile_exercise_selection
from outputdash.analytics.presenter import display_name, metric_label, unit
from outputdash.schemas.measurement import ExerciseMetadata, Measurement
from outputdash.schemas.series import (
    AggregationMode,
    MetricInfo,
    RangeKind,
    SeriesResponse,
)

logger = logging.getLogger(__name__)


def build_series(
    measurements: Sequence[Measurement],
    exercises: Sequence[ExerciseMetadata],
    range_kind: RangeKind,
    mode: AggregationMode,
    now: datetime,
    tz: tzinfo,
    selected_exercise: Optional[str] = None,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> SeriesResponse:
    """Snapshot + selections -> chart-ready series.

    Resolves the window, narrows the snapshot, re-picks the exercise when
    the selected one has no data, buckets the selected exercise and
    splits its metric fields between the two axes. Raises InvalidRange
    for bad custom bounds. No data in range yields empty buckets.
    """
    range_kind = RangeKind(range_kind)
    mode = AggregationMode(mode)
    window = resolve(range_kind, now, custom_start, custom_end, tz=tz)
    filtered = filter_measurements(measurements, window)
    selected = reconcile_exercise_selection(
        selected_exercise, exercises, filtered.exercise_ids_with_data
    )

    chosen = [m for m in filtered.in_range if m.exercise_id == selected] if selected else []
    buckets = aggregate(chosen, range_kind, mode, window.start.tzinfo, window=window)
    fields = series_fields(chosen)
    axes = classify_axes(buckets, fields)

    exercise = next((e for e in exercises if e.id == selected), None)
    secondary = set(axes.secondary)
    metrics = [
        MetricInfo(
            field=f,
            display_name=display_name(f),
            unit=unit(f, exercise),
            label=metric_label(f, exercise),
            axis="secondary" if f in secondary else "primary",
        )
        for f in fields
    ]
    logger.info(
        "Series for %s/%s: %d of %d measurements in range, exercise=%s, %d buckets",
        range_kind.value,
        mode.value,
        len(filtered.in_range),
        len(measurements),
        selected,
        len(buckets),
    )
    return SeriesResponse(
        window=window,
        mode=mode,
        exercise_ids_with_data=sorted(filtered.exercise_ids_with_data),
        selected_exercise_id=selected,
        buckets=buckets,
        metrics=metrics,
        axes=axes,
    )
