"""Per-exercise statistics over a window (sessions and avg/max/min per metric)."""

from datetime import tzinfo
from typing import Optional, Sequence

from outputdash.analytics.filtering import completed_at
from outputdash.analytics.presenter import unit
from outputdash.schemas.measurement import ExerciseMetadata, Measurement
from outputdash.schemas.series import ExerciseSummary, MetricStats, SummaryResponse, TimeWindow


def _exercise_summary(
    exercise_id: str,
    rows: list[Measurement],
    exercise: Optional[ExerciseMetadata],
) -> ExerciseSummary:
    # Metadata decides which fields are reported and their names; fall back to
    # whatever the measurements carry when the exercise is unknown.
    if exercise is not None and exercise.metrics:
        described = [(m.field, m.name) for m in exercise.metrics]
    else:
        seen: dict[str, str] = {}
        for r in rows:
            for metric in r.metrics:
                seen.setdefault(metric.field, metric.field)
        described = list(seen.items())

    stats: list[MetricStats] = []
    for field, name in described:
        values = [metric.value for r in rows for metric in r.metrics if metric.field == field]
        if not values:
            continue
        stats.append(
            MetricStats(
                field=field,
                name=name,
                unit=unit(field, exercise),
                count=len(values),
                avg=sum(values) / len(values),
                max=max(values),
                min=min(values),
            )
        )
    return ExerciseSummary(
        exercise_id=exercise_id,
        exercise_name=exercise.name if exercise else exercise_id,
        category=exercise.category if exercise else "Unknown",
        sessions=len(rows),
        metrics=stats,
    )


def summarize(
    measurements: Sequence[Measurement],
    exercises: Sequence[ExerciseMetadata],
    window: TimeWindow,
    tz: tzinfo,
) -> SummaryResponse:
    """Summarize already-filtered measurements, one entry per exercise."""
    by_exercise: dict[str, list[Measurement]] = {}
    for m in measurements:
        by_exercise.setdefault(m.exercise_id, []).append(m)
    meta = {e.id: e for e in exercises}

    dates = [d for d in (completed_at(m, tz) for m in measurements) if d is not None]
    return SummaryResponse(
        window=window,
        total_measurements=len(measurements),
        first_date=min(dates).date() if dates else None,
        last_date=max(dates).date() if dates else None,
        exercises=[
            _exercise_summary(ex_id, rows, meta.get(ex_id))
            for ex_id, rows in by_exercise.items()
        ],
    )
