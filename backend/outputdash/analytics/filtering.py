import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Iterable, Optional, Sequence

from outputdash.core.time_utils import parse_completed_date
from outputdash.schemas.measurement import ExerciseMetadata, Measurement
from outputdash.schemas.series import TimeWindow

logger = logging.getLogger(__name__)


@dataclass
class FilterResult:
    in_range: list[Measurement] = field(default_factory=list)
    exercise_ids_with_data: set[str] = field(default_factory=set)


def completed_at(measurement: Measurement, tz: tzinfo) -> Optional[datetime]:
    """Parse `completedDate` into `tz`; None (with a warning) when malformed."""
    try:
        return parse_completed_date(measurement.completed_date, tz)
    except (TypeError, ValueError):
        logger.warning(
            "Skipping measurement %s: unparseable completedDate %r",
            measurement.id,
            measurement.completed_date,
        )
        return None


def in_window(completed: datetime, window: TimeWindow) -> bool:
    # Windows cover whole calendar days in their zone. Comparing local dates
    # keeps "today" and the rolling windows in agreement on the last day.
    return window.contains_date(completed.date())


def filter_measurements(measurements: Iterable[Measurement], window: TimeWindow) -> FilterResult:
    """Keep measurements completed inside `window` (inclusive on both ends).

    Returns the kept measurements in input order plus the ids of every
    exercise with at least one measurement in range.
    """
    tz = window.start.tzinfo
    result = FilterResult()
    for m in measurements:
        completed = completed_at(m, tz)
        if completed is None or not in_window(completed, window):
            continue
        result.in_range.append(m)
        result.exercise_ids_with_data.add(m.exercise_id)
    logger.debug(
        "Filtered to %d measurements across %d exercises for %s",
        len(result.in_range),
        len(result.exercise_ids_with_data),
        window.kind.value,
    )
    return result


def available_exercises(
    exercises: Sequence[ExerciseMetadata], exercise_ids_with_data: set[str]
) -> list[ExerciseMetadata]:
    """Exercise metadata restricted to exercises that have data, metadata order kept."""
    return [e for e in exercises if e.id in exercise_ids_with_data]


def reconcile_exercise_selection(
    selected: Optional[str],
    exercises: Sequence[ExerciseMetadata],
    exercise_ids_with_data: set[str],
) -> Optional[str]:
    """Pick the exercise to display after the window changed.

    Keeps `selected` when it still has data; otherwise falls back to the
    first available exercise, or None when nothing is available.
    """
    if selected and selected in exercise_ids_with_data:
        return selected
    available = available_exercises(exercises, exercise_ids_with_data)
    if available:
        if selected:
            logger.info(
                "Selected exercise %s has no data in this range, switching to %s",
                selected,
                available[0].id,
            )
        return available[0].id
    return None
