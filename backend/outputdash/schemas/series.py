from datetime import date, datetime
from enum import Enum
from typing import Optional

from outputdash.schemas.measurement import CamelModel, ExerciseType


class RangeKind(str, Enum):
    today = "today"
    days7 = "7days"
    days30 = "30days"
    days90 = "90days"
    year = "year"
    all = "all"
    custom = "custom"


class AggregationMode(str, Enum):
    aggregate = "aggregate"
    show_all = "showAll"


class TimeWindow(CamelModel):
    """Inclusive [start, end] in the calendar zone, tagged with the kind that built it."""

    start: datetime
    end: datetime
    kind: RangeKind

    @property
    def is_single_day(self) -> bool:
        return self.start.date() == self.end.date()

    def contains_date(self, d: date) -> bool:
        return self.start.date() <= d <= self.end.date()


class Bucket(CamelModel):
    """One chart row: a single measurement or a day/week/month group."""

    bucket_key: str
    display_label: str
    representative_date: datetime
    measurement_count: int
    athlete_id: str
    athlete_name: str
    exercise_id: str
    exercise_category: str
    exercise_type: ExerciseType
    variant: str
    # Every field of the series is present; None when no contributor carried it
    metric_averages: dict[str, Optional[float]]


class AxisGroups(CamelModel):
    primary: list[str] = []
    secondary: list[str] = []


class MetricInfo(CamelModel):
    field: str
    display_name: str
    unit: str
    label: str
    axis: str  # 'primary' | 'secondary'


class SeriesResponse(CamelModel):
    window: TimeWindow
    mode: AggregationMode
    exercise_ids_with_data: list[str]
    selected_exercise_id: Optional[str] = None
    buckets: list[Bucket]
    metrics: list[MetricInfo]
    axes: AxisGroups
    # True when the upstream window had to be shortened
    limited: bool = False


class MetricStats(CamelModel):
    field: str
    name: str
    unit: str
    count: int
    avg: float
    max: float
    min: float


class ExerciseSummary(CamelModel):
    exercise_id: str
    exercise_name: str
    category: str
    sessions: int
    metrics: list[MetricStats]


class SummaryResponse(CamelModel):
    window: TimeWindow
    total_measurements: int
    first_date: Optional[date] = None
    last_date: Optional[date] = None
    exercises: list[ExerciseSummary]
    limited: bool = False
