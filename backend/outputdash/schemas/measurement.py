from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from outputdash.core.constants import DEFAULT_VARIANT


class CamelModel(BaseModel):
    """Base for models exchanged with the Output Sports API (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ExerciseType(str, Enum):
    output = "Output"
    custom = "Custom"


class MetricValue(CamelModel):
    field: str
    value: float


class Measurement(CamelModel):
    """One completed exercise attempt as returned by the measurements endpoint."""

    id: str
    athlete_id: str
    athlete_first_name: str = ""
    athlete_last_name: str = ""
    exercise_id: str
    exercise_category: str = ""
    exercise_type: ExerciseType = ExerciseType.output
    # Kept as the raw string; parsed (and possibly rejected) during filtering
    completed_date: Optional[str] = None
    variant: str = DEFAULT_VARIANT
    metrics: list[MetricValue] = []

    @field_validator("variant", mode="before")
    @classmethod
    def _default_variant(cls, v):
        if v in (None, ""):
            return DEFAULT_VARIANT
        return v

    @field_validator("metrics")
    @classmethod
    def _unique_fields(cls, v: list[MetricValue]):
        seen: set[str] = set()
        for m in v:
            if m.field in seen:
                raise ValueError(f"duplicate metric field {m.field!r}")
            seen.add(m.field)
        return v

    @property
    def athlete_name(self) -> str:
        return f"{self.athlete_first_name} {self.athlete_last_name}".strip()


class ExerciseMetric(CamelModel):
    name: str
    field: str
    unit_of_measure: str = ""


class ExerciseMetadata(CamelModel):
    id: str
    name: str
    category: str = ""
    type: ExerciseType = ExerciseType.output
    is_enabled: bool = True
    variants: list[str] = []
    metrics: list[ExerciseMetric] = []

    def metric(self, field: str) -> Optional[ExerciseMetric]:
        for m in self.metrics:
            if m.field == field:
                return m
        return None


class Athlete(CamelModel):
    id: str
    external_id: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    date_of_birth: Optional[str] = None


class MeasurementsQuery(CamelModel):
    """Body accepted by POST /output/exercises/measurements."""

    start_date: str  # 'YYYY-MM-DD'
    end_date: str    # 'YYYY-MM-DD'
    exercise_metadata_ids: list[str] = []
    athlete_ids: list[str] = []
