from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from outputdash.schemas.measurement import CamelModel


class SavedReportCreate(CamelModel):
    name: str = Field(min_length=1)
    athlete_id: Optional[str] = None
    athlete_name: str
    exercise: Optional[str] = None
    time_range: str


class SavedReportRead(SavedReportCreate):
    """Schema returned to the frontend when reading a saved report."""

    id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
