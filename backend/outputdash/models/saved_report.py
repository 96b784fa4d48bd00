from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from outputdash.db import Base


class SavedReport(Base):
    __tablename__ = "saved_reports"

    # 'report_<hex>' generated on save
    id = Column(String(64), primary_key=True, index=True)

    name = Column(String, nullable=False)

    # Athlete the report was built for; null means "all athletes"
    athlete_id = Column(String, nullable=True)
    athlete_name = Column(String, nullable=False)

    # Selected exercise id, if any
    exercise = Column(String, nullable=True)

    # Range selector the report was saved with (today, 7days, ...)
    time_range = Column(String(20), nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
