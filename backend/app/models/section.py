import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class SchedulePattern(str, Enum):
    daily = "DAILY"
    mwf = "MWF"
    tth = "TTH"
    custom = "CUSTOM"


class Section(Base):
    __tablename__ = "sections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    section_name: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    grade_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    student_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    schedule_pattern: Mapped[SchedulePattern] = mapped_column(
        SAEnum(SchedulePattern, name="schedule_pattern"),
        nullable=False,
        default=SchedulePattern.daily,
    )
    # Only read when schedule_pattern is CUSTOM.
    available_days: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    subject_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    school_year_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    semester: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
