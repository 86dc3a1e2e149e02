from __future__ import annotations

import datetime

from pydantic import BaseModel, Field

from app.models.schedule_entry import DayOfWeek, ScheduleStatus


class TeacherRef(BaseModel):
    id: str
    firstName: str | None = None
    lastName: str | None = None


class ClassroomRef(BaseModel):
    id: str
    roomName: str | None = None
    roomType: str | None = None


class SectionRef(BaseModel):
    id: str
    sectionName: str | None = None


class ScheduleEntryOut(BaseModel):
    id: str | None = None
    date: datetime.date
    startTime: str
    endTime: str
    dayOfWeek: DayOfWeek
    teacher: TeacherRef
    classroom: ClassroomRef
    section: SectionRef
    subject: str
    sessionNumber: int
    totalSessions: int
    durationIndex: int
    schoolYearId: str
    semester: str
    notes: str | None = None
    isRecurring: bool = True
    status: ScheduleStatus = ScheduleStatus.scheduled


class FailureRecordOut(BaseModel):
    type: str
    section_id: str
    section: str
    subject: str
    session_number: int | None = None
    reason: str
    details: str
    resolution: str
    diagnostics: dict = Field(default_factory=dict)


class GenerationStatsOut(BaseModel):
    per_day: dict[str, int] = Field(default_factory=dict)
    per_time_slot: dict[str, int] = Field(default_factory=dict)
    per_teacher: dict[str, int] = Field(default_factory=dict)
    per_classroom: dict[str, int] = Field(default_factory=dict)


class GenerateScheduleRequest(BaseModel):
    school_year_id: str = Field(min_length=1, max_length=36)
    semester: str = Field(min_length=1, max_length=20)
    run_id: str | None = Field(default=None, min_length=1, max_length=64)
    random_seed: int | None = Field(default=None, ge=0, le=2_000_000_000)


class GenerateScheduleResponse(BaseModel):
    run_id: str
    school_year_id: str
    semester: str
    created: list[ScheduleEntryOut] = Field(default_factory=list)
    failures: list[FailureRecordOut] = Field(default_factory=list)
    stats: GenerationStatsOut = Field(default_factory=GenerationStatsOut)
    requests_total: int = 0
    requests_processed: int = 0
    scheduled_count: int = 0
    saved_count: int = 0
    failed_to_save_count: int = 0
    remaining_count: int = 0
    cancelled: bool = False
    message: str = ""


class DeleteSchedulesResponse(BaseModel):
    school_year_id: str
    deleted_count: int
    failed_count: int
    cancelled: bool = False


class CancelRunResponse(BaseModel):
    run_id: str
    cancelled: bool
