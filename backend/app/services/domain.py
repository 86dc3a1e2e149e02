from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from app.models.schedule_entry import DayOfWeek, ScheduleStatus
from app.services.time_grid import ANY_ROOM_TYPE, minutes_to_time


@dataclass(frozen=True)
class ScheduleScope:
    school_year_id: str
    semester: str


@dataclass(frozen=True)
class RoomRequirement:
    room_type: str = ANY_ROOM_TYPE
    duration_hours: float = 1.5

    @property
    def is_any(self) -> bool:
        normalized = (self.room_type or "").strip().lower()
        return not normalized or normalized == ANY_ROOM_TYPE.lower()

    def matches(self, room_type: str | None) -> bool:
        if self.is_any:
            return True
        return (room_type or "").strip().lower() == self.room_type.strip().lower()


@dataclass(frozen=True)
class SectionSnapshot:
    id: str
    name: str
    subject_ids: tuple[str, ...]
    days: tuple[DayOfWeek, ...]
    grade_level: str | None = None
    # Set at ingress when the row is malformed; every pair of the section is reported, none scheduled.
    data_error: str | None = None


@dataclass(frozen=True)
class SubjectSnapshot:
    id: str
    name: str
    room_requirements: tuple[RoomRequirement, ...] = ()
    code: str | None = None


@dataclass(frozen=True)
class TeacherSnapshot:
    id: str
    first_name: str
    last_name: str
    subjects: tuple[str, ...]
    available_days: tuple[DayOfWeek, ...]
    available_start: int
    available_end: int
    assigned_section_ids: tuple[str, ...] = ()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def window_label(self) -> str:
        return f"{minutes_to_time(self.available_start)}-{minutes_to_time(self.available_end)}"

    def teaches(self, subject_name: str) -> bool:
        wanted = subject_name.strip().lower()
        return any(item.strip().lower() == wanted for item in self.subjects)

    def is_assigned_to(self, section_id: str) -> bool:
        return section_id in self.assigned_section_ids


@dataclass(frozen=True)
class ClassroomSnapshot:
    id: str
    name: str
    room_type: str
    capacity: int = 0


@dataclass
class ScheduleEntryData:
    """One 15-minute schedule entry, before or after persistence."""

    school_year_id: str
    semester: str
    day: DayOfWeek
    start: int
    end: int
    teacher_id: str
    classroom_id: str
    section_id: str
    subject: str
    session_number: int = 1
    total_sessions: int = 2
    duration_index: int = 0
    entry_date: date = field(default_factory=date.today)
    notes: str | None = None
    is_recurring: bool = True
    status: ScheduleStatus = ScheduleStatus.scheduled
    id: str | None = None

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end)

    def in_scope(self, scope: ScheduleScope) -> bool:
        return self.school_year_id == scope.school_year_id and self.semester == scope.semester
