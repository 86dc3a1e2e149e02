from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.models.classroom import Classroom
from app.models.school_year import SchoolYear
from app.models.section import SchedulePattern, Section
from app.models.subject import Subject
from app.models.teacher import Teacher
from app.services.domain import (
    ClassroomSnapshot,
    RoomRequirement,
    ScheduleEntryData,
    ScheduleScope,
    SectionSnapshot,
    SubjectSnapshot,
    TeacherSnapshot,
)
from app.services.schedule_gateway import SqlScheduleGateway
from app.services.time_grid import (
    ANY_ROOM_TYPE,
    SCHEDULE_PATTERN_DAYS,
    WEEKLY_SUBJECT_HOURS,
    parse_time_to_minutes,
    sort_days,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainSnapshot:
    sections: list[SectionSnapshot]
    teachers: list[TeacherSnapshot]
    classrooms: list[ClassroomSnapshot]
    subjects: list[SubjectSnapshot]
    existing_entries: list[ScheduleEntryData]


def ensure_school_year(db: Session, school_year_id: str) -> SchoolYear:
    school_year = db.get(SchoolYear, school_year_id)
    if school_year is None:
        raise ValidationError(
            "Selected school year does not exist",
            details={"school_year_id": school_year_id},
        )
    return school_year


def section_snapshot(section: Section) -> SectionSnapshot:
    """A section with an unreadable day list keeps its subjects but carries ``data_error``."""
    data_error: str | None = None
    days: tuple = ()
    if section.schedule_pattern == SchedulePattern.custom:
        try:
            days = sort_days(section.available_days or [])
        except ValueError as exc:
            data_error = f"Section {section.section_name} has an invalid day in its schedule pattern: {exc}"
            logger.warning(
                "SECTION ROW SKIPPED | section_id=%s | section=%s | error=%s",
                section.id,
                section.section_name,
                exc,
            )
    else:
        days = SCHEDULE_PATTERN_DAYS[section.schedule_pattern]
    return SectionSnapshot(
        id=str(section.id),
        name=section.section_name,
        subject_ids=tuple(str(item) for item in section.subject_ids or []),
        days=days,
        grade_level=section.grade_level,
        data_error=data_error,
    )


def room_requirements_from(raw: list) -> tuple[RoomRequirement, ...]:
    """Accepts ``[{"room_type", "duration_hours"}]`` or a bare list of room type names."""
    if not raw:
        return ()
    if all(isinstance(item, str) for item in raw):
        per_type = WEEKLY_SUBJECT_HOURS / len(raw)
        return tuple(RoomRequirement(room_type=item.strip() or ANY_ROOM_TYPE, duration_hours=per_type) for item in raw)
    requirements: list[RoomRequirement] = []
    for item in raw:
        if isinstance(item, str):
            requirements.append(RoomRequirement(room_type=item.strip() or ANY_ROOM_TYPE))
            continue
        room_type = str(item.get("room_type") or item.get("type") or ANY_ROOM_TYPE).strip()
        duration = float(item.get("duration_hours") or item.get("duration") or 0)
        requirements.append(RoomRequirement(room_type=room_type or ANY_ROOM_TYPE, duration_hours=duration))
    return tuple(requirements)


def subject_snapshot(subject: Subject) -> SubjectSnapshot:
    return SubjectSnapshot(
        id=str(subject.id),
        name=subject.name,
        code=subject.code,
        room_requirements=room_requirements_from(subject.room_requirements or []),
    )


def teacher_snapshot(teacher: Teacher) -> TeacherSnapshot:
    try:
        start = parse_time_to_minutes(teacher.available_start_time)
        end = parse_time_to_minutes(teacher.available_end_time)
        days = sort_days(teacher.available_days or [])
    except ValueError as exc:
        raise ValidationError(
            f"Teacher {teacher.first_name} {teacher.last_name} has invalid availability",
            details={"teacher_id": teacher.id, "error": str(exc)},
        ) from exc
    if end <= start:
        raise ValidationError(
            f"Teacher {teacher.first_name} {teacher.last_name} availability must end after it starts",
            details={"teacher_id": teacher.id},
        )
    return TeacherSnapshot(
        id=str(teacher.id),
        first_name=teacher.first_name,
        last_name=teacher.last_name,
        subjects=tuple(item.strip() for item in teacher.subjects or [] if item and item.strip()),
        available_days=days,
        available_start=start,
        available_end=end,
        assigned_section_ids=tuple(str(item) for item in teacher.assigned_section_ids or []),
    )


def usable_teachers(teachers) -> list[TeacherSnapshot]:
    snapshots: list[TeacherSnapshot] = []
    for teacher in teachers:
        try:
            snapshots.append(teacher_snapshot(teacher))
        except ValidationError as exc:
            logger.warning(
                "TEACHER ROW SKIPPED | teacher_id=%s | message=%s | details=%s",
                teacher.id,
                exc.message,
                exc.details,
            )
    return snapshots


def classroom_snapshot(classroom: Classroom) -> ClassroomSnapshot:
    return ClassroomSnapshot(
        id=str(classroom.id),
        name=classroom.room_name,
        room_type=classroom.room_type,
        capacity=classroom.capacity,
    )


def load_domain_snapshot(db: Session, scope: ScheduleScope) -> DomainSnapshot:
    sections = db.execute(
        select(Section)
        .where(or_(Section.school_year_id.is_(None), Section.school_year_id == scope.school_year_id))
        .where(or_(Section.semester.is_(None), Section.semester == scope.semester))
        .order_by(Section.section_name)
    ).scalars()
    teachers = db.execute(select(Teacher).order_by(Teacher.last_name, Teacher.first_name, Teacher.id)).scalars()
    classrooms = db.execute(select(Classroom).order_by(Classroom.room_name)).scalars()
    subjects = db.execute(select(Subject).order_by(Subject.name)).scalars()

    snapshot = DomainSnapshot(
        sections=[section_snapshot(item) for item in sections],
        teachers=usable_teachers(teachers),
        classrooms=[classroom_snapshot(item) for item in classrooms],
        subjects=[subject_snapshot(item) for item in subjects],
        existing_entries=SqlScheduleGateway(db).list_entries(scope.school_year_id, scope.semester),
    )
    logger.debug(
        "DOMAIN SNAPSHOT LOADED | school_year_id=%s | semester=%s | sections=%s | teachers=%s | classrooms=%s | subjects=%s | existing=%s",
        scope.school_year_id,
        scope.semester,
        len(snapshot.sections),
        len(snapshot.teachers),
        len(snapshot.classrooms),
        len(snapshot.subjects),
        len(snapshot.existing_entries),
    )
    return snapshot
