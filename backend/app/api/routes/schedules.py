import logging
import uuid
from collections.abc import Iterable
from time import perf_counter

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.config import get_settings
from app.core.exceptions import ResourceNotFoundError, ScopeConflictError
from app.models.classroom import Classroom
from app.models.section import Section
from app.models.teacher import Teacher
from app.schemas.schedule import (
    CancelRunResponse,
    ClassroomRef,
    DeleteSchedulesResponse,
    FailureRecordOut,
    GenerateScheduleRequest,
    GenerateScheduleResponse,
    GenerationStatsOut,
    ScheduleEntryOut,
    SectionRef,
    TeacherRef,
)
from app.services.cancellation import run_registry
from app.services.domain import ScheduleEntryData, ScheduleScope
from app.services.domain_loader import ensure_school_year, load_domain_snapshot
from app.services.failure_report import FailureRecord
from app.services.schedule_gateway import SqlScheduleGateway
from app.services.schedule_generator import GenerationOptions, ScheduleGenerator, delete_by_scope

router = APIRouter()
logger = logging.getLogger(__name__)


def _serialize_entries(db: Session, entries: Iterable[ScheduleEntryData]) -> list[ScheduleEntryOut]:
    entries = list(entries)
    teacher_ids = sorted({entry.teacher_id for entry in entries})
    classroom_ids = sorted({entry.classroom_id for entry in entries})
    section_ids = sorted({entry.section_id for entry in entries})
    teachers = {
        item.id: item for item in db.execute(select(Teacher).where(Teacher.id.in_(teacher_ids))).scalars()
    }
    classrooms = {
        item.id: item for item in db.execute(select(Classroom).where(Classroom.id.in_(classroom_ids))).scalars()
    }
    sections = {
        item.id: item for item in db.execute(select(Section).where(Section.id.in_(section_ids))).scalars()
    }

    serialized: list[ScheduleEntryOut] = []
    for entry in entries:
        teacher = teachers.get(entry.teacher_id)
        classroom = classrooms.get(entry.classroom_id)
        section = sections.get(entry.section_id)
        serialized.append(
            ScheduleEntryOut(
                id=entry.id,
                date=entry.entry_date,
                startTime=entry.start_time,
                endTime=entry.end_time,
                dayOfWeek=entry.day,
                teacher=TeacherRef(
                    id=entry.teacher_id,
                    firstName=teacher.first_name if teacher else None,
                    lastName=teacher.last_name if teacher else None,
                ),
                classroom=ClassroomRef(
                    id=entry.classroom_id,
                    roomName=classroom.room_name if classroom else None,
                    roomType=classroom.room_type if classroom else None,
                ),
                section=SectionRef(id=entry.section_id, sectionName=section.section_name if section else None),
                subject=entry.subject,
                sessionNumber=entry.session_number,
                totalSessions=entry.total_sessions,
                durationIndex=entry.duration_index,
                schoolYearId=entry.school_year_id,
                semester=entry.semester,
                notes=entry.notes,
                isRecurring=entry.is_recurring,
                status=entry.status,
            )
        )
    return serialized


def _serialize_failure(record: FailureRecord) -> FailureRecordOut:
    return FailureRecordOut(
        type=record.failure_type.value,
        section_id=record.section_id,
        section=record.section_name,
        subject=record.subject,
        session_number=record.session_number,
        reason=record.reason,
        details=record.details,
        resolution=record.resolution,
        diagnostics=record.diagnostics,
    )


@router.get("/", response_model=list[ScheduleEntryOut])
def list_schedules(
    school_year_id: str = Query(min_length=1, max_length=36),
    semester: str | None = Query(default=None, max_length=20),
    db: Session = Depends(get_db),
) -> list[ScheduleEntryOut]:
    entries = SqlScheduleGateway(db).list_entries(school_year_id, semester)
    return _serialize_entries(db, entries)


@router.post("/generate", response_model=GenerateScheduleResponse)
def generate_schedules(
    payload: GenerateScheduleRequest,
    db: Session = Depends(get_db),
) -> GenerateScheduleResponse:
    settings = get_settings()
    started = perf_counter()
    run_id = payload.run_id or str(uuid.uuid4())
    scope = ScheduleScope(school_year_id=payload.school_year_id.strip(), semester=payload.semester.strip())
    logger.info(
        "SCHEDULE GENERATION REQUEST | run_id=%s | school_year_id=%s | semester=%s",
        run_id,
        scope.school_year_id,
        scope.semester,
    )
    ensure_school_year(db, scope.school_year_id)
    gateway = SqlScheduleGateway(db)
    existing = gateway.count_in_scope(scope)
    if existing:
        raise ScopeConflictError(scope.school_year_id, scope.semester, existing)

    snapshot = load_domain_snapshot(db, scope)
    seed = payload.random_seed if payload.random_seed is not None else settings.generation_random_seed
    generator = ScheduleGenerator(
        gateway,
        GenerationOptions(random_seed=seed, progress_log_every=settings.persist_progress_log_every),
    )
    token = run_registry.register(run_id)
    try:
        result = generator.generate(
            scope,
            snapshot.sections,
            snapshot.teachers,
            snapshot.classrooms,
            snapshot.subjects,
            snapshot.existing_entries,
            token,
        )
    except Exception:
        logger.exception(
            "SCHEDULE GENERATION FAILED | run_id=%s | school_year_id=%s | semester=%s | wall_ms=%s",
            run_id,
            scope.school_year_id,
            scope.semester,
            int((perf_counter() - started) * 1000),
        )
        raise
    finally:
        run_registry.release(run_id)

    return GenerateScheduleResponse(
        run_id=run_id,
        school_year_id=scope.school_year_id,
        semester=scope.semester,
        created=_serialize_entries(db, result.created),
        failures=[_serialize_failure(record) for record in result.failures],
        stats=GenerationStatsOut(**result.stats),
        requests_total=result.requests_total,
        requests_processed=result.requests_processed,
        scheduled_count=result.scheduled_count,
        saved_count=result.saved_count,
        failed_to_save_count=result.failed_to_save_count,
        remaining_count=result.remaining_count,
        cancelled=result.cancelled,
        message=result.summary(),
    )


@router.post("/runs/{run_id}/cancel", response_model=CancelRunResponse)
def cancel_run(run_id: str) -> CancelRunResponse:
    if not run_registry.cancel(run_id):
        raise ResourceNotFoundError("Generation run", run_id)
    return CancelRunResponse(run_id=run_id, cancelled=True)


@router.delete("/", response_model=DeleteSchedulesResponse)
def delete_schedules(
    school_year_id: str = Query(min_length=1, max_length=36),
    run_id: str | None = Query(default=None, min_length=1, max_length=64),
    db: Session = Depends(get_db),
) -> DeleteSchedulesResponse:
    run_key = run_id or str(uuid.uuid4())
    token = run_registry.register(run_key)
    try:
        result = delete_by_scope(SqlScheduleGateway(db), school_year_id, token)
    finally:
        run_registry.release(run_key)
    return DeleteSchedulesResponse(
        school_year_id=result.school_year_id,
        deleted_count=result.deleted_count,
        failed_count=result.failed_count,
        cancelled=result.cancelled,
    )
