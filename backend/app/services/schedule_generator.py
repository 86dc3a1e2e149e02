from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from time import perf_counter

from app.core.exceptions import OperationCancelled, PersistenceError, ScopeConflictError, ValidationError
from app.services.allocation import AllocationContext
from app.services.cancellation import CancellationToken
from app.services.domain import (
    ClassroomSnapshot,
    ScheduleEntryData,
    ScheduleScope,
    SectionSnapshot,
    SubjectSnapshot,
    TeacherSnapshot,
)
from app.services.failure_report import FailureRecord, FailureType
from app.services.materializer import ScheduleMaterializer
from app.services.schedule_gateway import ScheduleGateway
from app.services.session_planner import SessionPlanner, SessionRequest
from app.services.slot_search import SlotSearch
from app.services.teacher_assignment import TeacherAssignmentResolver

logger = logging.getLogger(__name__)


@dataclass
class GenerationOptions:
    random_seed: int | None = None
    entry_date: date | None = None
    progress_log_every: int = 60


@dataclass
class GenerationResult:
    scope: ScheduleScope
    created: list[ScheduleEntryData] = field(default_factory=list)
    failures: list[FailureRecord] = field(default_factory=list)
    stats: dict[str, dict[str, int]] = field(default_factory=dict)
    requests_total: int = 0
    requests_processed: int = 0
    scheduled_count: int = 0
    saved_count: int = 0
    failed_to_save_count: int = 0
    cancelled: bool = False

    @property
    def remaining_count(self) -> int:
        return max(0, self.scheduled_count - self.saved_count - self.failed_to_save_count)

    def summary(self) -> str:
        if self.cancelled:
            return (
                f"Generation cancelled: {self.saved_count} of {self.scheduled_count} scheduled entries saved, "
                f"{self.remaining_count} not saved, {self.requests_processed}/{self.requests_total} sessions processed."
            )
        message = f"Successfully generated and saved {self.saved_count} schedule entries."
        if self.failed_to_save_count:
            message += f" ({self.failed_to_save_count} failed to save)"
        if self.failures:
            message += f" {len(self.failures)} session(s) could not be scheduled."
        return message


@dataclass
class DeleteResult:
    school_year_id: str
    deleted_count: int = 0
    failed_count: int = 0
    cancelled: bool = False


def validate_generation_inputs(
    scope: ScheduleScope,
    sections: Sequence[SectionSnapshot],
    teachers: Sequence[TeacherSnapshot],
    classrooms: Sequence[ClassroomSnapshot],
    subjects: Sequence[SubjectSnapshot],
) -> None:
    if not (scope.school_year_id or "").strip() or not (scope.semester or "").strip():
        raise ValidationError("A school year and semester must be selected before generating schedules")
    if not sections:
        raise ValidationError("Please add sections first")
    if not teachers:
        raise ValidationError("Please add teachers first")
    if not classrooms:
        raise ValidationError("Please add classrooms first")
    if not subjects:
        raise ValidationError("Please add subjects first")
    without_subjects = [section.name for section in sections if not section.subject_ids]
    if without_subjects:
        raise ValidationError(
            "Please select subjects for all sections first",
            details={"sections_without_subjects": without_subjects},
        )


class ScheduleGenerator:
    """Bulk generation of one (school year, semester) timetable.

    Runs in four phases: pre-flight validation and scope guard, teacher binding
    and session planning for every (section, subject) pair in load order,
    placement of each session, then sequential persistence. Allocation
    failures are collected and never stop the run.
    """

    def __init__(self, gateway: ScheduleGateway, options: GenerationOptions | None = None) -> None:
        self.gateway = gateway
        self.options = options or GenerationOptions()
        self.search = SlotSearch()
        self.materializer = ScheduleMaterializer(entry_date=self.options.entry_date)

    def generate(
        self,
        scope: ScheduleScope,
        sections: Sequence[SectionSnapshot],
        teachers: Sequence[TeacherSnapshot],
        classrooms: Sequence[ClassroomSnapshot],
        subjects: Sequence[SubjectSnapshot],
        existing_entries: Sequence[ScheduleEntryData] = (),
        cancel_token: CancellationToken | None = None,
    ) -> GenerationResult:
        started = perf_counter()
        validate_generation_inputs(scope, sections, teachers, classrooms, subjects)
        stored = self.gateway.count_in_scope(scope)
        if stored:
            raise ScopeConflictError(scope.school_year_id, scope.semester, stored)
        in_scope = sum(1 for entry in existing_entries if entry.in_scope(scope))
        if in_scope:
            raise ScopeConflictError(scope.school_year_id, scope.semester, in_scope)

        token = cancel_token or CancellationToken()
        context = AllocationContext(scope=scope, cancel_token=token)
        replayed = context.tracker.replay(existing_entries)
        logger.info(
            "SCHEDULE GENERATION START | school_year_id=%s | semester=%s | sections=%s | teachers=%s | classrooms=%s | subjects=%s | blocked_entries=%s",
            scope.school_year_id,
            scope.semester,
            len(sections),
            len(teachers),
            len(classrooms),
            len(subjects),
            replayed,
        )

        result = GenerationResult(scope=scope)
        requests = self._build_requests(context, sections, teachers, classrooms, subjects)
        result.requests_total = len(requests)

        cancelled = context.cancelled
        for request in requests:
            if cancelled or context.cancelled:
                cancelled = True
                break
            outcome = self.search.search(context, request)
            if outcome.cancelled:
                cancelled = True
                break
            result.requests_processed += 1
            if outcome.placement is not None:
                self.materializer.materialize(context, outcome.placement)

        result.scheduled_count = len(context.entries)
        if not cancelled:
            cancelled = self._persist(context, result)
        result.cancelled = cancelled
        result.failures = context.failures.records
        result.stats = context.usage.as_stats()

        logger.info(
            "SCHEDULE GENERATION COMPLETE | school_year_id=%s | semester=%s | scheduled=%s | saved=%s | save_failed=%s | remaining=%s | failures=%s | cancelled=%s | wall_ms=%s",
            scope.school_year_id,
            scope.semester,
            result.scheduled_count,
            result.saved_count,
            result.failed_to_save_count,
            result.remaining_count,
            context.failures.counts_by_type(),
            result.cancelled,
            int((perf_counter() - started) * 1000),
        )
        return result

    def _build_requests(
        self,
        context: AllocationContext,
        sections: Sequence[SectionSnapshot],
        teachers: Sequence[TeacherSnapshot],
        classrooms: Sequence[ClassroomSnapshot],
        subjects: Sequence[SubjectSnapshot],
    ) -> list[SessionRequest]:
        resolver = TeacherAssignmentResolver(teachers, random_seed=self.options.random_seed)
        planner = SessionPlanner(classrooms)
        subjects_by_id = {subject.id: subject for subject in subjects}
        requests: list[SessionRequest] = []

        for section in sections:
            if context.cancelled:
                break
            if section.data_error:
                for subject_id in section.subject_ids:
                    subject = subjects_by_id.get(subject_id)
                    context.failures.add(
                        FailureType.data_error,
                        section_id=section.id,
                        section_name=section.name,
                        subject=subject.name if subject is not None else subject_id,
                        reason="Invalid section data",
                        details=section.data_error,
                        diagnostics={"subject_id": subject_id},
                    )
                continue
            seen: set[str] = set()
            for subject_id in section.subject_ids:
                subject = subjects_by_id.get(subject_id)
                if subject is None or subject_id in seen:
                    context.failures.add(
                        FailureType.data_error,
                        section_id=section.id,
                        section_name=section.name,
                        subject=subject.name if subject is not None else subject_id,
                        reason="Invalid subject reference",
                        details=(
                            f"Subject {subject_id} is listed more than once for section {section.name}"
                            if subject is not None
                            else f"Section {section.name} references unknown subject id {subject_id}"
                        ),
                        diagnostics={"subject_id": subject_id},
                    )
                    continue
                seen.add(subject_id)
                binding = resolver.resolve(context, section, subject)
                if binding is None:
                    continue
                requests.extend(planner.plan(context, section, subject, binding.teacher))
        return requests

    def _persist(self, context: AllocationContext, result: GenerationResult) -> bool:
        """Save entries one at a time; returns True when cancellation stopped the loop."""
        log_every = max(1, self.options.progress_log_every)
        for entry in context.entries:
            if context.cancelled:
                return True
            try:
                saved = self.gateway.create_entry(entry, context.cancel_token)
            except OperationCancelled:
                return True
            except PersistenceError:
                result.failed_to_save_count += 1
                logger.exception(
                    "SCHEDULE ENTRY SAVE FAILED | section_id=%s | subject=%s | day=%s | start=%s",
                    entry.section_id,
                    entry.subject,
                    entry.day.value,
                    entry.start_time,
                )
                continue
            result.created.append(saved)
            result.saved_count += 1
            if result.saved_count % log_every == 0:
                logger.info(
                    "SCHEDULE PERSIST PROGRESS | saved=%s | total=%s",
                    result.saved_count,
                    result.scheduled_count,
                )
        return False


def delete_by_scope(
    gateway: ScheduleGateway,
    school_year_id: str,
    cancel_token: CancellationToken | None = None,
) -> DeleteResult:
    if not (school_year_id or "").strip():
        raise ValidationError("A school year must be selected before deleting schedules")
    token = cancel_token or CancellationToken()
    result = DeleteResult(school_year_id=school_year_id)
    entries = gateway.list_entries(school_year_id)
    logger.info("SCHEDULE DELETE START | school_year_id=%s | entries=%s", school_year_id, len(entries))

    for entry in entries:
        if token.cancelled:
            result.cancelled = True
            break
        try:
            gateway.delete_entry(entry.id, token)
        except OperationCancelled:
            result.cancelled = True
            break
        except PersistenceError:
            result.failed_count += 1
            logger.exception("SCHEDULE ENTRY DELETE FAILED | entry_id=%s", entry.id)
            continue
        result.deleted_count += 1

    logger.info(
        "SCHEDULE DELETE COMPLETE | school_year_id=%s | deleted=%s | failed=%s | cancelled=%s",
        school_year_id,
        result.deleted_count,
        result.failed_count,
        result.cancelled,
    )
    return result
