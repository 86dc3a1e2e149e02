from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass

from app.services.allocation import AllocationContext
from app.services.domain import SectionSnapshot, SubjectSnapshot, TeacherSnapshot
from app.services.failure_report import FailureType
from app.services.time_grid import SESSIONS_PER_SUBJECT, slots_within_window, sort_days

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeacherBinding:
    section_id: str
    subject_id: str
    teacher: TeacherSnapshot
    strict: bool


class TeacherAssignmentResolver:
    """Binds exactly one teacher to each (section, subject) pair.

    Teachers explicitly assigned to the section are tried first; when none of
    them qualifies, any capable teacher sharing a weekday with the section is
    eligible. Within a pool the least-loaded teacher wins.
    """

    def __init__(self, teachers: Sequence[TeacherSnapshot], *, random_seed: int | None = None) -> None:
        self.teachers = list(teachers)
        self._input_order = {teacher.id: index for index, teacher in enumerate(self.teachers)}
        self.random = random.Random(random_seed) if random_seed is not None else None

    def resolve(
        self,
        context: AllocationContext,
        section: SectionSnapshot,
        subject: SubjectSnapshot,
    ) -> TeacherBinding | None:
        capable = [teacher for teacher in self.teachers if teacher.teaches(subject.name)]
        if not capable:
            context.failures.add(
                FailureType.missing_teacher,
                section_id=section.id,
                section_name=section.name,
                subject=subject.name,
                reason="No teacher available",
                details=f"No teacher found for subject: {subject.name}",
            )
            return None

        section_days = set(section.days)
        day_overlap = [teacher for teacher in capable if section_days & set(teacher.available_days)]
        if not day_overlap:
            context.failures.add(
                FailureType.teacher_availability,
                section_id=section.id,
                section_name=section.name,
                subject=subject.name,
                reason="No qualified teacher shares a day with the section",
                details=(
                    f"Section {section.name} meets on {_day_list(section.days)}; "
                    f"{len(capable)} teacher(s) teach {subject.name} but none is available on those days"
                ),
                diagnostics={
                    "section_days": [day.value for day in sort_days(section.days)],
                    "teacher_days": {
                        teacher.full_name: [day.value for day in sort_days(teacher.available_days)]
                        for teacher in capable
                    },
                },
            )
            return None

        usable = [
            teacher
            for teacher in day_overlap
            if slots_within_window(teacher.available_start, teacher.available_end)
        ]
        if not usable:
            context.failures.add(
                FailureType.selection_error,
                section_id=section.id,
                section_name=section.name,
                subject=subject.name,
                reason="No qualified teacher has a usable time window",
                details=(
                    f"{len(day_overlap)} teacher(s) can teach {subject.name} on the section's days, "
                    "but none is available for a full 90-minute slot"
                ),
                diagnostics={"teacher_windows": {teacher.full_name: teacher.window_label for teacher in day_overlap}},
            )
            return None

        strict_pool = [teacher for teacher in usable if teacher.is_assigned_to(section.id)]
        if strict_pool:
            teacher = self._pick(context, strict_pool, subject, prefer_reuse=True)
        else:
            teacher = self._pick(context, usable, subject, prefer_reuse=False)

        context.assigned_load[teacher.id] += SESSIONS_PER_SUBJECT
        context.subject_teachers[_subject_key(subject)].add(teacher.id)
        logger.debug(
            "TEACHER BOUND | section=%s | subject=%s | teacher=%s | strict=%s | load=%s",
            section.name,
            subject.name,
            teacher.full_name,
            bool(strict_pool),
            context.assigned_load[teacher.id],
        )
        return TeacherBinding(
            section_id=section.id,
            subject_id=subject.id,
            teacher=teacher,
            strict=bool(strict_pool),
        )

    def _pick(
        self,
        context: AllocationContext,
        pool: list[TeacherSnapshot],
        subject: SubjectSnapshot,
        *,
        prefer_reuse: bool,
    ) -> TeacherSnapshot:
        candidates = list(pool)
        if self.random is not None and not prefer_reuse:
            self.random.shuffle(candidates)
            tie_order = {teacher.id: index for index, teacher in enumerate(candidates)}
        else:
            tie_order = self._input_order
        already_teaching = context.subject_teachers.get(_subject_key(subject), set())

        def sort_key(teacher: TeacherSnapshot) -> tuple[int, int, int]:
            reuse_rank = 0 if prefer_reuse and teacher.id in already_teaching else 1
            return (reuse_rank, context.assigned_load[teacher.id], tie_order[teacher.id])

        return min(candidates, key=sort_key)


def _subject_key(subject: SubjectSnapshot) -> str:
    return subject.name.strip().lower()


def _day_list(days) -> str:
    ordered = sort_days(days)
    return ", ".join(day.value.title() for day in ordered) or "no days"
