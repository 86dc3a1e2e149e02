from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from app.services.allocation import AllocationContext, PairKey
from app.services.domain import (
    ClassroomSnapshot,
    RoomRequirement,
    SectionSnapshot,
    SubjectSnapshot,
    TeacherSnapshot,
)
from app.services.failure_report import FailureType
from app.services.time_grid import SESSION_MINUTES, SESSIONS_PER_SUBJECT


@dataclass(frozen=True)
class SessionRequest:
    section: SectionSnapshot
    subject: SubjectSnapshot
    teacher: TeacherSnapshot
    session_number: int
    total_sessions: int
    room_requirement: RoomRequirement
    candidate_classrooms: tuple[ClassroomSnapshot, ...]
    duration_minutes: int = SESSION_MINUTES

    @property
    def pair_key(self) -> PairKey:
        return (self.section.id, self.subject.id)

    @property
    def label(self) -> str:
        return (
            f"{self.section.name} - {self.subject.name} "
            f"(Session {self.session_number}/{self.total_sessions})"
        )


def distinct_room_requirements(subject: SubjectSnapshot) -> list[RoomRequirement]:
    seen: set[str] = set()
    distinct: list[RoomRequirement] = []
    for requirement in subject.room_requirements:
        key = (requirement.room_type or "").strip().lower()
        if key in seen:
            continue
        seen.add(key)
        distinct.append(requirement)
    return distinct


def room_requirement_for(subject: SubjectSnapshot, session_number: int) -> RoomRequirement:
    """Session 1 takes the first declared room type and session 2 the second, if any."""
    distinct = distinct_room_requirements(subject)
    if not distinct:
        return RoomRequirement()
    index = min(session_number - 1, len(distinct) - 1)
    return distinct[index]


class SessionPlanner:
    def __init__(self, classrooms: Sequence[ClassroomSnapshot]) -> None:
        self.classrooms = list(classrooms)

    def candidate_classrooms(self, requirement: RoomRequirement) -> tuple[ClassroomSnapshot, ...]:
        return tuple(classroom for classroom in self.classrooms if requirement.matches(classroom.room_type))

    def plan(
        self,
        context: AllocationContext,
        section: SectionSnapshot,
        subject: SubjectSnapshot,
        teacher: TeacherSnapshot,
    ) -> list[SessionRequest]:
        requests: list[SessionRequest] = []
        for session_number in range(1, SESSIONS_PER_SUBJECT + 1):
            requirement = room_requirement_for(subject, session_number)
            candidates = self.candidate_classrooms(requirement)
            if not candidates:
                context.failures.add(
                    FailureType.missing_classroom,
                    section_id=section.id,
                    section_name=section.name,
                    subject=subject.name,
                    session_number=session_number,
                    reason="No classroom available",
                    details=f"No classroom found for room type: {requirement.room_type}",
                    diagnostics={"room_type": requirement.room_type},
                )
                continue
            requests.append(
                SessionRequest(
                    section=section,
                    subject=subject,
                    teacher=teacher,
                    session_number=session_number,
                    total_sessions=SESSIONS_PER_SUBJECT,
                    room_requirement=requirement,
                    candidate_classrooms=candidates,
                )
            )
        return requests
