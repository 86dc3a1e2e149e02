from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class FailureType(str, Enum):
    missing_teacher = "missing_teacher"
    missing_classroom = "missing_classroom"
    teacher_availability = "teacher_availability"
    time_conflict = "time_conflict"
    selection_error = "selection_error"
    data_error = "data_error"


REMEDIATION_HINTS: dict[FailureType, str] = {
    FailureType.missing_teacher: (
        "Add a teacher who can teach this subject or assign an existing teacher to this subject"
    ),
    FailureType.missing_classroom: "Add a classroom with the required room type",
    FailureType.teacher_availability: (
        "Extend the available days of a qualified teacher or change the section's schedule pattern"
    ),
    FailureType.time_conflict: (
        "Add more teachers or classrooms, or widen teacher availability to increase open time slots"
    ),
    FailureType.selection_error: (
        "Widen the availability window of a qualified teacher so it covers at least one 90-minute slot"
    ),
    FailureType.data_error: "Fix the section so its days are valid and it references existing subjects only once",
}


@dataclass
class FailureRecord:
    failure_type: FailureType
    section_id: str
    section_name: str
    subject: str
    reason: str
    details: str
    session_number: int | None = None
    diagnostics: dict = field(default_factory=dict)

    @property
    def resolution(self) -> str:
        return REMEDIATION_HINTS[self.failure_type]


class FailureReporter:
    def __init__(self) -> None:
        self._records: list[FailureRecord] = []

    def add(
        self,
        failure_type: FailureType,
        *,
        section_id: str,
        section_name: str,
        subject: str,
        reason: str,
        details: str,
        session_number: int | None = None,
        diagnostics: dict | None = None,
    ) -> FailureRecord:
        record = FailureRecord(
            failure_type=failure_type,
            section_id=section_id,
            section_name=section_name,
            subject=subject,
            reason=reason,
            details=details,
            session_number=session_number,
            diagnostics=diagnostics or {},
        )
        self._records.append(record)
        logger.debug(
            "ALLOCATION FAILURE | type=%s | section=%s | subject=%s | session=%s | details=%s",
            failure_type.value,
            section_name,
            subject,
            session_number,
            details,
        )
        return record

    @property
    def records(self) -> list[FailureRecord]:
        return list(self._records)

    def counts_by_type(self) -> dict[str, int]:
        return dict(Counter(record.failure_type.value for record in self._records))

    def __len__(self) -> int:
        return len(self._records)
