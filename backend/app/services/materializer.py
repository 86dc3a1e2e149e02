from __future__ import annotations

import logging
from datetime import date

from app.services.allocation import AllocationContext
from app.services.domain import ScheduleEntryData
from app.services.failure_report import FailureType
from app.services.slot_search import Placement
from app.services.time_grid import SEGMENTS_PER_SESSION, overlaps_break

logger = logging.getLogger(__name__)


class ScheduleMaterializer:
    """Turns an accepted 90-minute placement into six quarter-hour entries."""

    def __init__(self, *, entry_date: date | None = None) -> None:
        self.entry_date = entry_date or date.today()

    def materialize(self, context: AllocationContext, placement: Placement) -> list[ScheduleEntryData] | None:
        request = placement.request
        segments = placement.slot.quarter_hours()
        tracker = context.tracker

        # Final check right before emission; the search already checked these.
        blocked_by: str | None = None
        for start, end in segments:
            window = overlaps_break(start, end)
            if window is not None:
                blocked_by = window.label
                break
            dimension = tracker.has_conflict(
                placement.day,
                request.teacher.id,
                placement.classroom.id,
                request.section.id,
                start,
                end,
            )
            if dimension is not None:
                blocked_by = dimension.value
                break

        if blocked_by is not None or len(segments) != SEGMENTS_PER_SESSION:
            logger.warning(
                "FINAL CHECK REJECTED PLACEMENT | request=%s | day=%s | slot=%s | blocked_by=%s",
                request.label,
                placement.day.value,
                placement.slot.label,
                blocked_by,
            )
            context.failures.add(
                FailureType.time_conflict,
                section_id=request.section.id,
                section_name=request.section.name,
                subject=request.subject.name,
                session_number=request.session_number,
                reason="Final conflict check failed",
                details=(
                    f"{placement.day.value.title()} {placement.slot.label} in {placement.classroom.name} "
                    f"became unavailable ({blocked_by or 'segment count mismatch'})"
                ),
                diagnostics={"day": placement.day.value, "slot": placement.slot.label, "blocked_by": blocked_by},
            )
            return None

        entries: list[ScheduleEntryData] = []
        for index, (start, end) in enumerate(segments):
            entries.append(
                ScheduleEntryData(
                    school_year_id=context.scope.school_year_id,
                    semester=context.scope.semester,
                    day=placement.day,
                    start=start,
                    end=end,
                    teacher_id=request.teacher.id,
                    classroom_id=placement.classroom.id,
                    section_id=request.section.id,
                    subject=request.subject.name,
                    session_number=request.session_number,
                    total_sessions=request.total_sessions,
                    duration_index=index,
                    entry_date=self.entry_date,
                    notes=(
                        f"Auto-generated schedule for {request.section.name} - {request.subject.name} "
                        f"(Session {request.session_number}/{request.total_sessions}, "
                        f"Slot {index + 1}/{len(segments)})"
                    ),
                )
            )

        for entry in entries:
            tracker.record_interval(
                entry.day,
                entry.teacher_id,
                entry.classroom_id,
                entry.section_id,
                entry.start,
                entry.end,
            )
        context.usage.record_session(
            teacher_id=request.teacher.id,
            classroom_id=placement.classroom.id,
            day=placement.day,
            slot_start=placement.slot.start,
        )
        context.used_days[request.pair_key].add(placement.day)
        context.sibling_classrooms.setdefault(request.pair_key, placement.classroom.id)
        context.entries.extend(entries)

        logger.debug(
            "SESSION PLACED | request=%s | day=%s | slot=%s | classroom=%s | teacher=%s",
            request.label,
            placement.day.value,
            placement.slot.label,
            placement.classroom.name,
            request.teacher.full_name,
        )
        return entries
