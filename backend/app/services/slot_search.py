from __future__ import annotations

import logging
from dataclasses import dataclass

from app.models.schedule_entry import DayOfWeek
from app.services.allocation import AllocationContext
from app.services.domain import ClassroomSnapshot
from app.services.failure_report import FailureType
from app.services.session_planner import SessionRequest
from app.services.time_grid import DAY_ORDER, TimeSlot, slots_within_window, sort_days

logger = logging.getLogger(__name__)

# Earlier slot/day exhaustion tends to leave Friday under-used.
TIE_BREAK_DAY = DayOfWeek.friday


@dataclass(frozen=True)
class Placement:
    request: SessionRequest
    day: DayOfWeek
    slot: TimeSlot
    classroom: ClassroomSnapshot


@dataclass(frozen=True)
class SearchOutcome:
    placement: Placement | None
    slots_examined: int
    cancelled: bool = False


class SlotSearch:
    """Finds a day, template slot and classroom for one session request.

    Slots are the outer loop (least used first) and days the inner loop, so a
    popular day is only chosen when every less-used time of day is blocked.
    """

    def candidate_days(self, context: AllocationContext, request: SessionRequest) -> list[DayOfWeek]:
        teacher_days = set(request.teacher.available_days)
        taken = context.used_days.get(request.pair_key, set())
        return [day for day in sort_days(request.section.days) if day in teacher_days and day not in taken]

    def order_days(
        self,
        context: AllocationContext,
        request: SessionRequest,
        days: list[DayOfWeek],
    ) -> list[DayOfWeek]:
        if not days:
            return []
        usage = context.usage
        teacher_id = request.teacher.id
        mean_usage = sum(usage.per_day[day] for day in days) / len(days)
        prefer_below_mean = request.session_number > 1

        def sort_key(day: DayOfWeek) -> tuple[int, int, int, int, int]:
            # Below-mean rank is monotone in per_day, so after the per_day key it
            # never reorders days; it only keeps the documented key order explicit.
            below_mean_rank = 0
            if prefer_below_mean and usage.per_day[day] >= mean_usage:
                below_mean_rank = 1
            return (
                usage.per_teacher_day[(teacher_id, day)],
                usage.per_day[day],
                below_mean_rank,
                0 if day == TIE_BREAK_DAY else 1,
                DAY_ORDER.index(day),
            )

        return sorted(days, key=sort_key)

    def candidate_slots(self, request: SessionRequest) -> list[TimeSlot]:
        return slots_within_window(request.teacher.available_start, request.teacher.available_end)

    def order_slots(self, context: AllocationContext, slots: list[TimeSlot]) -> list[TimeSlot]:
        # sorted() is stable, so equally used slots keep template order.
        return sorted(slots, key=lambda slot: context.usage.per_time_slot[slot.start])

    def is_conflict_free(
        self,
        context: AllocationContext,
        request: SessionRequest,
        day: DayOfWeek,
        slot: TimeSlot,
        classroom: ClassroomSnapshot,
    ) -> bool:
        tracker = context.tracker
        args = (day, request.teacher.id, classroom.id, request.section.id)
        if tracker.has_conflict(*args, slot.start, slot.end) is not None:
            return False
        for start, end in slot.quarter_hours():
            if tracker.has_conflict(*args, start, end) is not None:
                return False
        return True

    def pick_classroom(
        self,
        context: AllocationContext,
        request: SessionRequest,
        day: DayOfWeek,
        slot: TimeSlot,
    ) -> ClassroomSnapshot | None:
        sibling_id = context.sibling_classrooms.get(request.pair_key)
        if sibling_id is not None:
            for classroom in request.candidate_classrooms:
                if classroom.id == sibling_id and self.is_conflict_free(context, request, day, slot, classroom):
                    return classroom

        free = [
            classroom
            for classroom in request.candidate_classrooms
            if self.is_conflict_free(context, request, day, slot, classroom)
        ]
        if not free:
            return None
        return min(free, key=lambda classroom: context.usage.per_classroom[classroom.id])

    def search(self, context: AllocationContext, request: SessionRequest) -> SearchOutcome:
        days = self.order_days(context, request, self.candidate_days(context, request))
        slots = self.order_slots(context, self.candidate_slots(request))
        examined = 0

        for slot in slots:
            if context.cancelled:
                return SearchOutcome(placement=None, slots_examined=examined, cancelled=True)
            for day in days:
                examined += 1
                classroom = self.pick_classroom(context, request, day, slot)
                if classroom is None:
                    continue
                return SearchOutcome(
                    placement=Placement(request=request, day=day, slot=slot, classroom=classroom),
                    slots_examined=examined,
                )

        self.report_time_conflict(context, request, examined)
        return SearchOutcome(placement=None, slots_examined=examined)

    def report_time_conflict(self, context: AllocationContext, request: SessionRequest, examined: int) -> None:
        teacher = request.teacher
        taken = sort_days(context.used_days.get(request.pair_key, set()))
        context.failures.add(
            FailureType.time_conflict,
            section_id=request.section.id,
            section_name=request.section.name,
            subject=request.subject.name,
            session_number=request.session_number,
            reason="No uniform time slot available",
            details=(
                f"No time slot found that works for session {request.session_number}/{request.total_sessions} "
                f"for {teacher.full_name}"
            ),
            diagnostics={
                "teacher_days": [day.value for day in sort_days(teacher.available_days)],
                "teacher_window": teacher.window_label,
                "days_used_by_other_sessions": [day.value for day in taken],
                "slots_examined": examined,
            },
        )
