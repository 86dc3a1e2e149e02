from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field

from app.models.schedule_entry import DayOfWeek
from app.services.cancellation import CancellationToken
from app.services.conflict_tracker import ConflictTracker
from app.services.domain import ScheduleEntryData, ScheduleScope
from app.services.failure_report import FailureReporter
from app.services.time_grid import minutes_to_time

PairKey = tuple[str, str]


@dataclass
class UsageCounters:
    """Session tallies used only for load-balancing tie-breaks."""

    per_day: Counter = field(default_factory=Counter)
    per_time_slot: Counter = field(default_factory=Counter)
    per_teacher: Counter = field(default_factory=Counter)
    per_teacher_day: Counter = field(default_factory=Counter)
    per_classroom: Counter = field(default_factory=Counter)

    def record_session(self, *, teacher_id: str, classroom_id: str, day: DayOfWeek, slot_start: int) -> None:
        self.per_day[day] += 1
        self.per_time_slot[slot_start] += 1
        self.per_teacher[teacher_id] += 1
        self.per_teacher_day[(teacher_id, day)] += 1
        self.per_classroom[classroom_id] += 1

    def as_stats(self) -> dict[str, dict[str, int]]:
        return {
            "per_day": {day.value: count for day, count in self.per_day.items()},
            "per_time_slot": {minutes_to_time(start): count for start, count in sorted(self.per_time_slot.items())},
            "per_teacher": dict(self.per_teacher),
            "per_classroom": dict(self.per_classroom),
        }


@dataclass
class AllocationContext:
    """All mutable working state of one generation run.

    Created per run and discarded afterwards; components receive it explicitly
    and never keep their own copies.
    """

    scope: ScheduleScope
    cancel_token: CancellationToken
    tracker: ConflictTracker = field(default_factory=ConflictTracker)
    usage: UsageCounters = field(default_factory=UsageCounters)
    failures: FailureReporter = field(default_factory=FailureReporter)
    # distinct-day-per-session: days already taken by a (section, subject) pair.
    used_days: dict[PairKey, set[DayOfWeek]] = field(default_factory=lambda: defaultdict(set))
    sibling_classrooms: dict[PairKey, str] = field(default_factory=dict)
    assigned_load: Counter = field(default_factory=Counter)
    subject_teachers: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    entries: list[ScheduleEntryData] = field(default_factory=list)

    @property
    def cancelled(self) -> bool:
        return self.cancel_token.cancelled
