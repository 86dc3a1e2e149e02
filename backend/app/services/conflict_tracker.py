from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from enum import Enum

from app.models.schedule_entry import DayOfWeek
from app.services.domain import ScheduleEntryData
from app.services.time_grid import intervals_overlap


class ConflictDimension(str, Enum):
    teacher = "teacher"
    classroom = "classroom"
    section = "section"


class ConflictTracker:
    """Per-day index of occupied intervals for teachers, classrooms and sections.

    Queries cost O(intervals recorded for the queried key); nothing is ever
    removed during a run.
    """

    def __init__(self) -> None:
        self._occupied: dict[DayOfWeek, dict[ConflictDimension, dict[str, list[tuple[int, int]]]]] = defaultdict(
            lambda: {dimension: defaultdict(list) for dimension in ConflictDimension}
        )

    def record_interval(
        self,
        day: DayOfWeek,
        teacher_id: str,
        classroom_id: str,
        section_id: str,
        start: int,
        end: int,
    ) -> None:
        by_dimension = self._occupied[day]
        by_dimension[ConflictDimension.teacher][teacher_id].append((start, end))
        by_dimension[ConflictDimension.classroom][classroom_id].append((start, end))
        by_dimension[ConflictDimension.section][section_id].append((start, end))

    def has_conflict(
        self,
        day: DayOfWeek,
        teacher_id: str,
        classroom_id: str,
        section_id: str,
        start: int,
        end: int,
    ) -> ConflictDimension | None:
        by_dimension = self._occupied.get(day)
        if by_dimension is None:
            return None
        keys = (
            (ConflictDimension.teacher, teacher_id),
            (ConflictDimension.classroom, classroom_id),
            (ConflictDimension.section, section_id),
        )
        for dimension, key in keys:
            intervals = by_dimension[dimension].get(key)
            if not intervals:
                continue
            for occupied_start, occupied_end in intervals:
                if intervals_overlap(start, end, occupied_start, occupied_end):
                    return dimension
        return None

    def replay(self, entries: Iterable[ScheduleEntryData]) -> int:
        count = 0
        for entry in entries:
            self.record_interval(
                entry.day,
                entry.teacher_id,
                entry.classroom_id,
                entry.section_id,
                entry.start,
                entry.end,
            )
            count += 1
        return count

    def intervals_for(self, day: DayOfWeek, dimension: ConflictDimension, key: str) -> list[tuple[int, int]]:
        by_dimension = self._occupied.get(day)
        if by_dimension is None:
            return []
        return list(by_dimension[dimension].get(key, ()))
