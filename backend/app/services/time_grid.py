"""Fixed daily template shared by every generation run.

All times are minute-of-day integers internally and ``HH:MM`` strings at the
edges. Intervals are half-open ``[start, end)``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from app.models.schedule_entry import DayOfWeek
from app.models.section import SchedulePattern

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

DAY_ORDER: tuple[DayOfWeek, ...] = (
    DayOfWeek.monday,
    DayOfWeek.tuesday,
    DayOfWeek.wednesday,
    DayOfWeek.thursday,
    DayOfWeek.friday,
    DayOfWeek.saturday,
    DayOfWeek.sunday,
)
WEEKDAYS: tuple[DayOfWeek, ...] = DAY_ORDER[:5]

DAY_ALIASES = {
    "MON": DayOfWeek.monday,
    "TUE": DayOfWeek.tuesday,
    "WED": DayOfWeek.wednesday,
    "THU": DayOfWeek.thursday,
    "FRI": DayOfWeek.friday,
    "SAT": DayOfWeek.saturday,
    "SUN": DayOfWeek.sunday,
}

SCHEDULE_PATTERN_DAYS: dict[SchedulePattern, tuple[DayOfWeek, ...]] = {
    SchedulePattern.daily: WEEKDAYS,
    SchedulePattern.mwf: (DayOfWeek.monday, DayOfWeek.wednesday, DayOfWeek.friday),
    SchedulePattern.tth: (DayOfWeek.tuesday, DayOfWeek.thursday),
}

QUARTER_HOUR_MINUTES = 15
SESSION_MINUTES = 90
SESSIONS_PER_SUBJECT = 2
WEEKLY_SUBJECT_HOURS = 3
SEGMENTS_PER_SESSION = SESSION_MINUTES // QUARTER_HOUR_MINUTES
ANY_ROOM_TYPE = "Any"


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def normalize_day(value: str | DayOfWeek) -> DayOfWeek:
    if isinstance(value, DayOfWeek):
        return value
    key = str(value).strip().upper()
    if key in DAY_ALIASES:
        return DAY_ALIASES[key]
    return DayOfWeek(key)


def sort_days(days) -> tuple[DayOfWeek, ...]:
    unique = {normalize_day(day) for day in days}
    return tuple(day for day in DAY_ORDER if day in unique)


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return not (end_a <= start_b or end_b <= start_a)


@dataclass(frozen=True)
class BreakWindow:
    label: str
    start: int
    end: int


@dataclass(frozen=True)
class TimeSlot:
    start: int
    end: int

    @property
    def label(self) -> str:
        return f"{minutes_to_time(self.start)}-{minutes_to_time(self.end)}"

    def fits_window(self, window_start: int, window_end: int) -> bool:
        return window_start <= self.start and self.end <= window_end

    def quarter_hours(self) -> list[tuple[int, int]]:
        return [
            (offset, offset + QUARTER_HOUR_MINUTES)
            for offset in range(self.start, self.end, QUARTER_HOUR_MINUTES)
        ]


BREAK_WINDOWS: tuple[BreakWindow, ...] = (
    BreakWindow("Morning Break", parse_time_to_minutes("09:00"), parse_time_to_minutes("09:15")),
    BreakWindow("Lunch Break", parse_time_to_minutes("12:15"), parse_time_to_minutes("13:15")),
    BreakWindow("Afternoon Break", parse_time_to_minutes("16:15"), parse_time_to_minutes("16:30")),
)

SESSION_SLOTS: tuple[TimeSlot, ...] = tuple(
    TimeSlot(parse_time_to_minutes(start), parse_time_to_minutes(end))
    for start, end in (
        ("07:30", "09:00"),
        ("09:15", "10:45"),
        ("10:45", "12:15"),
        ("13:15", "14:45"),
        ("14:45", "16:15"),
        ("16:30", "18:00"),
    )
)


def overlaps_break(start: int, end: int) -> BreakWindow | None:
    for window in BREAK_WINDOWS:
        if intervals_overlap(start, end, window.start, window.end):
            return window
    return None


def slots_within_window(window_start: int, window_end: int) -> list[TimeSlot]:
    return [slot for slot in SESSION_SLOTS if slot.fits_window(window_start, window_end)]


def validate_template() -> None:
    """Fail fast if the slot template was edited into an invalid state."""
    for slot in SESSION_SLOTS:
        if slot.end - slot.start != SESSION_MINUTES:
            raise ValueError(f"Slot {slot.label} is not {SESSION_MINUTES} minutes long")
        window = overlaps_break(slot.start, slot.end)
        if window is not None:
            raise ValueError(f"Slot {slot.label} overlaps {window.label}")
    ordered = sorted(SESSION_SLOTS, key=lambda item: item.start)
    for left, right in zip(ordered, ordered[1:]):
        if intervals_overlap(left.start, left.end, right.start, right.end):
            raise ValueError(f"Slots {left.label} and {right.label} overlap")


validate_template()
