from collections import defaultdict
from datetime import date
from itertools import combinations

import pytest

from app.core.exceptions import ScopeConflictError, ValidationError
from app.models.schedule_entry import DayOfWeek
from app.services.cancellation import CancellationToken
from app.services.domain import ScheduleEntryData, ScheduleScope
from app.services.failure_report import FailureType
from app.services.schedule_generator import GenerationOptions, ScheduleGenerator, delete_by_scope
from app.services.time_grid import intervals_overlap, overlaps_break, parse_time_to_minutes


def run(gateway, scope, sections, teachers, classrooms, subjects, existing=(), token=None, **options):
    generator = ScheduleGenerator(gateway, GenerationOptions(entry_date=date(2026, 6, 1), **options))
    return generator.generate(scope, sections, teachers, classrooms, subjects, existing, token)


def assert_no_overlaps(entries):
    for attribute in ("teacher_id", "classroom_id", "section_id"):
        grouped = defaultdict(list)
        for entry in entries:
            grouped[(entry.day, getattr(entry, attribute))].append(entry)
        for group in grouped.values():
            for left, right in combinations(group, 2):
                assert not intervals_overlap(left.start, left.end, right.start, right.end), (attribute, left, right)


def test_happy_path_places_two_sessions_on_distinct_days(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    result = run(memory_gateway, scope, [make_section()], [make_teacher()], [make_classroom()], [make_subject()])

    assert result.failures == []
    assert result.scheduled_count == result.saved_count == 12
    assert len(result.created) == 12
    assert result.remaining_count == 0
    assert not result.cancelled
    assert {entry.day for entry in result.created} == {DayOfWeek.friday, DayOfWeek.monday}
    assert all(
        parse_time_to_minutes("08:00") <= entry.start and entry.end <= parse_time_to_minutes("16:00")
        for entry in result.created
    )
    by_session = {entry.session_number: entry for entry in result.created if entry.duration_index == 0}
    assert (by_session[1].day, by_session[1].start_time) == (DayOfWeek.friday, "09:15")
    assert (by_session[2].day, by_session[2].start_time) == (DayOfWeek.monday, "10:45")
    assert result.stats["per_day"] == {"FRIDAY": 1, "MONDAY": 1}
    assert result.stats["per_time_slot"] == {"09:15": 1, "10:45": 1}
    assert result.summary() == "Successfully generated and saved 12 schedule entries."


def test_single_day_teacher_gets_one_session_and_a_time_conflict(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    teacher = make_teacher(days=(DayOfWeek.monday,))

    result = run(memory_gateway, scope, [make_section()], [teacher], [make_classroom()], [make_subject()])

    assert result.saved_count == 6
    assert {entry.day for entry in result.created} == {DayOfWeek.monday}
    [failure] = result.failures
    assert failure.failure_type == FailureType.time_conflict
    assert failure.session_number == 2
    assert failure.diagnostics["slots_examined"] == 0


def test_two_teachers_share_two_sections(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    sections = [make_section("s1"), make_section("s2")]
    teachers = [make_teacher("t1"), make_teacher("t2")]

    result = run(memory_gateway, scope, sections, teachers, [make_classroom("r1"), make_classroom("r2")], [make_subject()])

    assert result.failures == []
    assert result.saved_count == 24
    assert result.stats["per_teacher"] == {"t1": 2, "t2": 2}
    teacher_by_section = {entry.section_id: entry.teacher_id for entry in result.created}
    assert teacher_by_section == {"s1": "t1", "s2": "t2"}
    assert_no_overlaps(result.created)


def test_missing_room_type_reported_per_session(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    subject = make_subject(room_types=("Lab",))

    result = run(memory_gateway, scope, [make_section()], [make_teacher()], [make_classroom(room_type="Lecture")], [subject])

    assert result.scheduled_count == 0
    assert memory_gateway.entries == []
    assert [failure.failure_type for failure in result.failures] == [FailureType.missing_classroom] * 2
    assert [failure.session_number for failure in result.failures] == [1, 2]


def test_lab_subject_is_placed_in_the_lab(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    subject = make_subject(room_types=("Lab",))
    classrooms = [make_classroom("r1", "Lecture"), make_classroom("lab1", "Lab")]

    result = run(memory_gateway, scope, [make_section()], [make_teacher()], classrooms, [subject])

    assert result.failures == []
    assert result.saved_count == 12
    assert {entry.classroom_id for entry in result.created} == {"lab1"}
    assert result.stats["per_classroom"] == {"lab1": 2}


def test_dense_input_keeps_every_invariant(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    subjects = [make_subject("math", "Math"), make_subject("sci", "Science"), make_subject("eng", "English")]
    subject_ids = tuple(subject.id for subject in subjects)
    sections = [make_section(f"s{index}", subject_ids) for index in range(5)]
    teachers = [
        make_teacher(f"t{index}", subjects=("Math", "Science", "English"), start="07:30", end="18:00")
        for index in range(3)
    ]
    classrooms = [make_classroom("r1"), make_classroom("r2")]

    result = run(memory_gateway, scope, sections, teachers, classrooms, subjects)

    entries = result.created
    assert_no_overlaps(entries)
    assert all(overlaps_break(entry.start, entry.end) is None for entry in entries)
    assert all(entry.end - entry.start == 15 for entry in entries)

    sessions = defaultdict(list)
    for entry in entries:
        sessions[(entry.section_id, entry.subject, entry.session_number)].append(entry)
    for chunk in sessions.values():
        assert len(chunk) == 6
        assert len({(entry.day, entry.teacher_id, entry.classroom_id) for entry in chunk}) == 1
    pairs = defaultdict(set)
    for (section_id, subject, _), chunk in sessions.items():
        pairs[(section_id, subject)].add(chunk[0].day)
    for (section_id, subject), days in pairs.items():
        placed = [key for key in sessions if key[:2] == (section_id, subject)]
        assert len(days) == len(placed)

    failed_sessions = sum(1 for failure in result.failures if failure.session_number is not None)
    assert len(sessions) + failed_sessions == result.requests_total


def test_existing_entries_block_time_but_stay_outside_scope(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    blocked = [
        ScheduleEntryData(
            school_year_id=scope.school_year_id,
            semester="2nd",
            day=DayOfWeek.friday,
            start=start,
            end=start + 15,
            teacher_id="t1",
            classroom_id="elsewhere",
            section_id="other",
            subject="History",
        )
        for start in range(parse_time_to_minutes("09:15"), parse_time_to_minutes("10:45"), 15)
    ]

    result = run(
        memory_gateway, scope, [make_section()], [make_teacher()], [make_classroom()], [make_subject()], blocked
    )

    first = next(entry for entry in result.created if entry.session_number == 1)
    assert first.day == DayOfWeek.monday
    assert first.start_time == "09:15"


def test_scope_guard_rejects_second_run(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    inputs = ([make_section()], [make_teacher()], [make_classroom()], [make_subject()])
    run(memory_gateway, scope, *inputs)
    saved = len(memory_gateway.entries)

    with pytest.raises(ScopeConflictError) as excinfo:
        run(memory_gateway, scope, *inputs, existing=memory_gateway.list_entries(scope.school_year_id))

    assert excinfo.value.details["existing_count"] == saved
    assert len(memory_gateway.entries) == saved


def test_scope_guard_reads_stored_entries_without_existing(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    inputs = ([make_section()], [make_teacher()], [make_classroom()], [make_subject()])
    run(memory_gateway, scope, *inputs)

    with pytest.raises(ScopeConflictError) as excinfo:
        run(memory_gateway, scope, *inputs)

    assert excinfo.value.details["existing_count"] == 12
    assert len(memory_gateway.entries) == 12
    assert memory_gateway.attempts == 12


@pytest.mark.parametrize(
    ("missing", "message"),
    [
        ("sections", "Please add sections first"),
        ("teachers", "Please add teachers first"),
        ("classrooms", "Please add classrooms first"),
        ("subjects", "Please add subjects first"),
    ],
)
def test_empty_prerequisites_fail_before_allocation(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom, missing, message
):
    inputs = {
        "sections": [make_section()],
        "teachers": [make_teacher()],
        "classrooms": [make_classroom()],
        "subjects": [make_subject()],
    }
    inputs[missing] = []

    with pytest.raises(ValidationError) as excinfo:
        ScheduleGenerator(memory_gateway).generate(scope, **inputs)

    assert excinfo.value.message == message
    assert memory_gateway.attempts == 0


def test_sections_without_subjects_and_blank_scope_rejected(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    empty = make_section("s2", subject_ids=(), name="8-B")
    with pytest.raises(ValidationError) as excinfo:
        run(memory_gateway, scope, [make_section(), empty], [make_teacher()], [make_classroom()], [make_subject()])
    assert excinfo.value.details == {"sections_without_subjects": ["8-B"]}

    blank = ScheduleScope(school_year_id=scope.school_year_id, semester="  ")
    with pytest.raises(ValidationError):
        run(memory_gateway, blank, [make_section()], [make_teacher()], [make_classroom()], [make_subject()])


def test_unknown_and_duplicate_subject_ids_become_data_errors(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    section = make_section(subject_ids=("math", "ghost", "math"))

    result = run(memory_gateway, scope, [section], [make_teacher()], [make_classroom()], [make_subject()])

    assert result.saved_count == 12
    assert [failure.failure_type for failure in result.failures] == [FailureType.data_error] * 2
    assert result.failures[0].diagnostics == {"subject_id": "ghost"}


def test_cancellation_during_persistence_reports_honest_counts(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    memory_gateway.cancel_after = 7
    token = CancellationToken()
    sections = [make_section("s1"), make_section("s2")]
    teachers = [make_teacher("t1"), make_teacher("t2")]

    result = run(memory_gateway, scope, sections, teachers, [make_classroom()], [make_subject()], token=token)

    assert result.cancelled
    assert result.scheduled_count == 24
    assert result.saved_count == len(memory_gateway.entries) == len(result.created) == 7
    assert result.remaining_count == 17
    assert result.summary().startswith("Generation cancelled: 7 of 24")


def test_cancelled_before_start_saves_nothing(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    token = CancellationToken()
    token.cancel()

    result = run(
        memory_gateway, scope, [make_section()], [make_teacher()], [make_classroom()], [make_subject()], token=token
    )

    assert result.cancelled
    assert result.requests_processed == 0
    assert result.saved_count == 0
    assert memory_gateway.entries == []


def test_persistence_errors_are_counted_not_fatal(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    memory_gateway.fail_on = {2, 5}

    result = run(memory_gateway, scope, [make_section()], [make_teacher()], [make_classroom()], [make_subject()])

    assert result.saved_count == 10
    assert result.failed_to_save_count == 2
    assert result.remaining_count == 0
    assert not result.cancelled
    assert "(2 failed to save)" in result.summary()


def test_delete_by_scope_removes_school_year_entries(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    run(memory_gateway, scope, [make_section()], [make_teacher()], [make_classroom()], [make_subject()])

    result = delete_by_scope(memory_gateway, scope.school_year_id)

    assert result.deleted_count == 12
    assert result.failed_count == 0
    assert not result.cancelled
    assert memory_gateway.entries == []


def test_delete_by_scope_honours_cancellation(
    memory_gateway, scope, make_teacher, make_section, make_subject, make_classroom
):
    run(memory_gateway, scope, [make_section()], [make_teacher()], [make_classroom()], [make_subject()])
    memory_gateway.cancel_after = 5

    result = delete_by_scope(memory_gateway, scope.school_year_id, CancellationToken())

    assert result.cancelled
    assert result.deleted_count == 5
    assert len(memory_gateway.entries) == 7

    with pytest.raises(ValidationError):
        delete_by_scope(memory_gateway, " ")
