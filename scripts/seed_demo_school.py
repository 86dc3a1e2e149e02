"""Seed a small demo school for local timetable generation.

Run:
  PYTHONPATH=backend python scripts/seed_demo_school.py

Set SEED_GENERATE=true to also generate the timetable for the seeded scope.
"""

from __future__ import annotations

import os
from datetime import date

from sqlalchemy import func, select

from app.db.bootstrap import ensure_runtime_schema
from app.db.session import SessionLocal
from app.models.classroom import Classroom
from app.models.schedule_entry import ScheduleEntry
from app.models.school_year import SchoolYear
from app.models.section import SchedulePattern, Section
from app.models.subject import Subject
from app.models.teacher import Teacher
from app.services.domain import ScheduleScope
from app.services.domain_loader import load_domain_snapshot
from app.services.schedule_gateway import SqlScheduleGateway
from app.services.schedule_generator import ScheduleGenerator

SCHOOL_YEAR = os.getenv("SEED_SCHOOL_YEAR", "2026-2027").strip() or "2026-2027"
SEMESTER = os.getenv("SEED_SEMESTER", "1st").strip() or "1st"
MOCK_EMAIL_DOMAIN = os.getenv("SEED_MOCK_EMAIL_DOMAIN", "school.edu").strip().lower() or "school.edu"
GENERATE = os.getenv("SEED_GENERATE", "false").strip().lower() in {"1", "true", "yes", "on"}
WEEKDAYS = ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY"]

CLASSROOMS = [
    ("Room 101", "Lecture", 40),
    ("Room 102", "Lecture", 40),
    ("Room 103", "Lecture", 40),
    ("Room 201", "Lecture", 45),
    ("Science Lab", "Lab", 30),
    ("Computer Lab", "Computer Lab", 30),
]

SUBJECTS = [
    ("Mathematics", "MATH", [{"room_type": "Lecture", "duration_hours": 3}]),
    ("English", "ENG", [{"room_type": "Lecture", "duration_hours": 3}]),
    ("Science", "SCI", [{"room_type": "Lecture", "duration_hours": 1.5}, {"room_type": "Lab", "duration_hours": 1.5}]),
    ("Filipino", "FIL", []),
    ("Computer", "ICT", [{"room_type": "Computer Lab", "duration_hours": 3}]),
]

TEACHERS = [
    ("Maria", "Santos", ["Mathematics"], WEEKDAYS, "07:30", "16:15"),
    ("Jose", "Reyes", ["Mathematics", "Science"], WEEKDAYS, "08:00", "18:00"),
    ("Ana", "Cruz", ["English", "Filipino"], WEEKDAYS, "07:30", "14:45"),
    ("Paolo", "Garcia", ["Science"], ["MONDAY", "WEDNESDAY", "FRIDAY"], "07:30", "18:00"),
    ("Liza", "Mendoza", ["English"], ["TUESDAY", "THURSDAY"], "09:15", "16:15"),
    ("Ramon", "Bautista", ["Computer", "Filipino"], WEEKDAYS, "09:15", "18:00"),
]

SECTIONS = [
    ("7-Rizal", "7", 38, SchedulePattern.daily, []),
    ("7-Bonifacio", "7", 36, SchedulePattern.daily, []),
    ("8-Mabini", "8", 40, SchedulePattern.mwf, []),
    ("8-Luna", "8", 35, SchedulePattern.custom, ["MONDAY", "TUESDAY", "THURSDAY", "FRIDAY"]),
]


def upsert_school_year(session) -> SchoolYear:
    school_year = session.execute(select(SchoolYear).where(SchoolYear.name == SCHOOL_YEAR)).scalar_one_or_none()
    if school_year is None:
        start_year = int(SCHOOL_YEAR[:4]) if SCHOOL_YEAR[:4].isdigit() else date.today().year
        school_year = SchoolYear(
            name=SCHOOL_YEAR,
            start_date=date(start_year, 6, 1),
            end_date=date(start_year + 1, 3, 31),
            is_active=True,
        )
        session.add(school_year)
        session.flush()
    return school_year


def upsert_classrooms(session) -> None:
    for room_name, room_type, capacity in CLASSROOMS:
        classroom = session.execute(select(Classroom).where(Classroom.room_name == room_name)).scalar_one_or_none()
        if classroom is None:
            session.add(Classroom(room_name=room_name, room_type=room_type, capacity=capacity, location="Main Building"))
        else:
            classroom.room_type = room_type
            classroom.capacity = capacity


def upsert_subjects(session) -> dict[str, Subject]:
    by_name: dict[str, Subject] = {}
    for name, code, requirements in SUBJECTS:
        subject = session.execute(select(Subject).where(Subject.name == name)).scalar_one_or_none()
        if subject is None:
            subject = Subject(name=name, code=code, room_requirements=requirements)
            session.add(subject)
        else:
            subject.code = code
            subject.room_requirements = requirements
        by_name[name] = subject
    session.flush()
    return by_name


def upsert_teachers(session) -> None:
    for first_name, last_name, subjects, days, start, end in TEACHERS:
        email = f"{first_name}.{last_name}@{MOCK_EMAIL_DOMAIN}".lower()
        teacher = session.execute(select(Teacher).where(Teacher.email == email)).scalar_one_or_none()
        if teacher is None:
            teacher = Teacher(first_name=first_name, last_name=last_name, email=email)
            session.add(teacher)
        teacher.subjects = subjects
        teacher.available_days = days
        teacher.available_start_time = start
        teacher.available_end_time = end


def upsert_sections(session, school_year: SchoolYear, subjects: dict[str, Subject]) -> None:
    subject_ids = [subject.id for subject in subjects.values()]
    for section_name, grade_level, student_count, pattern, custom_days in SECTIONS:
        section = session.execute(select(Section).where(Section.section_name == section_name)).scalar_one_or_none()
        if section is None:
            section = Section(section_name=section_name)
            session.add(section)
        section.grade_level = grade_level
        section.student_count = student_count
        section.schedule_pattern = pattern
        section.available_days = custom_days
        section.subject_ids = subject_ids
        section.school_year_id = school_year.id
        section.semester = SEMESTER


def generate_timetable(session, school_year: SchoolYear) -> None:
    scope = ScheduleScope(school_year_id=school_year.id, semester=SEMESTER)
    snapshot = load_domain_snapshot(session, scope)
    result = ScheduleGenerator(SqlScheduleGateway(session)).generate(
        scope,
        snapshot.sections,
        snapshot.teachers,
        snapshot.classrooms,
        snapshot.subjects,
        snapshot.existing_entries,
    )
    print(result.summary())
    for failure in result.failures:
        print(f"  [{failure.failure_type.value}] {failure.section_name} - {failure.subject}: {failure.details}")


def main() -> None:
    ensure_runtime_schema()
    with SessionLocal() as session:
        school_year = upsert_school_year(session)
        upsert_classrooms(session)
        subjects = upsert_subjects(session)
        upsert_teachers(session)
        upsert_sections(session, school_year, subjects)
        session.commit()

        counts = {
            model.__tablename__: session.execute(select(func.count(model.id))).scalar_one()
            for model in (Classroom, Teacher, Subject, Section)
        }
        print("Demo school seeded successfully.")
        print("")
        print(f"School year: {school_year.name} ({school_year.id}), semester {SEMESTER}")
        for table, count in counts.items():
            print(f"  {table}: {count}")

        if GENERATE:
            existing = session.execute(
                select(func.count(ScheduleEntry.id)).where(
                    ScheduleEntry.school_year_id == school_year.id,
                    ScheduleEntry.semester == SEMESTER,
                )
            ).scalar_one()
            if existing:
                print(f"Skipping generation: {existing} entries already exist for this scope.")
            else:
                generate_timetable(session, school_year)


if __name__ == "__main__":
    main()
