import os

# Point the app-level engine at an in-memory database before anything imports it.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("ENVIRONMENT", "test")

import uuid  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.deps import get_db  # noqa: E402
from app.core.exceptions import OperationCancelled, PersistenceError  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Classroom, SchedulePattern, SchoolYear, Section, Subject, Teacher  # noqa: E402
from app.services.allocation import AllocationContext  # noqa: E402
from app.services.cancellation import CancellationToken, run_registry  # noqa: E402
from app.services.domain import (  # noqa: E402
    ClassroomSnapshot,
    RoomRequirement,
    ScheduleEntryData,
    ScheduleScope,
    SectionSnapshot,
    SubjectSnapshot,
    TeacherSnapshot,
)
from app.services.time_grid import WEEKDAYS, parse_time_to_minutes  # noqa: E402


class InMemoryScheduleGateway:
    """Gateway double that keeps entries in a list.

    ``cancel_after`` trips the supplied token once that many entries are saved or deleted;
    ``fail_on`` holds 1-based save attempts that raise ``PersistenceError``.
    """

    def __init__(self) -> None:
        self.entries: list[ScheduleEntryData] = []
        self.cancel_after: int | None = None
        self.fail_on: set[int] = set()
        self.attempts = 0
        self.saved = 0
        self.deleted = 0

    def list_entries(self, school_year_id, semester=None):
        return [
            entry
            for entry in self.entries
            if entry.school_year_id == school_year_id and (semester is None or entry.semester == semester)
        ]

    def count_in_scope(self, scope):
        return sum(1 for entry in self.entries if entry.in_scope(scope))

    def create_entry(self, entry, cancel_token=None):
        if cancel_token is not None and cancel_token.cancelled:
            raise OperationCancelled()
        self.attempts += 1
        if self.attempts in self.fail_on:
            raise PersistenceError("Failed to save schedule entry", details={"attempt": self.attempts})
        entry.id = str(uuid.uuid4())
        self.entries.append(entry)
        self.saved += 1
        if self.cancel_after is not None and self.saved >= self.cancel_after and cancel_token is not None:
            cancel_token.cancel()
        return entry

    def delete_entry(self, entry_id, cancel_token=None):
        if cancel_token is not None and cancel_token.cancelled:
            raise OperationCancelled()
        before = len(self.entries)
        self.entries = [entry for entry in self.entries if entry.id != entry_id]
        if len(self.entries) == before:
            raise PersistenceError("Schedule entry not found", details={"entry_id": entry_id})
        self.deleted += 1
        if self.cancel_after is not None and self.deleted >= self.cancel_after and cancel_token is not None:
            cancel_token.cancel()


@pytest.fixture()
def scope():
    return ScheduleScope(school_year_id="sy-2026", semester="1st")


@pytest.fixture()
def context(scope):
    return AllocationContext(scope=scope, cancel_token=CancellationToken())


@pytest.fixture()
def memory_gateway():
    return InMemoryScheduleGateway()


@pytest.fixture()
def make_teacher():
    def factory(
        teacher_id="t1",
        subjects=("Math",),
        days=WEEKDAYS,
        start="08:00",
        end="16:00",
        assigned=(),
        first_name=None,
        last_name="Teacher",
    ):
        return TeacherSnapshot(
            id=teacher_id,
            first_name=first_name or teacher_id.upper(),
            last_name=last_name,
            subjects=tuple(subjects),
            available_days=tuple(days),
            available_start=parse_time_to_minutes(start),
            available_end=parse_time_to_minutes(end),
            assigned_section_ids=tuple(assigned),
        )

    return factory


@pytest.fixture()
def make_section():
    def factory(section_id="s1", subject_ids=("math",), days=WEEKDAYS, name=None):
        return SectionSnapshot(
            id=section_id,
            name=name or f"Section {section_id}",
            subject_ids=tuple(subject_ids),
            days=tuple(days),
        )

    return factory


@pytest.fixture()
def make_subject():
    def factory(subject_id="math", name="Math", room_types=()):
        return SubjectSnapshot(
            id=subject_id,
            name=name,
            room_requirements=tuple(RoomRequirement(room_type=item) for item in room_types),
        )

    return factory


@pytest.fixture()
def make_classroom():
    def factory(classroom_id="r1", room_type="Lecture", name=None, capacity=40):
        return ClassroomSnapshot(id=classroom_id, name=name or f"Room {classroom_id}", room_type=room_type, capacity=capacity)

    return factory


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(engine):
    run_registry.clear()
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    run_registry.clear()


@pytest.fixture()
def seeded_school(db_session):
    school_year = SchoolYear(name="2026-2027", is_active=True)
    subject = Subject(name="Math", code="MATH7", room_requirements=[{"room_type": "Lecture", "duration_hours": 3}])
    classroom = Classroom(room_name="Room 101", room_type="Lecture", capacity=40)
    teacher = Teacher(
        first_name="Ada",
        last_name="Reyes",
        email="ada.reyes@example.com",
        subjects=["Math"],
        available_days=["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY"],
        available_start_time="08:00",
        available_end_time="16:00",
    )
    db_session.add_all([school_year, subject, classroom, teacher])
    db_session.flush()
    section = Section(
        section_name="7-A",
        grade_level="7",
        student_count=35,
        schedule_pattern=SchedulePattern.daily,
        subject_ids=[subject.id],
        school_year_id=school_year.id,
        semester="1st",
    )
    db_session.add(section)
    db_session.commit()
    return {
        "school_year_id": school_year.id,
        "subject_id": subject.id,
        "classroom_id": classroom.id,
        "teacher_id": teacher.id,
        "section_id": section.id,
    }
