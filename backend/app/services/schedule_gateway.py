from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import OperationCancelled, PersistenceError
from app.models.schedule_entry import ScheduleEntry
from app.services.cancellation import CancellationToken
from app.services.domain import ScheduleEntryData, ScheduleScope
from app.services.time_grid import minutes_to_time, parse_time_to_minutes

logger = logging.getLogger(__name__)


class ScheduleGateway(Protocol):
    def list_entries(self, school_year_id: str, semester: str | None = None) -> list[ScheduleEntryData]: ...

    def count_in_scope(self, scope: ScheduleScope) -> int: ...

    def create_entry(
        self,
        entry: ScheduleEntryData,
        cancel_token: CancellationToken | None = None,
    ) -> ScheduleEntryData: ...

    def delete_entry(self, entry_id: str, cancel_token: CancellationToken | None = None) -> None: ...


def entry_from_model(model: ScheduleEntry) -> ScheduleEntryData:
    return ScheduleEntryData(
        id=model.id,
        school_year_id=model.school_year_id,
        semester=model.semester,
        day=model.day_of_week,
        start=parse_time_to_minutes(model.start_time),
        end=parse_time_to_minutes(model.end_time),
        teacher_id=model.teacher_id,
        classroom_id=model.classroom_id,
        section_id=model.section_id,
        subject=model.subject,
        session_number=model.session_number,
        total_sessions=model.total_sessions,
        duration_index=model.duration_index,
        entry_date=model.entry_date,
        notes=model.notes,
        is_recurring=model.is_recurring,
        status=model.status,
    )


def model_from_entry(entry: ScheduleEntryData) -> ScheduleEntry:
    return ScheduleEntry(
        school_year_id=entry.school_year_id,
        semester=entry.semester,
        entry_date=entry.entry_date,
        day_of_week=entry.day,
        start_time=minutes_to_time(entry.start),
        end_time=minutes_to_time(entry.end),
        teacher_id=entry.teacher_id,
        classroom_id=entry.classroom_id,
        section_id=entry.section_id,
        subject=entry.subject,
        session_number=entry.session_number,
        total_sessions=entry.total_sessions,
        duration_index=entry.duration_index,
        notes=entry.notes,
        is_recurring=entry.is_recurring,
        status=entry.status,
    )


class SqlScheduleGateway:
    """Writes one entry per transaction so a cancelled run keeps a clean prefix."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def list_entries(self, school_year_id: str, semester: str | None = None) -> list[ScheduleEntryData]:
        query = select(ScheduleEntry).where(ScheduleEntry.school_year_id == school_year_id)
        if semester is not None:
            query = query.where(ScheduleEntry.semester == semester)
        query = query.order_by(
            ScheduleEntry.section_id,
            ScheduleEntry.day_of_week,
            ScheduleEntry.start_time,
        )
        return [entry_from_model(model) for model in self.db.execute(query).scalars()]

    def count_in_scope(self, scope: ScheduleScope) -> int:
        return self.db.execute(
            select(func.count(ScheduleEntry.id)).where(
                ScheduleEntry.school_year_id == scope.school_year_id,
                ScheduleEntry.semester == scope.semester,
            )
        ).scalar_one()

    def create_entry(
        self,
        entry: ScheduleEntryData,
        cancel_token: CancellationToken | None = None,
    ) -> ScheduleEntryData:
        if cancel_token is not None and cancel_token.cancelled:
            raise OperationCancelled()
        model = model_from_entry(entry)
        try:
            self.db.add(model)
            self.db.flush()
            if cancel_token is not None and cancel_token.cancelled:
                self.db.rollback()
                raise OperationCancelled()
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError(
                "Failed to save schedule entry",
                details={
                    "section_id": entry.section_id,
                    "subject": entry.subject,
                    "day": entry.day.value,
                    "start_time": entry.start_time,
                },
            ) from exc
        self.db.refresh(model)
        return entry_from_model(model)

    def delete_entry(self, entry_id: str, cancel_token: CancellationToken | None = None) -> None:
        if cancel_token is not None and cancel_token.cancelled:
            raise OperationCancelled()
        try:
            model = self.db.get(ScheduleEntry, entry_id)
            if model is None:
                raise PersistenceError("Schedule entry not found", details={"entry_id": entry_id})
            self.db.delete(model)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError("Failed to delete schedule entry", details={"entry_id": entry_id}) from exc
