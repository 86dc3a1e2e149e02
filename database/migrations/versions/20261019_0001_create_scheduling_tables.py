"""create scheduling tables

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


schedule_pattern_enum = sa.Enum("daily", "mwf", "tth", "custom", name="schedule_pattern")
day_of_week_enum = sa.Enum(
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
    name="day_of_week",
)
schedule_status_enum = sa.Enum("scheduled", "cancelled", "completed", name="schedule_status")


def upgrade() -> None:
    op.create_table(
        "school_years",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_school_years_name", "school_years", ["name"], unique=True)

    op.create_table(
        "classrooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("room_name", sa.String(length=100), nullable=False),
        sa.Column("room_type", sa.String(length=50), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_classrooms_room_name", "classrooms", ["room_name"], unique=True)

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("subjects", sa.JSON(), nullable=False),
        sa.Column("available_days", sa.JSON(), nullable=False),
        sa.Column("available_start_time", sa.String(length=5), nullable=False, server_default="07:30"),
        sa.Column("available_end_time", sa.String(length=5), nullable=False, server_default="18:00"),
        sa.Column("assigned_section_ids", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teachers_email", "teachers", ["email"], unique=True)

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=True),
        sa.Column("room_requirements", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_subjects_name", "subjects", ["name"], unique=True)

    op.create_table(
        "sections",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("section_name", sa.String(length=100), nullable=False),
        sa.Column("grade_level", sa.String(length=50), nullable=True),
        sa.Column("student_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("schedule_pattern", schedule_pattern_enum, nullable=False, server_default="daily"),
        sa.Column("available_days", sa.JSON(), nullable=False),
        sa.Column("subject_ids", sa.JSON(), nullable=False),
        sa.Column("school_year_id", sa.String(length=36), nullable=True),
        sa.Column("semester", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_sections_section_name", "sections", ["section_name"], unique=True)
    op.create_index("ix_sections_school_year_id", "sections", ["school_year_id"], unique=False)

    op.create_table(
        "schedule_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("school_year_id", sa.String(length=36), nullable=False),
        sa.Column("semester", sa.String(length=20), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("day_of_week", day_of_week_enum, nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("classroom_id", sa.String(length=36), nullable=False),
        sa.Column("section_id", sa.String(length=36), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("session_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("total_sessions", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("duration_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("status", schedule_status_enum, nullable=False, server_default="scheduled"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_schedule_entries_scope", "schedule_entries", ["school_year_id", "semester"], unique=False)
    op.create_index("ix_schedule_entries_teacher_id", "schedule_entries", ["teacher_id"], unique=False)
    op.create_index("ix_schedule_entries_classroom_id", "schedule_entries", ["classroom_id"], unique=False)
    op.create_index("ix_schedule_entries_section_id", "schedule_entries", ["section_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_schedule_entries_section_id", table_name="schedule_entries")
    op.drop_index("ix_schedule_entries_classroom_id", table_name="schedule_entries")
    op.drop_index("ix_schedule_entries_teacher_id", table_name="schedule_entries")
    op.drop_index("ix_schedule_entries_scope", table_name="schedule_entries")
    op.drop_table("schedule_entries")
    op.drop_index("ix_sections_school_year_id", table_name="sections")
    op.drop_index("ix_sections_section_name", table_name="sections")
    op.drop_table("sections")
    op.drop_index("ix_subjects_name", table_name="subjects")
    op.drop_table("subjects")
    op.drop_index("ix_teachers_email", table_name="teachers")
    op.drop_table("teachers")
    op.drop_index("ix_classrooms_room_name", table_name="classrooms")
    op.drop_table("classrooms")
    op.drop_index("ix_school_years_name", table_name="school_years")
    op.drop_table("school_years")

    bind = op.get_bind()
    schedule_status_enum.drop(bind, checkfirst=True)
    day_of_week_enum.drop(bind, checkfirst=True)
    schedule_pattern_enum.drop(bind, checkfirst=True)
