"""create catalog and timetable entry tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


subject_status = sa.Enum("active", "inactive", name="subject_status")
room_status = sa.Enum("available", "maintenance", "occupied", name="room_status")


def upgrade() -> None:
    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("school_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teachers_school_id", "teachers", ["school_id"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("school_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="40"),
        sa.Column("status", room_status, nullable=False, server_default="available"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rooms_school_id", "rooms", ["school_id"])

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("school_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("class_name", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("hours_per_week", sa.Integer(), nullable=True),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", subject_status, nullable=False, server_default="active"),
        sa.Column("eligible_teacher_ids", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_subjects_school_id", "subjects", ["school_id"])
    op.create_index("ix_subjects_class_name", "subjects", ["class_name"])

    op.create_table(
        "timetable_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("school_id", sa.String(length=36), nullable=False),
        sa.Column("class_name", sa.String(length=100), nullable=False),
        sa.Column("section", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("academic_year", sa.String(length=20), nullable=True),
        sa.Column("day", sa.String(length=20), nullable=False),
        sa.Column("period", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=True),
        sa.Column("teacher_id", sa.String(length=36), nullable=True),
        sa.Column("teacher_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("room", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("school_id", "class_name", "section", "day", "period", name="uq_timetable_class_slot"),
    )
    op.create_index("ix_timetable_entries_school_id", "timetable_entries", ["school_id"])
    op.create_index("ix_timetable_school_slot", "timetable_entries", ["school_id", "day", "period"])


def downgrade() -> None:
    op.drop_index("ix_timetable_school_slot", table_name="timetable_entries")
    op.drop_index("ix_timetable_entries_school_id", table_name="timetable_entries")
    op.drop_table("timetable_entries")
    op.drop_index("ix_subjects_class_name", table_name="subjects")
    op.drop_index("ix_subjects_school_id", table_name="subjects")
    op.drop_table("subjects")
    op.drop_index("ix_rooms_school_id", table_name="rooms")
    op.drop_table("rooms")
    op.drop_index("ix_teachers_school_id", table_name="teachers")
    op.drop_table("teachers")
    subject_status.drop(op.get_bind(), checkfirst=True)
    room_status.drop(op.get_bind(), checkfirst=True)
