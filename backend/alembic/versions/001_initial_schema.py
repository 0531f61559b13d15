"""Initial schema: programs, slots, applications, bookings with indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Programs table
    op.create_table(
        "programs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("program_type", sa.String(32), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'DRAFT'")),
        sa.Column("conditions", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        *_timestamps(),
        sa.CheckConstraint("program_type IN ('MULTI_DATES', 'WEEKLY_RESIDENCY')", name="check_program_type"),
        sa.CheckConstraint("status IN ('DRAFT', 'ACTIVE', 'ENDED', 'ARCHIVED')", name="check_program_status"),
    )
    op.create_index("ix_programs_id", "programs", ["id"])

    # Slots table
    op.create_table(
        "slots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("program_id", sa.Integer(), sa.ForeignKey("programs.id"), nullable=False),
        sa.Column("slot_type", sa.String(8), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'OPEN'")),
        sa.Column("tier", sa.String(16), nullable=True),
        sa.Column("conditions_override", postgresql.JSONB(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("slot_type IN ('DATE', 'WEEK')", name="check_slot_type"),
        sa.CheckConstraint("status IN ('OPEN', 'CLOSED', 'CANCELLED')", name="check_slot_status"),
        sa.CheckConstraint("end_date >= start_date", name="check_slot_dates_ordered"),
    )
    op.create_index("ix_slots_id", "slots", ["id"])
    op.create_index("ix_slots_program_id", "slots", ["program_id"])
    # Overlap query before every insertion: WHERE program_id = ? AND start_date < ? AND end_date >= ?
    op.create_index("ix_slots_program_start", "slots", ["program_id", "start_date"])

    # Applications table
    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slot_id", sa.Integer(), sa.ForeignKey("slots.id"), nullable=False),
        sa.Column("artist_id", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("option", postgresql.JSONB(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'REJECTED', 'CANCELLED')", name="check_application_status"
        ),
    )
    op.create_index("ix_applications_id", "applications", ["id"])
    op.create_index("ix_applications_slot_id", "applications", ["slot_id"])
    op.create_index("ix_applications_artist_id", "applications", ["artist_id"])
    # One live application per artist and slot; withdrawn rows do not count
    op.create_index(
        "uq_applications_active_artist",
        "applications",
        ["slot_id", "artist_id"],
        unique=True,
        postgresql_where=sa.text("status <> 'CANCELLED'"),
    )

    # Bookings table
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slot_id", sa.Integer(), sa.ForeignKey("slots.id"), nullable=False),
        sa.Column("artist_id", sa.String(64), nullable=False),
        sa.Column("application_id", sa.Integer(), sa.ForeignKey("applications.id"), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'CONFIRMED'")),
        sa.Column("conditions_snapshot", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("option", postgresql.JSONB(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('CONFIRMED', 'CANCELLED')", name="check_booking_status"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_slot_id", "bookings", ["slot_id"])
    op.create_index("ix_bookings_artist_id", "bookings", ["artist_id"])
    # PER-SLOT MUTEX: at most one CONFIRMED booking per slot.
    # Concurrent confirmations all try to insert; the database lets exactly one through.
    op.create_index(
        "uq_bookings_confirmed_slot",
        "bookings",
        ["slot_id"],
        unique=True,
        postgresql_where=sa.text("status = 'CONFIRMED'"),
    )


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("applications")
    op.drop_table("slots")
    op.drop_table("programs")
