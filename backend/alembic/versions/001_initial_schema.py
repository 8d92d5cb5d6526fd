# backend/alembic/versions/001_initial_schema.py
"""Initial schema - users, teachers, services, availability, bookings, calendar, notifications

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-01 00:00:00.000000

Booking and availability times are "HH:MM" strings in the service timezone.
On PostgreSQL an exclusion constraint additionally rejects overlapping live
bookings for the same teacher; the partial unique index covers identical
starts on every backend.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LIVE_STATUS_PREDICATE = "status IN ('pending', 'confirmed')"


def _id_column() -> sa.Column:
    return sa.Column("id", sa.String(26), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
    )


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"

    op.create_table(
        "users",
        _id_column(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.CheckConstraint("role IN ('user', 'teacher', 'admin')", name="ck_users_role"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "teacher_profiles",
        _id_column(),
        sa.Column(
            "user_id",
            sa.String(26),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("region", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "services",
        _id_column(),
        sa.Column(
            "teacher_profile_id",
            sa.String(26),
            sa.ForeignKey("teacher_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="HKD"),
        sa.Column("is_online", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_in_person", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.CheckConstraint("duration_minutes > 0", name="check_service_duration_positive"),
        sa.CheckConstraint("price >= 0", name="check_service_price_non_negative"),
    )
    op.create_index("ix_services_teacher_profile_id", "services", ["teacher_profile_id"])
    op.create_index("ix_services_is_active", "services", ["is_active"])

    op.create_table(
        "availability_rules",
        _id_column(),
        sa.Column(
            "teacher_profile_id",
            sa.String(26),
            sa.ForeignKey("teacher_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_availability_day_range"),
        sa.CheckConstraint("start_time < end_time", name="ck_availability_time_order"),
    )
    op.create_index(
        "ix_availability_teacher_day", "availability_rules", ["teacher_profile_id", "day_of_week"]
    )

    op.create_table(
        "bookings",
        _id_column(),
        sa.Column("user_id", sa.String(26), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "teacher_profile_id", sa.String(26), sa.ForeignKey("teacher_profiles.id"), nullable=False
        ),
        sa.Column("service_id", sa.String(26), sa.ForeignKey("services.id"), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_intent_id", sa.String(255), nullable=True),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="HKD"),
        sa.Column("is_online", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("user_phone", sa.String(32), nullable=True),
        sa.Column("user_email", sa.String(255), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by_id", sa.String(26), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled', 'refunded')",
            name="ck_bookings_status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'refunded', 'failed')",
            name="ck_bookings_payment_status",
        ),
        sa.CheckConstraint("start_time < end_time", name="check_booking_time_order"),
        sa.CheckConstraint("total_amount >= 0", name="check_booking_amount_non_negative"),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_teacher_profile_id", "bookings", ["teacher_profile_id"])
    op.create_index("ix_bookings_booking_date", "bookings", ["booking_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index(
        "uq_bookings_live_slot",
        "bookings",
        ["teacher_profile_id", "booking_date", "start_time"],
        unique=True,
        postgresql_where=sa.text(LIVE_STATUS_PREDICATE),
        sqlite_where=sa.text(LIVE_STATUS_PREDICATE),
    )

    if is_postgres:
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        # make_time/split_part keep the generated expression immutable
        op.execute(
            """
            ALTER TABLE bookings
              ADD COLUMN booking_span tsrange
              GENERATED ALWAYS AS (
                tsrange(
                  booking_date::timestamp + make_time(
                    split_part(start_time, ':', 1)::int, split_part(start_time, ':', 2)::int, 0
                  ),
                  booking_date::timestamp + make_time(
                    split_part(end_time, ':', 1)::int, split_part(end_time, ':', 2)::int, 0
                  ),
                  '[)'
                )
              ) STORED
            """
        )
        op.execute(
            f"""
            ALTER TABLE bookings
              ADD CONSTRAINT bookings_no_overlap_per_teacher
              EXCLUDE USING gist (
                teacher_profile_id WITH =,
                booking_span WITH &&
              )
              WHERE ({LIVE_STATUS_PREDICATE})
            """
        )

    op.create_table(
        "google_calendar_tokens",
        _id_column(),
        sa.Column(
            "teacher_profile_id",
            sa.String(26),
            sa.ForeignKey("teacher_profiles.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("access_token", sa.Text(), nullable=False),
        sa.Column("refresh_token", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("calendar_id", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_synced_at", sa.DateTime(), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
    )

    op.create_table(
        "google_calendar_busy_slots",
        _id_column(),
        sa.Column(
            "teacher_profile_id",
            sa.String(26),
            sa.ForeignKey("teacher_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("event_id", sa.String(255), nullable=False),
        sa.Column("event_title", sa.String(500), nullable=True),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        _created_at(),
    )
    op.create_index(
        "ix_busy_slots_teacher_window",
        "google_calendar_busy_slots",
        ["teacher_profile_id", "start_time", "end_time"],
    )

    op.create_table(
        "notifications",
        _id_column(),
        sa.Column(
            "user_id", sa.String(26), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column(
            "related_booking_id",
            sa.String(26),
            sa.ForeignKey("bookings.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index("idx_notifications_user_unread", "notifications", ["user_id", "is_read"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("google_calendar_busy_slots")
    op.drop_table("google_calendar_tokens")
    op.drop_table("bookings")
    op.drop_table("availability_rules")
    op.drop_table("services")
    op.drop_table("teacher_profiles")
    op.drop_table("users")
