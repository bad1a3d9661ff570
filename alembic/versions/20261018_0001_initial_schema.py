"""Initial schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("student", "mentor", "admin", name="role_enum", native_enum=False)
booking_type_enum = sa.Enum("scheduled", "preference", name="booking_type_enum", native_enum=False)
booking_status_enum = sa.Enum(
    "pending",
    "confirmed",
    "declined",
    "completed",
    name="booking_status_enum",
    native_enum=False,
)
preferred_time_enum = sa.Enum(
    "morning",
    "afternoon",
    "evening",
    "flexible",
    name="preferred_time_enum",
    native_enum=False,
)
video_room_status_enum = sa.Enum("ready", "failed", "cleaned_up", name="video_room_status_enum", native_enum=False)
notification_type_enum = sa.Enum(
    "booking_request",
    "booking_confirmed",
    "booking_declined",
    "booking_completed",
    "new_message",
    name="notification_type_enum",
    native_enum=False,
)
outbox_status_enum = sa.Enum("pending", "processed", "failed", name="outbox_status_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def _user_fk(column: str, table: str) -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint([column], ["users.id"], name=f"fk_{table}_{column}_users", ondelete="CASCADE")


def upgrade() -> None:
    op.create_table(
        "roles",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", role_enum, nullable=False),
        sa.UniqueConstraint("name", name="uq_roles_name"),
    )

    op.create_table(
        "users",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=128), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], name="fk_users_role_id_roles", ondelete="RESTRICT"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)

    op.create_table(
        "mentor_profiles",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("display_name", sa.String(length=128), nullable=False),
        sa.Column("specialty", sa.String(length=255), nullable=False),
        sa.Column("bio", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("experience_years", sa.Integer(), nullable=False),
        sa.Column("rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("video_available", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("tags", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        _user_fk("user_id", "mentor_profiles"),
        sa.UniqueConstraint("user_id", name="uq_mentor_profiles_user_id"),
    )
    op.create_index("ix_mentor_profiles_category", "mentor_profiles", ["category"], unique=False)
    op.create_index("ix_mentor_profiles_is_active", "mentor_profiles", ["is_active"], unique=False)

    op.create_table(
        "mentor_availability",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("mentor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("weekly_schedule", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("blocked_dates", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("session_duration", sa.Integer(), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False),
        _user_fk("mentor_id", "mentor_availability"),
        sa.UniqueConstraint("mentor_id", name="uq_mentor_availability_mentor_id"),
    )

    op.create_table(
        "bookings",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("mentor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("booking_type", booking_type_enum, nullable=False),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("scheduled_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("scheduled_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("preferred_time", preferred_time_enum, nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("video_preferred", sa.Boolean(), nullable=False),
        sa.Column("rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("declined_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _user_fk("mentor_id", "bookings"),
        _user_fk("student_id", "bookings"),
        sa.CheckConstraint(
            "(booking_type = 'scheduled' AND scheduled_start IS NOT NULL AND scheduled_end IS NOT NULL) "
            "OR (booking_type = 'preference' AND preferred_time IS NOT NULL)",
            name="ck_bookings_schedule_matches_type",
        ),
    )
    op.create_index("ix_bookings_mentor_id", "bookings", ["mentor_id"], unique=False)
    op.create_index("ix_bookings_student_id", "bookings", ["student_id"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)
    op.create_index("ix_bookings_scheduled_start", "bookings", ["scheduled_start"], unique=False)

    op.create_table(
        "video_rooms",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", video_room_status_enum, nullable=False),
        sa.Column("room_name", sa.String(length=128), nullable=True),
        sa.Column("room_url", sa.String(length=512), nullable=True),
        sa.Column("provider_room_id", sa.String(length=128), nullable=True),
        sa.Column("meeting_url", sa.String(length=512), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("cleaned_up_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["booking_id"],
            ["bookings.id"],
            name="fk_video_rooms_booking_id_bookings",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("booking_id", name="uq_video_rooms_booking_id"),
    )
    op.create_index("ix_video_rooms_status", "video_rooms", ["status"], unique=False)

    op.create_table(
        "messages",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("sender_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("receiver_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(
            ["booking_id"],
            ["bookings.id"],
            name="fk_messages_booking_id_bookings",
            ondelete="CASCADE",
        ),
        _user_fk("sender_id", "messages"),
        _user_fk("receiver_id", "messages"),
    )
    op.create_index("ix_messages_booking_id", "messages", ["booking_id"], unique=False)
    op.create_index("ix_messages_receiver_id", "messages", ["receiver_id"], unique=False)

    op.create_table(
        "notifications",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", notification_type_enum, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action_url", sa.String(length=512), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        _user_fk("user_id", "notifications"),
        sa.ForeignKeyConstraint(
            ["booking_id"],
            ["bookings.id"],
            name="fk_notifications_booking_id_bookings",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"], unique=False)

    op.create_table(
        "outbox_events",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("aggregate_type", sa.String(length=64), nullable=False),
        sa.Column("aggregate_id", sa.String(length=64), nullable=False),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", outbox_status_enum, nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("retries", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_outbox_events_aggregate_type", "outbox_events", ["aggregate_type"], unique=False)
    op.create_index("ix_outbox_events_aggregate_id", "outbox_events", ["aggregate_id"], unique=False)
    op.create_index("ix_outbox_events_event_type", "outbox_events", ["event_type"], unique=False)
    op.create_index("ix_outbox_events_status", "outbox_events", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_outbox_events_status", table_name="outbox_events")
    op.drop_index("ix_outbox_events_event_type", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_id", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_type", table_name="outbox_events")
    op.drop_table("outbox_events")

    op.drop_index("ix_notifications_is_read", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_messages_receiver_id", table_name="messages")
    op.drop_index("ix_messages_booking_id", table_name="messages")
    op.drop_table("messages")

    op.drop_index("ix_video_rooms_status", table_name="video_rooms")
    op.drop_table("video_rooms")

    op.drop_index("ix_bookings_scheduled_start", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_student_id", table_name="bookings")
    op.drop_index("ix_bookings_mentor_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_table("mentor_availability")

    op.drop_index("ix_mentor_profiles_is_active", table_name="mentor_profiles")
    op.drop_index("ix_mentor_profiles_category", table_name="mentor_profiles")
    op.drop_table("mentor_profiles")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_table("roles")
