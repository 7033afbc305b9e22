"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the events and guests tables.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

event_status = sa.Enum("created", "completed", "archived", name="event_status")
event_deleted_by = sa.Enum("host", "venue", "system", name="event_deleted_by")
invitation_channel = sa.Enum("email", "sms", "both", name="invitation_channel")


def upgrade() -> None:
    # --- events ---
    op.create_table(
        "events",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("time_start", sa.Time, nullable=True),
        sa.Column("time_end", sa.Time, nullable=True),
        sa.Column("host_id", sa.Uuid, nullable=False),
        sa.Column("venue_id", sa.Uuid, nullable=True),
        sa.Column("venue_name", sa.String(200), nullable=True),
        sa.Column("expected_guests", sa.Integer, nullable=False, server_default="0"),
        sa.Column("color", sa.String(32), nullable=False, server_default="purple"),
        sa.Column("wristband_color", sa.String(32), nullable=True),
        sa.Column("status", event_status, nullable=False, server_default="created"),
        sa.Column("deleted_by", event_deleted_by, nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "cancelled_before_event", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "(status = 'archived') = (deleted_at IS NOT NULL)",
            name="ck_events_deleted_at_iff_archived",
        ),
        sa.CheckConstraint(
            "(status = 'archived') = (deleted_by IS NOT NULL)",
            name="ck_events_deleted_by_iff_archived",
        ),
        sa.CheckConstraint("expected_guests >= 0", name="ck_events_expected_guests_nonneg"),
    )
    op.create_index("ix_events_host_id_date", "events", ["host_id", "date"])
    op.create_index("ix_events_venue_id_date", "events", ["venue_id", "date"])
    op.create_index("ix_events_status", "events", ["status"])

    # --- guests ---
    op.create_table(
        "guests",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "event_id",
            sa.Uuid,
            sa.ForeignKey("events.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("category", sa.String(50), nullable=False, server_default="General"),
        sa.Column("plus_ones", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_walkin", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("check_in_token", sa.String(32), nullable=False),
        sa.Column("invite_token", sa.String(128), nullable=True),
        sa.Column("checked_in", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("checked_in_time", sa.String(16), nullable=True),
        sa.Column("checked_in_by", sa.String(100), nullable=True),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("invitation_sent", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("invitation_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("invitation_sent_via", invitation_channel, nullable=True),
        sa.Column("invitation_opened", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("invitation_opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("invitation_open_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("plus_ones >= 0", name="ck_guests_plus_ones_nonneg"),
        sa.CheckConstraint(
            "checked_in = false OR checked_in_time IS NOT NULL",
            name="ck_guests_checked_in_time_set",
        ),
        sa.CheckConstraint("invitation_open_count >= 0", name="ck_guests_open_count_nonneg"),
    )
    op.create_index("ix_guests_check_in_token", "guests", ["check_in_token"], unique=True)
    op.create_index("ix_guests_invite_token", "guests", ["invite_token"], unique=True)
    op.create_index("ix_guests_event_id_created_at", "guests", ["event_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_guests_event_id_created_at", table_name="guests")
    op.drop_index("ix_guests_invite_token", table_name="guests")
    op.drop_index("ix_guests_check_in_token", table_name="guests")
    op.drop_table("guests")
    op.drop_index("ix_events_status", table_name="events")
    op.drop_index("ix_events_venue_id_date", table_name="events")
    op.drop_index("ix_events_host_id_date", table_name="events")
    op.drop_table("events")
    bind = op.get_bind()
    invitation_channel.drop(bind, checkfirst=True)
    event_deleted_by.drop(bind, checkfirst=True)
    event_status.drop(bind, checkfirst=True)
