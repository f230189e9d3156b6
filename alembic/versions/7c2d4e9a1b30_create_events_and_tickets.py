"""create events and tickets tables

Revision ID: 7c2d4e9a1b30
Revises:
Create Date: 2026-10-17 09:12:41.302118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '7c2d4e9a1b30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ticket_status = postgresql.ENUM("ISSUED", "REVOKED", "INVALID", name="ticket_status", create_type=False)
owner_kind = postgresql.ENUM("USER", "ADMIN_RESERVED", "ADMIN_UNAVAILABLE", name="owner_kind", create_type=False)


def upgrade() -> None:
    ticket_status.create(op.get_bind(), checkfirst=True)
    owner_kind.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "events",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("start_time", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("end_time IS NULL OR end_time > start_time", name="chk_event_time_range"),
    )

    op.create_table(
        "tickets",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("event_id", sa.Text(), nullable=False),
        sa.Column("seat_id", sa.Text(), nullable=False),
        sa.Column("section", sa.Text(), nullable=False),
        sa.Column("owner_kind", owner_kind, nullable=False),
        sa.Column("owner_uid", sa.Text(), nullable=True),
        sa.Column("owner_email", sa.Text(), nullable=True),
        sa.Column("owner_name", sa.Text(), nullable=True),
        sa.Column("status", ticket_status, nullable=False, server_default="ISSUED"),
        sa.Column("order_id", sa.Text(), nullable=False),
        sa.Column("qr_payload", sa.Text(), nullable=True),
        sa.Column("event_title", sa.Text(), nullable=True),
        sa.Column("start_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("end_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("invalid_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("revoked_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint(
            "(owner_kind = 'USER') = (owner_uid IS NOT NULL)",
            name="chk_ticket_owner_uid_matches_kind"
        ),
    )
    op.create_index("ix_tickets_event_id", "tickets", ["event_id"])
    op.create_index("ix_tickets_owner_uid", "tickets", ["owner_uid"])
    op.create_index("ix_tickets_order_id", "tickets", ["order_id"])
    op.create_index("ix_tickets_event_status", "tickets", ["event_id", "status"])
    op.create_index(
        "ix_tickets_event_issued_section",
        "tickets",
        ["event_id", "section"],
        postgresql_where=sa.text("status = 'ISSUED'")
    )


def downgrade() -> None:
    op.drop_table("tickets")
    op.drop_table("events")
    owner_kind.drop(op.get_bind(), checkfirst=True)
    ticket_status.drop(op.get_bind(), checkfirst=True)
