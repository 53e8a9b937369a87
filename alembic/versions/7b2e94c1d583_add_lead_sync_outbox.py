"""add lead_sync_outbox for deferred appointment reconciliation

Revision ID: 7b2e94c1d583
Revises: 3c1f0a9d2e41
Create Date: 2026-09-16 15:30:00.000000

A failed lead reconciliation no longer rolls back silently: the
appointment change commits together with a row in this table, and the
retry drain picks it up later.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "7b2e94c1d583"
down_revision: Union[str, None] = "3c1f0a9d2e41"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "lead_sync_outbox",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("lead_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("appointment_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("event", sa.String(length=20), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")
        ),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "event IN ('created', 'updated', 'deleted')", name="ck_outbox_event"
        ),
    )
    op.create_index(
        "idx_lead_sync_outbox_pending",
        "lead_sync_outbox",
        ["processed_at", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_lead_sync_outbox_pending", table_name="lead_sync_outbox")
    op.drop_table("lead_sync_outbox")
