"""create leads, appointments and transition_rules

Revision ID: 3c1f0a9d2e41
Revises:
Create Date: 2026-09-02 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c1f0a9d2e41"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "leads",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=False),
        sa.Column(
            "temperature", sa.String(length=20), nullable=False, server_default="novo"
        ),
        sa.Column("hot_substatus", sa.String(length=30), nullable=True),
        sa.Column("lost_reason", sa.Text(), nullable=True),
        sa.Column(
            "scheduled", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column("appointment_date", sa.Date(), nullable=True),
        sa.Column("last_interaction_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")
        ),
        sa.CheckConstraint(
            "temperature IN ('novo', 'quente', 'morno', 'frio', 'perdido')",
            name="ck_lead_temperature",
        ),
        sa.CheckConstraint(
            "hot_substatus IS NULL OR hot_substatus IN "
            "('em_conversa', 'aguardando_resposta', 'em_negociacao', "
            "'follow_up_agendado')",
            name="ck_lead_hot_substatus",
        ),
        sa.CheckConstraint(
            "(scheduled AND appointment_date IS NOT NULL) "
            "OR (NOT scheduled AND appointment_date IS NULL)",
            name="ck_lead_scheduled_has_date",
        ),
        sa.CheckConstraint(
            "temperature <> 'frio' OR hot_substatus IS NULL",
            name="ck_lead_frio_without_substatus",
        ),
    )
    op.create_index(
        "idx_leads_org_temperature_interaction",
        "leads",
        ["organization_id", "temperature", "last_interaction_at"],
    )

    op.create_table(
        "appointments",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "lead_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("leads.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("patient_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("appointment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "status", sa.String(length=30), nullable=False, server_default="scheduled"
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")
        ),
    )
    op.create_index(
        "idx_appointments_org_lead_status_date",
        "appointments",
        ["organization_id", "lead_id", "status", "appointment_date"],
    )

    op.create_table(
        "transition_rules",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.Column("trigger_event", sa.String(length=30), nullable=False),
        sa.Column("from_temperature", sa.String(length=20), nullable=True),
        sa.Column("from_substatus", sa.String(length=30), nullable=True),
        sa.Column(
            "timer_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("action_set_temperature", sa.String(length=20), nullable=True),
        sa.Column(
            "action_clear_substatus",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("action_set_substatus", sa.String(length=30), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")
        ),
        sa.CheckConstraint(
            "trigger_event IN ('inactivity_timer', 'substatus_timeout', 'no_response')",
            name="ck_rule_trigger_event",
        ),
        sa.CheckConstraint("timer_minutes >= 0", name="ck_rule_timer_non_negative"),
        sa.CheckConstraint(
            "action_set_temperature IS NULL OR action_set_temperature <> 'morno'",
            name="ck_rule_target_not_morno",
        ),
    )
    op.create_index(
        "idx_transition_rules_org_active_priority",
        "transition_rules",
        ["organization_id", "active", "priority"],
    )


def downgrade() -> None:
    op.drop_index(
        "idx_transition_rules_org_active_priority", table_name="transition_rules"
    )
    op.drop_table("transition_rules")
    op.drop_index("idx_appointments_org_lead_status_date", table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("idx_leads_org_temperature_interaction", table_name="leads")
    op.drop_table("leads")
