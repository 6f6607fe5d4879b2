"""Initial schema — reference data, tickets, activity log, resolver pool.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _ts(name: str, nullable: bool = True, server_default=None) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable, server_default=server_default)


def upgrade() -> None:
    # Skill groups
    op.create_table(
        "skill_groups",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(50), unique=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
    )

    # Issue categories
    op.create_table(
        "issue_categories",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(50), unique=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("skill_group_id", sa.Integer, sa.ForeignKey("skill_groups.id"), nullable=True),
        sa.Column("priority", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("sla_hours", sa.Integer, nullable=False, server_default="24"),
    )

    # Tickets
    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("ticket_number", sa.String(30), unique=True, nullable=True),
        sa.Column("property_id", sa.String(64), nullable=False),
        sa.Column("organization_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("raised_by", sa.String(64), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        sa.Column("issue_code", sa.String(50), nullable=True),
        sa.Column("skill_group_code", sa.String(50), nullable=True),
        sa.Column("category_id", sa.Integer, sa.ForeignKey("issue_categories.id"), nullable=True),
        sa.Column("skill_group_id", sa.Integer, sa.ForeignKey("skill_groups.id"), nullable=True),
        sa.Column("confidence", sa.String(10), nullable=False),
        sa.Column("confidence_score", sa.Integer, nullable=False, server_default="0"),
        sa.Column("classification_source", sa.String(20), nullable=False, server_default="rules"),
        sa.Column("is_vague", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("priority", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("floor_number", sa.Integer, nullable=True),
        sa.Column("location", sa.String(100), nullable=True),
        sa.Column("assigned_to", sa.String(64), nullable=True),
        _ts("assigned_at"),
        _ts("accepted_at"),
        _ts("work_started_at"),
        _ts("resolved_at"),
        _ts("closed_at"),
        sa.Column("sla_hours", sa.Integer, nullable=False, server_default="24"),
        _ts("sla_deadline"),
        sa.Column("sla_paused", sa.Boolean, nullable=False, server_default=sa.false()),
        _ts("sla_paused_at"),
        sa.Column("sla_pause_reason", sa.Text, nullable=True),
        sa.Column("total_paused_minutes", sa.Integer, nullable=False, server_default="0"),
        sa.Column("rating", sa.Integer, nullable=True),
        sa.Column("photo_before_url", sa.String(500), nullable=True),
        sa.Column("photo_after_url", sa.String(500), nullable=True),
        _ts("created_at", nullable=False, server_default=sa.func.now()),
        _ts("updated_at", nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("rating IS NULL OR rating BETWEEN 1 AND 5", name="ck_tickets_rating"),
    )
    op.create_index("idx_tickets_property_status", "tickets", ["property_id", "status"])
    op.create_index("idx_tickets_assigned_to", "tickets", ["assigned_to"])

    # Activity log (append-only)
    op.create_table(
        "ticket_activity_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "ticket_id", sa.Integer,
            sa.ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("old_value", sa.Text, nullable=True),
        sa.Column("new_value", sa.Text, nullable=True),
        _ts("created_at", nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_activity_ticket", "ticket_activity_log", ["ticket_id"])

    # Resolver pool
    op.create_table(
        "resolver_stats",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("property_id", sa.String(64), nullable=False),
        sa.Column("skill_group_id", sa.Integer, sa.ForeignKey("skill_groups.id"), nullable=False),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_checked_in", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("current_floor", sa.Integer, nullable=False, server_default="1"),
        sa.Column("total_resolved", sa.Integer, nullable=False, server_default="0"),
        sa.Column("avg_resolution_minutes", sa.Float, nullable=False, server_default="60"),
        _ts("last_assigned_at"),
        _ts("updated_at", nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "user_id", "property_id", "skill_group_id",
            name="uq_resolver_stats_user_property_group",
        ),
    )
    op.create_index(
        "idx_resolver_stats_pool", "resolver_stats",
        ["property_id", "skill_group_id", "is_available"],
    )

    # Shift attendance
    op.create_table(
        "shift_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("property_id", sa.String(64), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        _ts("check_in_at", nullable=False),
        _ts("check_out_at"),
    )
    op.create_index("idx_shift_logs_user_property", "shift_logs", ["user_id", "property_id", "status"])

    # Identity provider tables (read only for this service)
    op.create_table(
        "property_memberships",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("property_id", sa.String(64), nullable=False),
        sa.Column("role", sa.String(30), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("user_id", "property_id", name="uq_memberships_user_property"),
    )
    op.create_table(
        "user_skills",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("skill_code", sa.String(50), nullable=False),
        sa.UniqueConstraint("user_id", "skill_code", name="uq_user_skills_user_code"),
    )


def downgrade() -> None:
    op.drop_table("user_skills")
    op.drop_table("property_memberships")
    op.drop_index("idx_shift_logs_user_property", table_name="shift_logs")
    op.drop_table("shift_logs")
    op.drop_index("idx_resolver_stats_pool", table_name="resolver_stats")
    op.drop_table("resolver_stats")
    op.drop_index("idx_activity_ticket", table_name="ticket_activity_log")
    op.drop_table("ticket_activity_log")
    op.drop_index("idx_tickets_assigned_to", table_name="tickets")
    op.drop_index("idx_tickets_property_status", table_name="tickets")
    op.drop_table("tickets")
    op.drop_table("issue_categories")
    op.drop_table("skill_groups")
