"""roadmap: initial schema for capabilities, milestones, quick wins, reference data.

Creates the tables read by the roadmap dashboard: capabilities and their
milestones, the quick-win board, the maturity ladder, technology options
and the activity log.

Revision ID: roadmap_001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "roadmap_001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _created_at_column() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def upgrade() -> None:
    """Create the roadmap tables."""
    # capabilities: transformation areas on the maturity ladder
    op.create_table(
        "capabilities",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "priority",
            sa.String(20),
            nullable=False,
            server_default="MEDIUM",
            comment="CRITICAL | HIGH | MEDIUM | LOW",
        ),
        sa.Column("current_level", sa.Integer, nullable=False, server_default="1"),
        sa.Column("target_level", sa.Integer, nullable=False, server_default="5"),
        sa.Column("owner", sa.String(255), nullable=True),
        sa.Column("color", sa.String(20), nullable=True),
        sa.Column("qol_impact", sa.Text, nullable=True),
        _created_at_column(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint("current_level BETWEEN 1 AND 5", name="ck_capabilities_current_level"),
        sa.CheckConstraint("target_level BETWEEN 1 AND 5", name="ck_capabilities_target_level"),
    )
    op.create_index("ix_capabilities_priority", "capabilities", ["priority"])

    # milestones: deliverables within a capability
    op.create_table(
        "milestones",
        _id_column(),
        sa.Column(
            "capability_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("capabilities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("from_level", sa.Integer, nullable=False),
        sa.Column("to_level", sa.Integer, nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default="not_started",
            comment="not_started | in_progress | completed | blocked",
        ),
        sa.Column(
            "dependencies",
            postgresql.ARRAY(sa.String),
            nullable=True,
            comment="Ids of milestones that must complete first",
        ),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        _created_at_column(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_milestones_capability_id", "milestones", ["capability_id"])
    op.create_index("ix_milestones_status", "milestones", ["status"])

    # quick_wins: short-term board items
    op.create_table(
        "quick_wins",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "capability_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("capabilities.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("owner", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="not_started"),
        sa.Column("timeline_months", sa.Integer, nullable=False, server_default="1"),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("progress_percent", sa.Integer, nullable=False, server_default="0"),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        _created_at_column(),
    )
    op.create_index("ix_quick_wins_status", "quick_wins", ["status"])
    op.create_index("ix_quick_wins_category", "quick_wins", ["category"])

    # maturity_definitions: the 1-5 ladder
    op.create_table(
        "maturity_definitions",
        _id_column(),
        sa.Column("level", sa.Integer, nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column(
            "characteristics",
            postgresql.ARRAY(sa.String),
            nullable=False,
            server_default="{}",
        ),
        _created_at_column(),
    )

    # technology_options: candidate technologies per category
    op.create_table(
        "technology_options",
        _id_column(),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("vendor", sa.String(255), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("recommended", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text, nullable=True),
        _created_at_column(),
    )
    op.create_index("ix_technology_options_category", "technology_options", ["category"])

    # activity_log: audit trail
    op.create_table(
        "activity_log",
        _id_column(),
        sa.Column("user_name", sa.String(255), nullable=True),
        sa.Column("table_name", sa.String(100), nullable=False),
        sa.Column("record_id", sa.String(64), nullable=False),
        sa.Column("action", sa.String(20), nullable=False, comment="INSERT | UPDATE | DELETE"),
        sa.Column("old_values", postgresql.JSONB, nullable=True),
        sa.Column("new_values", postgresql.JSONB, nullable=True),
        _created_at_column(),
    )
    op.create_index("ix_activity_log_created_at", "activity_log", ["created_at"])


def downgrade() -> None:
    """Drop the roadmap tables."""
    for table in [
        "activity_log",
        "technology_options",
        "maturity_definitions",
        "quick_wins",
        "milestones",
        "capabilities",
    ]:
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
