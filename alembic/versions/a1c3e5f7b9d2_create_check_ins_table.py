"""Create check_ins table.

Append-only table of wellness check-ins. user_id is an opaque integer;
no foreign key is declared because user management lives elsewhere.

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1c3e5f7b9d2"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create check_ins table and its lookup index."""
    op.create_table(
        "check_ins",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            nullable=False,
            comment="Tracked person the check-in belongs to",
        ),
        sa.Column(
            "check_in_type",
            sa.String(20),
            nullable=False,
            comment="manual or passive",
        ),
        # Device telemetry (nullable)
        sa.Column("step_count", sa.Integer(), nullable=True, comment="Steps reported by device"),
        sa.Column(
            "battery_level",
            sa.Integer(),
            nullable=True,
            comment="Device battery percentage",
        ),
        # Timing
        sa.Column(
            "checked_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="Server time the check-in was processed",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            comment="Time the row was written",
        ),
        sa.CheckConstraint(
            "check_in_type IN ('manual', 'passive')",
            name="ck_check_ins_check_in_type",
        ),
        comment="Wellness check-ins (manual or passive)",
    )

    # Serves both the "today" lookup and history ordering
    op.create_index(
        "ix_check_ins_user_checked_at",
        "check_ins",
        ["user_id", "checked_at"],
    )


def downgrade() -> None:
    """Drop check_ins table."""
    op.drop_index("ix_check_ins_user_checked_at", table_name="check_ins")
    op.drop_table("check_ins")
