"""create_signal_event_benchmark_tables

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1c3e5f7b9d2"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "signals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("impact", sa.Float(), nullable=False, server_default="0"),
        sa.Column("urgency", sa.String(length=20), nullable=False, server_default="low"),
        sa.Column("source", sa.String(length=20), nullable=False, server_default="internal"),
        sa.Column("category", sa.String(length=32), nullable=False, server_default="feedback"),
        sa.Column("tier", sa.String(length=20), nullable=False, server_default="free"),
        sa.Column("context", sa.Text(), nullable=False, server_default=""),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("impact >= 0 AND impact <= 100", name="valid_impact"),
        sa.CheckConstraint("urgency IN ('low', 'medium', 'high', 'critical')", name="valid_urgency"),
        sa.CheckConstraint("tier IN ('enterprise', 'pro', 'free')", name="valid_tier"),
    )
    op.create_index("idx_signals_timestamp", "signals", ["timestamp"])

    op.create_table(
        "analytics_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("session_id", sa.String(length=128), nullable=True),
        sa.Column("user_id", sa.String(length=128), nullable=True),
        sa.Column("properties", sa.JSON(), nullable=False),
    )
    op.create_index("idx_analytics_events_type", "analytics_events", ["event_type"])
    op.create_index("idx_analytics_events_user", "analytics_events", ["user_id"])

    op.create_table(
        "benchmarks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("target_impact", sa.Float(), nullable=False),
        sa.Column("urgency_threshold", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("tier_weights", sa.JSON(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("target_impact > 0", name="positive_target_impact"),
    )


def downgrade() -> None:
    op.drop_table("benchmarks")
    op.drop_index("idx_analytics_events_user", table_name="analytics_events")
    op.drop_index("idx_analytics_events_type", table_name="analytics_events")
    op.drop_table("analytics_events")
    op.drop_index("idx_signals_timestamp", table_name="signals")
    op.drop_table("signals")
