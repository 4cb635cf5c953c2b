"""ROI simulations

Revision ID: 0001_roi_simulations
Revises:
Create Date: 2026-10-19 00:00:00
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_roi_simulations"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "roi_simulations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=120), nullable=True),
        sa.Column("target_country", sa.String(length=120), nullable=False),
        sa.Column("budget", sa.Float(), nullable=False),
        sa.Column("request_parameters", postgresql.JSONB(), nullable=True),
        sa.Column("analysis_json", postgresql.JSONB(), nullable=False),
        sa.Column("origin", sa.String(length=20), nullable=False),
        sa.Column("model", sa.String(length=120), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_roi_simulations_user_id", "roi_simulations", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_roi_simulations_user_id", table_name="roi_simulations")
    op.drop_table("roi_simulations")
