"""create stock_list, jobs, job_sequences, activity_logs

Revision ID: 3f9c1a7d2b10
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9c1a7d2b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JOB_TYPE = sa.Enum("repair", "sale", name="job_type")
JOB_STATUS = sa.Enum("pending", "in_progress", "completed", "cancelled", name="job_status")


def upgrade() -> None:
    # Pas de CHECK >= 0 sur stock_north / stock_south : le négatif est permis
    op.create_table(
        "stock_list",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("part_name", sa.String(length=255), nullable=False),
        sa.Column("stock_north", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stock_south", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("part_name", name="uq_stock_list_part_name"),
    )

    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("job_id", sa.String(length=32), nullable=False),
        sa.Column("job_type", JOB_TYPE, nullable=False),
        sa.Column("branch", sa.String(length=128), nullable=False),
        sa.Column("customer", sa.String(length=200), nullable=False),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("device_model", sa.String(length=200)),
        sa.Column("repair_desc", sa.Text(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", JOB_STATUS, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("job_id", name="uq_jobs_job_id"),
    )
    op.create_index("ix_jobs_branch_created", "jobs", ["branch", "created_at"])

    op.create_table(
        "job_sequences",
        sa.Column("prefix", sa.String(length=16), primary_key=True),
        sa.Column("last_value", sa.BigInteger(), nullable=False, server_default="0"),
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer()),
        sa.Column("job_pk", sa.Integer(), sa.ForeignKey("jobs.id", ondelete="SET NULL")),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_action", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_table("job_sequences")
    op.drop_index("ix_jobs_branch_created", table_name="jobs")
    op.drop_table("jobs")
    op.drop_table("stock_list")
    JOB_STATUS.drop(op.get_bind(), checkfirst=True)
    JOB_TYPE.drop(op.get_bind(), checkfirst=True)
