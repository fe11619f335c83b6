"""calls table

Revision ID: 0001_calls_table
Revises: 
Create Date: 2026-10-18

"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_calls_table"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "calls",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("call_id", sa.String(length=128), nullable=False),
        sa.Column("caller_phone", sa.String(length=64), nullable=False),
        sa.Column("responder_email", sa.String(length=255), nullable=False),
        sa.Column("call_name", sa.String(length=255), nullable=True),
        sa.Column("call_duration", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("source", sa.String(length=32), nullable=False, server_default="postman"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_calls_call_id",
        "calls",
        ["call_id"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_calls_call_id", table_name="calls")
    op.drop_table("calls")
