"""Account store and deletion markers.

Revision ID: 0001_accounts_and_markers
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_accounts_and_markers"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "account",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("mail", sa.String(), nullable=True),
        sa.Column("status", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_account"),
        sa.UniqueConstraint("name", name="uq_account_name"),
    )
    op.create_table(
        "account_role",
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(
            ["account_id"], ["account.id"], name="fk_account_role_account_id_account"
        ),
        sa.PrimaryKeyConstraint("account_id", "role", name="pk_account_role"),
    )
    op.create_table(
        "account_provider",
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("provider", sa.String(), nullable=False),
        sa.Column("authname", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(
            ["account_id"], ["account.id"], name="fk_account_provider_account_id_account"
        ),
        sa.PrimaryKeyConstraint("account_id", "provider", name="pk_account_provider"),
    )
    op.create_table(
        "account_property",
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("field", sa.String(), nullable=False),
        sa.Column("value", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(
            ["account_id"], ["account.id"], name="fk_account_property_account_id_account"
        ),
        sa.PrimaryKeyConstraint("account_id", "field", name="pk_account_property"),
    )
    op.create_index(
        "ix_account_property_field_value", "account_property", ["field", "value"], unique=False
    )
    op.create_table(
        "account_marker",
        sa.Column("module", sa.String(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("value", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("module", "account_id", "key", name="pk_account_marker"),
    )


def downgrade() -> None:
    op.drop_table("account_marker")
    op.drop_index("ix_account_property_field_value", table_name="account_property")
    op.drop_table("account_property")
    op.drop_table("account_provider")
    op.drop_table("account_role")
    op.drop_table("account")
