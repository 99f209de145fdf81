"""Create accounts, referral_credits and admin_log tables

Revision ID: 4c2e91b7a0d3
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4c2e91b7a0d3"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the game store."""
    op.create_table(
        "accounts",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("coins", sa.BigInteger(), nullable=False),
        sa.Column("total_coins", sa.BigInteger(), nullable=False),
        sa.Column("click_power", sa.Integer(), nullable=False),
        sa.Column("boost_level", sa.Integer(), nullable=False),
        sa.Column("energy", sa.Integer(), nullable=False),
        sa.Column("max_energy", sa.Integer(), nullable=False),
        sa.Column("energy_level", sa.Integer(), nullable=False),
        # Written by the application, never defaulted server-side
        sa.Column("last_energy_update", sa.DateTime(timezone=True), nullable=False),
        sa.Column("auto_mining_level", sa.Integer(), nullable=False),
        sa.Column("auto_mining_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("auto_mining_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("auto_mining_run_level", sa.Integer(), nullable=True),
        sa.Column("referrer_id", sa.BigInteger(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "energy >= 0 AND energy <= max_energy", name="ck_accounts_energy_range"
        ),
        sa.CheckConstraint("coins >= 0", name="ck_accounts_coins_nonneg"),
        sa.CheckConstraint("click_power >= 1", name="ck_accounts_click_power"),
        sa.CheckConstraint(
            "auto_mining_start IS NULL OR auto_mining_start <= auto_mining_end",
            name="ck_accounts_mining_window",
        ),
    )
    op.create_index("ix_accounts_total_coins_desc", "accounts", ["total_coins"])

    op.create_table(
        "referral_credits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("referrer_id", sa.BigInteger(), nullable=False),
        sa.Column("referred_id", sa.BigInteger(), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_referral_credits_referrer", "referral_credits", ["referrer_id"])

    op.create_table(
        "admin_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.BigInteger(), nullable=False),
        sa.Column("action_type", sa.String(30), nullable=False),
        sa.Column("target_id", sa.BigInteger(), nullable=True),
        sa.Column("before_snapshot", sa.JSON(), nullable=True),
        sa.Column("after_snapshot", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_admin_log_created_at", "admin_log", ["created_at"])


def downgrade() -> None:
    """Drop the game store."""
    op.drop_index("ix_admin_log_created_at", table_name="admin_log")
    op.drop_table("admin_log")
    op.drop_index("ix_referral_credits_referrer", table_name="referral_credits")
    op.drop_table("referral_credits")
    op.drop_index("ix_accounts_total_coins_desc", table_name="accounts")
    op.drop_table("accounts")
