"""
bittap.database.models — SQLAlchemy 2.0 Data Models
====================================================

Tables:
- accounts           — Per-player economic state (chat user id PK)
- referral_credits   — One row per referred account (UNIQUE referred_id)
- admin_log          — Append-only audit trail of operator mutations

Timestamps are always assigned from Python (UTC) rather than a server
default.  The energy reconcile compares ``last_energy_update`` for equality,
which only works if every backend stores the exact value we wrote.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from bittap.constants import (
    DEFAULT_AUTO_MINING_LEVEL,
    DEFAULT_BOOST_LEVEL,
    DEFAULT_CLICK_POWER,
    DEFAULT_COINS,
    DEFAULT_ENERGY_LEVEL,
    DEFAULT_MAX_ENERGY,
)
from bittap.engine.clock import utcnow


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all BitTap ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class AdminActionType(enum.StrEnum):
    RESET = "RESET"


# ---------------------------------------------------------------------------
# Accounts: per-player game state
# ---------------------------------------------------------------------------
class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    display_name: Mapped[str | None] = mapped_column(String(255), default=None)

    coins: Mapped[int] = mapped_column(BigInteger, default=DEFAULT_COINS)
    total_coins: Mapped[int] = mapped_column(BigInteger, default=DEFAULT_COINS)
    click_power: Mapped[int] = mapped_column(Integer, default=DEFAULT_CLICK_POWER)
    boost_level: Mapped[int] = mapped_column(Integer, default=DEFAULT_BOOST_LEVEL)

    energy: Mapped[int] = mapped_column(Integer, default=DEFAULT_MAX_ENERGY)
    max_energy: Mapped[int] = mapped_column(Integer, default=DEFAULT_MAX_ENERGY)
    energy_level: Mapped[int] = mapped_column(Integer, default=DEFAULT_ENERGY_LEVEL)
    last_energy_update: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    auto_mining_level: Mapped[int] = mapped_column(
        Integer, default=DEFAULT_AUTO_MINING_LEVEL
    )
    auto_mining_start: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    auto_mining_end: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    # Level in effect when the current run started; the payout uses this
    auto_mining_run_level: Mapped[int | None] = mapped_column(Integer, default=None)

    referrer_id: Mapped[int | None] = mapped_column(BigInteger, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        CheckConstraint("energy >= 0 AND energy <= max_energy", name="ck_accounts_energy_range"),
        CheckConstraint("coins >= 0", name="ck_accounts_coins_nonneg"),
        CheckConstraint("click_power >= 1", name="ck_accounts_click_power"),
        CheckConstraint(
            "auto_mining_start IS NULL OR auto_mining_start <= auto_mining_end",
            name="ck_accounts_mining_window",
        ),
        Index("ix_accounts_total_coins_desc", "total_coins"),
    )

    def __repr__(self) -> str:
        return f"<Account id={self.id} name={self.display_name!r} coins={self.coins}>"


# ---------------------------------------------------------------------------
# Referral credits: at most one per referred account
# ---------------------------------------------------------------------------
class ReferralCredit(Base):
    __tablename__ = "referral_credits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    referrer_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    referred_id: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_referral_credits_referrer", "referrer_id"),
    )


# ---------------------------------------------------------------------------
# Admin log: append-only audit trail
# ---------------------------------------------------------------------------
class AdminLog(Base):
    __tablename__ = "admin_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    action_type: Mapped[str] = mapped_column(String(30), nullable=False)
    target_id: Mapped[int | None] = mapped_column(BigInteger, default=None)
    before_snapshot: Mapped[dict | None] = mapped_column(JSON, default=None)
    after_snapshot: Mapped[dict | None] = mapped_column(JSON, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_admin_log_created_at", "created_at"),
    )
