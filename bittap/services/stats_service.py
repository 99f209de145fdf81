"""
bittap.services.stats_service — Read-Only Aggregates
=====================================================

Global stats and the coin leaderboard.  Pure reads against ``accounts``;
nothing here reconciles energy or settles auto-mining.
"""

from __future__ import annotations

from sqlalchemy import Engine, func, select

from bittap.database.engine import get_session
from bittap.database.models import Account, ReferralCredit


def global_stats(engine: Engine) -> dict:
    """Headline numbers for the operator."""
    with get_session(engine) as session:
        total_accounts = session.scalar(select(func.count()).select_from(Account)) or 0
        total_coins = session.scalar(
            select(func.coalesce(func.sum(Account.total_coins), 0))
        ) or 0
        total_referrals = session.scalar(
            select(func.count()).select_from(ReferralCredit)
        ) or 0
    return {
        "total_accounts": total_accounts,
        "total_coins": int(total_coins),
        "total_referrals": total_referrals,
    }


def leaderboard(engine: Engine, limit: int = 10) -> list[dict]:
    """Top accounts by lifetime coins, ties broken by id."""
    with get_session(engine) as session:
        rows = session.execute(
            select(Account.id, Account.display_name, Account.total_coins)
            .order_by(Account.total_coins.desc(), Account.id)
            .limit(limit)
        ).all()
    return [
        {"id": r.id, "displayName": r.display_name, "totalCoins": r.total_coins}
        for r in rows
    ]
