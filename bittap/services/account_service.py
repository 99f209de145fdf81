"""
bittap.services.account_service — Account Store Operations
===========================================================

Shared service module callable by both bot and API:

* idempotent registration (with optional referral),
* read snapshots that settle time-based accrual first,
* the operator-only economic reset (audit-logged).

Accounts are never deleted by normal operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Engine, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bittap.constants import (
    DEFAULT_AUTO_MINING_LEVEL,
    DEFAULT_BOOST_LEVEL,
    DEFAULT_CLICK_POWER,
    DEFAULT_COINS,
    DEFAULT_ENERGY_LEVEL,
    DEFAULT_MAX_ENERGY,
)
from bittap.database.engine import get_session
from bittap.database.models import Account, AdminActionType, AdminLog
from bittap.engine.clock import as_utc, resolve_now
from bittap.engine.errors import InvalidState, Unauthorized
from bittap.services.energy_service import reconcile_in_session
from bittap.services.mining_service import ClaimResult, claim_in_session
from bittap.services.referral_service import parse_referral_token, register_referral

logger = logging.getLogger(__name__)


# Zero-state view returned for accounts the store has never seen
DEFAULT_ACCOUNT_VIEW: dict[str, Any] = {
    "coins": DEFAULT_COINS,
    "totalCoins": DEFAULT_COINS,
    "clickPower": DEFAULT_CLICK_POWER,
    "boostLevel": DEFAULT_BOOST_LEVEL,
    "energy": DEFAULT_MAX_ENERGY,
    "maxEnergy": DEFAULT_MAX_ENERGY,
    "energyLevel": DEFAULT_ENERGY_LEVEL,
    "autoMiningLevel": DEFAULT_AUTO_MINING_LEVEL,
    "autoMiningCompleted": False,
    "autoMiningEarned": 0,
}

# Economic fields restored by an operator reset
_RESET_VALUES: dict[str, Any] = {
    "coins": DEFAULT_COINS,
    "total_coins": DEFAULT_COINS,
    "click_power": DEFAULT_CLICK_POWER,
    "boost_level": DEFAULT_BOOST_LEVEL,
    "energy": DEFAULT_MAX_ENERGY,
    "max_energy": DEFAULT_MAX_ENERGY,
    "energy_level": DEFAULT_ENERGY_LEVEL,
    "auto_mining_level": DEFAULT_AUTO_MINING_LEVEL,
    "auto_mining_start": None,
    "auto_mining_end": None,
    "auto_mining_run_level": None,
}


@dataclass
class RegistrationResult:
    created: bool
    referral_credited: bool = False


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------
def _iso(value: datetime | None) -> str | None:
    return as_utc(value).isoformat() if value is not None else None


def account_view(account: Account, claim: ClaimResult | None = None) -> dict[str, Any]:
    """JSON-ready view of *account* (camelCase keys, as the web client expects)."""
    return {
        "id": account.id,
        "displayName": account.display_name,
        "coins": account.coins,
        "totalCoins": account.total_coins,
        "clickPower": account.click_power,
        "boostLevel": account.boost_level,
        "energy": account.energy,
        "maxEnergy": account.max_energy,
        "energyLevel": account.energy_level,
        "lastEnergyUpdate": _iso(account.last_energy_update),
        "autoMiningLevel": account.auto_mining_level,
        "autoMiningStart": _iso(account.auto_mining_start),
        "autoMiningEnd": _iso(account.auto_mining_end),
        "referrerId": account.referrer_id,
        "createdAt": _iso(account.created_at),
        "autoMiningCompleted": bool(claim and claim.completed),
        "autoMiningEarned": claim.earned if claim else 0,
    }


def default_view(account_id: int) -> dict[str, Any]:
    return {"id": account_id, **DEFAULT_ACCOUNT_VIEW}


def _row_to_dict(obj: Account) -> dict:
    """Audit snapshot of an account (JSON-serializable)."""
    result = {}
    for col in obj.__table__.columns:
        val = getattr(obj, col.key)
        if isinstance(val, datetime):
            val = _iso(val)
        result[col.name] = val
    return result


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------
def _create_if_missing(session: Session, account_id: int, display_name: str | None,
                       now: datetime) -> bool:
    if session.get(Account, account_id) is not None:
        return False
    try:
        with session.begin_nested():   # SAVEPOINT
            session.add(Account(
                id=account_id,
                display_name=display_name,
                last_energy_update=now,
                created_at=now,
            ))
            session.flush()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same id
        return False
    return True


def register_account(
    engine: Engine,
    account_id: int,
    display_name: str | None,
    *,
    referral_token: str | None = None,
    now: datetime | None = None,
) -> RegistrationResult:
    """Create the account on first contact; a repeat is a no-op.

    A referral token is honoured through :func:`register_referral`, whose
    uniqueness gate makes repeated registrations harmless.  Self-referral
    and malformed tokens simply don't credit anyone.
    """
    now = resolve_now(now)
    with get_session(engine) as session:
        created = _create_if_missing(session, account_id, display_name, now)

    if created:
        logger.info("Account registered: %s (ID: %d)", display_name, account_id)

    credited = False
    referrer_id = parse_referral_token(referral_token)
    if referrer_id is not None:
        try:
            credited = register_referral(engine, referrer_id, account_id)
        except InvalidState:
            logger.info("Self-referral ignored for account %d", account_id)

    return RegistrationResult(created=created, referral_credited=credited)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_account(engine: Engine, account_id: int) -> Account | None:
    """Fetch a detached :class:`Account`, or ``None``."""
    with get_session(engine) as session:
        account = session.get(Account, account_id)
        if account is not None:
            session.expunge(account)
        return account


def snapshot_account(
    engine: Engine,
    account_id: int,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Settle energy and any finished auto-mining run, then return the view.

    Both side effects and the read share one transaction.  Unknown accounts
    get the zero-state default view rather than an error.
    """
    now = resolve_now(now)
    with get_session(engine) as session:
        if reconcile_in_session(session, account_id, now) is None:
            return default_view(account_id)
        claim = claim_in_session(session, account_id, now)
        account = session.get(Account, account_id, populate_existing=True)
        return account_view(account, claim)


# ---------------------------------------------------------------------------
# Operator reset
# ---------------------------------------------------------------------------
def require_operator(actor_id: int, operator_id: int) -> None:
    if actor_id != operator_id:
        logger.warning("Denied operator action for %d", actor_id)
        raise Unauthorized()


def reset_account(
    engine: Engine,
    account_id: int,
    *,
    actor_id: int,
    operator_id: int,
    now: datetime | None = None,
) -> bool:
    """Zero an account's economy back to defaults (operator only).

    The row, display name, referrer and creation time survive.  Returns
    ``False`` if the account doesn't exist.

    Raises
    ------
    Unauthorized
        *actor_id* is not the configured operator.
    """
    require_operator(actor_id, operator_id)
    now = resolve_now(now)

    with get_session(engine) as session:
        account = session.get(Account, account_id, with_for_update=True)
        if account is None:
            return False
        before = _row_to_dict(account)

        session.execute(
            update(Account)
            .where(Account.id == account_id)
            .values(**_RESET_VALUES, last_energy_update=now)
            .execution_options(synchronize_session=False)
        )
        session.refresh(account)

        session.add(AdminLog(
            actor_id=actor_id,
            action_type=AdminActionType.RESET.value,
            target_id=account_id,
            before_snapshot=before,
            after_snapshot=_row_to_dict(account),
            created_at=now,
        ))

    logger.info("Account %d reset by operator %d", account_id, actor_id)
    return True
