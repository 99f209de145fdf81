"""
bittap.services.referral_service — One-Time Referral Credit
============================================================

A referrer earns a fixed bonus the first time an account registers with
their token, and never again for that account, no matter how many times
the registration command is repeated.

The ``UNIQUE(referred_id)`` constraint on ``referral_credits`` is the only
gate.  The insert runs inside a SAVEPOINT; a duplicate trips the constraint,
the SAVEPOINT rolls back, and nothing is paid.  On success the payout runs
in the *same* transaction, so there is no credited-but-unpaid state.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, func, select, update
from sqlalchemy.exc import IntegrityError

from bittap.constants import REFERRAL_BONUS, REFERRAL_TOKEN_PREFIX
from bittap.database.engine import get_session
from bittap.database.models import Account, ReferralCredit
from bittap.engine.errors import InvalidState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------
def referral_token(account_id: int) -> str:
    return f"{REFERRAL_TOKEN_PREFIX}{account_id}"


def parse_referral_token(token: str | None) -> int | None:
    """Extract the referrer id from ``ref<id>`` (or a bare ``<id>``).

    Returns ``None`` for anything that isn't a positive integer id.
    """
    if not token:
        return None
    raw = token.strip()
    if raw.lower().startswith(REFERRAL_TOKEN_PREFIX):
        raw = raw[len(REFERRAL_TOKEN_PREFIX):]
    if not raw.isdigit():
        return None
    value = int(raw)
    return value if value > 0 else None


# ---------------------------------------------------------------------------
# Crediting
# ---------------------------------------------------------------------------
def register_referral(engine: Engine, referrer_id: int, referred_id: int) -> bool:
    """Credit *referrer_id* for bringing in *referred_id*, at most once.

    Returns ``True`` only when this call wrote the referral row and paid
    the bonus.  An unknown referrer writes nothing and returns ``False``,
    so the referred account can still be claimed by a real referrer later.

    Raises
    ------
    InvalidState
        On self-referral (nothing is written).
    """
    if referrer_id == referred_id:
        raise InvalidState("You can't refer yourself.")

    with get_session(engine) as session:
        referrer_exists = session.scalar(
            select(Account.id).where(Account.id == referrer_id)
        )
        if referrer_exists is None:
            logger.info("Referral from unknown account %d ignored", referrer_id)
            return False

        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(ReferralCredit(referrer_id=referrer_id, referred_id=referred_id))
                session.flush()
        except IntegrityError:
            # Already referred.  The SAVEPOINT was rolled back; the outer
            # transaction is still usable and has nothing to commit.
            logger.debug("Account %d was already referred; no credit", referred_id)
            return False

        session.execute(
            update(Account)
            .where(Account.id == referrer_id)
            .values(
                coins=Account.coins + REFERRAL_BONUS,
                total_coins=Account.total_coins + REFERRAL_BONUS,
            )
            .execution_options(synchronize_session=False)
        )
        session.execute(
            update(Account)
            .where(Account.id == referred_id, Account.referrer_id.is_(None))
            .values(referrer_id=referrer_id)
            .execution_options(synchronize_session=False)
        )

    logger.info("Referral credited: %d referred %d (+%d)",
                referrer_id, referred_id, REFERRAL_BONUS)
    return True


def count_referrals(engine: Engine, referrer_id: int) -> int:
    with get_session(engine) as session:
        return session.scalar(
            select(func.count())
            .select_from(ReferralCredit)
            .where(ReferralCredit.referrer_id == referrer_id)
        ) or 0
