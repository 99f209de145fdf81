"""
bittap.services.mining_service — Auto-Mining Start & Claim
===========================================================

Both transitions are guarded UPDATE statements, so the state machine in
:mod:`bittap.engine.mining` holds even when the same account is driven from
several devices at once:

* ``start`` only matches a row that owns auto-mining and has no window.
* ``claim`` reads the finished window, then clears exactly that window while
  crediting the payout.  A second claim finds nothing to match and pays
  nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Engine, select, update
from sqlalchemy.orm import Session

from bittap.database.engine import get_session
from bittap.database.models import Account
from bittap.engine.clock import resolve_now
from bittap.engine.errors import AccountNotFound, InvalidState
from bittap.engine.mining import MiningState, mining_payout, mining_state, new_window

logger = logging.getLogger(__name__)


@dataclass
class StartResult:
    start_time: datetime
    end_time: datetime
    run_level: int


@dataclass
class ClaimResult:
    completed: bool
    earned: int = 0
    coins: int | None = None
    total_coins: int | None = None


# ---------------------------------------------------------------------------
# start
# ---------------------------------------------------------------------------
def start_auto_mining(
    engine: Engine,
    account_id: int,
    *,
    now: datetime | None = None,
) -> StartResult:
    """Begin an 8-hour run.  ``IDLE → RUNNING``.

    Raises
    ------
    AccountNotFound
        Unknown account.
    InvalidState
        Auto-mining isn't owned, or a run is already present (running or
        finished but unclaimed).
    """
    now = resolve_now(now)
    window = new_window(now)

    with get_session(engine) as session:
        row = session.execute(
            update(Account)
            .where(
                Account.id == account_id,
                Account.auto_mining_level > 0,
                Account.auto_mining_end.is_(None),
            )
            .values(
                auto_mining_start=window.start,
                auto_mining_end=window.end,
                auto_mining_run_level=Account.auto_mining_level,
            )
            .returning(Account.auto_mining_run_level)
            .execution_options(synchronize_session=False)
        ).first()

        if row is None:
            current = session.execute(
                select(Account.auto_mining_level, Account.auto_mining_end)
                .where(Account.id == account_id)
            ).first()
            if current is None:
                raise AccountNotFound(account_id)
            if current.auto_mining_level <= 0:
                raise InvalidState("Auto-mining is not unlocked yet.")
            state = mining_state(current.auto_mining_end, now)
            if state is MiningState.COMPLETED:
                raise InvalidState("Claim the finished auto-mining run before starting another.")
            raise InvalidState("Auto-mining is already running.")

    logger.info("Auto-mining started for account %d (level %d) until %s",
                account_id, row.auto_mining_run_level, window.end.isoformat())
    return StartResult(
        start_time=window.start,
        end_time=window.end,
        run_level=row.auto_mining_run_level,
    )


# ---------------------------------------------------------------------------
# claim
# ---------------------------------------------------------------------------
def claim_in_session(session: Session, account_id: int, now: datetime) -> ClaimResult:
    """Settle a finished run inside an open transaction.  ``COMPLETED → IDLE``.

    Returns ``completed=False`` (and changes nothing) when the account is
    unknown, idle, or still running.
    """
    current = session.execute(
        select(
            Account.auto_mining_level,
            Account.auto_mining_end,
            Account.auto_mining_run_level,
        )
        .where(Account.id == account_id)
        .with_for_update()
    ).first()
    if current is None or mining_state(current.auto_mining_end, now) is not MiningState.COMPLETED:
        return ClaimResult(completed=False)

    # Rows written before the run-level snapshot existed pay at the owned level
    run_level = (
        current.auto_mining_run_level
        if current.auto_mining_run_level is not None
        else current.auto_mining_level
    )
    earned = mining_payout(run_level)

    # Guarded on the exact window we just read: a concurrent claim that
    # cleared it first leaves nothing for this statement to match.
    row = session.execute(
        update(Account)
        .where(
            Account.id == account_id,
            Account.auto_mining_end == current.auto_mining_end,
        )
        .values(
            coins=Account.coins + earned,
            total_coins=Account.total_coins + earned,
            auto_mining_start=None,
            auto_mining_end=None,
            auto_mining_run_level=None,
        )
        .returning(Account.coins, Account.total_coins)
        .execution_options(synchronize_session=False)
    ).first()

    if row is None:
        return ClaimResult(completed=False)

    logger.info("Auto-mining claimed for account %d: +%d", account_id, earned)
    return ClaimResult(
        completed=True,
        earned=earned,
        coins=row.coins,
        total_coins=row.total_coins,
    )


def claim_auto_mining(
    engine: Engine,
    account_id: int,
    *,
    now: datetime | None = None,
) -> ClaimResult:
    """Pay out a finished run exactly once."""
    now = resolve_now(now)
    with get_session(engine) as session:
        return claim_in_session(session, account_id, now)
