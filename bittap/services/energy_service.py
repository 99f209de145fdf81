"""
bittap.services.energy_service — Lazy Energy Reconcile
=======================================================

Brings an account's ``energy`` up to date with elapsed wall-clock time.

The write is a compare-and-swap keyed on ``last_energy_update``: every
energy writer (taps, energy upgrades, operator resets) also moves that
timestamp, so if it changed between our read and our write somebody else
got there first and we re-read.  On PostgreSQL the read additionally takes
a row lock (``SELECT … FOR UPDATE``) so the retry path is rarely taken.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import Engine, select, update
from sqlalchemy.orm import Session

from bittap.constants import MAX_CAS_ATTEMPTS
from bittap.database.engine import get_session
from bittap.database.models import Account
from bittap.engine.clock import resolve_now
from bittap.engine.energy import regenerated_energy
from bittap.engine.errors import PersistenceFailure

logger = logging.getLogger(__name__)


def reconcile_in_session(session: Session, account_id: int, now: datetime) -> int | None:
    """Reconcile energy inside an open transaction.

    Returns the up-to-date energy, or ``None`` if the account doesn't exist.
    A zero gain writes nothing, so ``last_energy_update`` only moves when
    energy actually went up.
    """
    for attempt in range(1, MAX_CAS_ATTEMPTS + 1):
        row = session.execute(
            select(Account.energy, Account.max_energy, Account.last_energy_update)
            .where(Account.id == account_id)
            .with_for_update()
        ).first()
        if row is None:
            return None

        gained = regenerated_energy(row.energy, row.max_energy, row.last_energy_update, now)
        if gained <= 0:
            return row.energy

        result = session.execute(
            update(Account)
            .where(
                Account.id == account_id,
                Account.last_energy_update == row.last_energy_update,
            )
            .values(energy=Account.energy + gained, last_energy_update=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return row.energy + gained

        logger.debug(
            "Energy CAS conflict for account %d (attempt %d/%d)",
            account_id, attempt, MAX_CAS_ATTEMPTS,
        )

    logger.warning("Energy reconcile gave up for account %d after %d conflicts",
                   account_id, MAX_CAS_ATTEMPTS)
    raise PersistenceFailure("Energy is being updated concurrently, try again.")


def reconcile_energy(
    engine: Engine,
    account_id: int,
    *,
    now: datetime | None = None,
) -> int | None:
    """Reconcile and return the account's current energy (``None`` if unknown)."""
    now = resolve_now(now)
    with get_session(engine) as session:
        return reconcile_in_session(session, account_id, now)
