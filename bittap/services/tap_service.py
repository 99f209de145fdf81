"""
bittap.services.tap_service — Tap Ledger
=========================================

One tap = one unit of energy spent, ``click_power`` coins earned.

The server is the authority on all three numbers.  Older web clients still
post their own idea of ``coins`` and ``energy``; those fields are accepted
on the wire and ignored here.  A reported ``clickPower`` can only lower the
credit (e.g. a client showing a stale tier), never raise it above the tier
the account owns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Engine, select, update

from bittap.constants import ENERGY_PER_TAP
from bittap.database.engine import get_session
from bittap.database.models import Account
from bittap.engine.clock import resolve_now
from bittap.engine.errors import AccountNotFound, InvalidState
from bittap.services.energy_service import reconcile_in_session

logger = logging.getLogger(__name__)


@dataclass
class TapResult:
    credited: int
    coins: int
    total_coins: int
    energy: int


def _tap_credit(owned: int, reported: int | None) -> int:
    if reported is None:
        return owned
    return max(1, min(reported, owned))


def apply_tap(
    engine: Engine,
    account_id: int,
    *,
    click_power: int | None = None,
    now: datetime | None = None,
) -> TapResult:
    """Apply one tap atomically.

    Energy is reconciled first in the same transaction, then a single
    UPDATE spends energy and credits coins with in-database increments, so
    concurrent taps from several sessions never lose an update.

    Raises
    ------
    AccountNotFound
        Unknown account.
    InvalidState
        The account is out of energy.
    """
    now = resolve_now(now)

    with get_session(engine) as session:
        energy = reconcile_in_session(session, account_id, now)
        if energy is None:
            raise AccountNotFound(account_id)

        owned = session.execute(
            select(Account.click_power).where(Account.id == account_id)
        ).scalar_one()
        credit = _tap_credit(owned, click_power)

        row = session.execute(
            update(Account)
            .where(Account.id == account_id, Account.energy >= ENERGY_PER_TAP)
            .values(
                coins=Account.coins + credit,
                total_coins=Account.total_coins + credit,
                energy=Account.energy - ENERGY_PER_TAP,
                last_energy_update=now,
            )
            .returning(Account.coins, Account.total_coins, Account.energy)
            .execution_options(synchronize_session=False)
        ).first()

        if row is None:
            raise InvalidState("Out of energy, wait for it to recharge.")

    logger.debug("Tap on account %d: +%d (energy %d)", account_id, credit, row.energy)
    return TapResult(
        credited=credit,
        coins=row.coins,
        total_coins=row.total_coins,
        energy=row.energy,
    )
