"""
bittap.services.progression_service — Upgrade Purchases
========================================================

Validates and commits tier changes for the three upgrade paths.  Prices
come from :mod:`bittap.engine.progression`; the caller only chooses *which*
path and, optionally, names the tier it expects to land on.

Every purchase is one UPDATE guarded on the tier we priced and on
``coins >= cost``.  If another request bought the same tier first, or spent
the coins, the guard fails and nothing is charged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Engine, select, update

from bittap.database.engine import get_session
from bittap.database.models import Account
from bittap.engine.clock import resolve_now
from bittap.engine.errors import AccountNotFound, InvalidState
from bittap.engine.progression import (
    LEVEL_COLUMN,
    UpgradeKind,
    click_power_for_level,
    max_energy_for_level,
    max_level,
    upgrade_cost,
)
from bittap.services.energy_service import reconcile_in_session

logger = logging.getLogger(__name__)


@dataclass
class UpgradeResult:
    kind: UpgradeKind
    level: int
    cost: int
    coins: int


def _tier_values(kind: UpgradeKind, new_level: int, now: datetime) -> dict:
    """Column assignments for landing on *new_level* of *kind*."""
    column = getattr(Account, LEVEL_COLUMN[kind])
    values: dict = {column: new_level}
    if kind is UpgradeKind.CLICK_POWER:
        values[Account.click_power] = click_power_for_level(new_level)
    elif kind is UpgradeKind.ENERGY:
        values[Account.max_energy] = max_energy_for_level(new_level)
        # Regen accrued under the old cap was folded in just before this;
        # restart the clock so the bigger pool doesn't refill retroactively.
        values[Account.last_energy_update] = now
    return values


def apply_upgrade(
    engine: Engine,
    account_id: int,
    kind: UpgradeKind,
    *,
    target_level: int | None = None,
    now: datetime | None = None,
) -> UpgradeResult:
    """Buy the next tier of *kind* at the server's price.

    Parameters
    ----------
    target_level:
        The tier the client expects to reach.  When given it must equal the
        next tier; a stale or skipped tier is rejected rather than guessed.

    Raises
    ------
    AccountNotFound
        Unknown account.
    InvalidState
        Wrong target tier, already at the cap, or not enough coins.
    """
    now = resolve_now(now)
    column = getattr(Account, LEVEL_COLUMN[kind])

    with get_session(engine) as session:
        if kind is UpgradeKind.ENERGY:
            reconcile_in_session(session, account_id, now)

        current = session.execute(
            select(column.label("level"), Account.coins)
            .where(Account.id == account_id)
            .with_for_update()
        ).first()
        if current is None:
            raise AccountNotFound(account_id)

        next_level = current.level + 1
        if target_level is not None and target_level != next_level:
            raise InvalidState(
                f"Can't move {kind.value} from level {current.level} to {target_level}; "
                f"the next level is {next_level}."
            )
        if current.level >= max_level(kind):
            raise InvalidState(f"{kind.value} is already at the maximum level.")

        cost = upgrade_cost(kind, current.level)
        if current.coins < cost:
            raise InvalidState(f"Not enough coins: need {cost}, have {current.coins}.")

        values = _tier_values(kind, next_level, now)
        values[Account.coins] = Account.coins - cost
        row = session.execute(
            update(Account)
            .where(
                Account.id == account_id,
                column == current.level,
                Account.coins >= cost,
            )
            .values(values)
            .returning(Account.coins)
            .execution_options(synchronize_session=False)
        ).first()
        if row is None:
            raise InvalidState("The account changed while upgrading, try again.")

    logger.info("Account %d bought %s level %d for %d",
                account_id, kind.value, next_level, cost)
    return UpgradeResult(kind=kind, level=next_level, cost=cost, coins=row.coins)


def upgrade_click_power(engine: Engine, account_id: int, *,
                        target_level: int | None = None,
                        now: datetime | None = None) -> UpgradeResult:
    return apply_upgrade(engine, account_id, UpgradeKind.CLICK_POWER,
                         target_level=target_level, now=now)


def upgrade_energy(engine: Engine, account_id: int, *,
                   target_level: int | None = None,
                   now: datetime | None = None) -> UpgradeResult:
    return apply_upgrade(engine, account_id, UpgradeKind.ENERGY,
                         target_level=target_level, now=now)


def buy_auto_mining(engine: Engine, account_id: int, *,
                    target_level: int | None = None,
                    now: datetime | None = None) -> UpgradeResult:
    return apply_upgrade(engine, account_id, UpgradeKind.AUTO_MINING,
                         target_level=target_level, now=now)
