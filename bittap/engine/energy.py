"""
bittap.engine.energy — Energy Regeneration Math
================================================

Pure calculation, no DB I/O.  Energy refills at a fixed rate per elapsed
wall-clock second up to ``max_energy``.  Nothing ticks in the background;
the services call :func:`regenerated_energy` whenever an account is observed,
so accrual is correct no matter how rarely that happens.
"""

from __future__ import annotations

from datetime import datetime

from bittap.constants import ENERGY_REGEN_PER_SECOND
from bittap.engine.clock import as_utc


def elapsed_seconds(last_update: datetime, now: datetime) -> int:
    """Whole seconds between *last_update* and *now*, clamped at zero.

    A clock that moved backwards yields 0, never a negative value.
    """
    delta = (as_utc(now) - as_utc(last_update)).total_seconds()
    return max(0, int(delta))


def regenerated_energy(
    energy: int,
    max_energy: int,
    last_update: datetime,
    now: datetime,
) -> int:
    """Energy gained since *last_update*, capped by the room left in the pool.

    Always ``>= 0`` and never pushes ``energy`` past ``max_energy``.
    """
    room = max(0, max_energy - energy)
    return min(elapsed_seconds(last_update, now) * ENERGY_REGEN_PER_SECOND, room)
