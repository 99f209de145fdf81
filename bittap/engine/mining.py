"""
bittap.engine.mining — Auto-Mining State Machine
=================================================

Pure helpers for the per-account production run::

    IDLE ──start──▶ RUNNING ──(now ≥ end)──▶ COMPLETED ──claim──▶ IDLE

The run is never settled by a timer.  ``COMPLETED`` is derived from the
stored window and the current time, and the payout happens when somebody
claims (or reads the account through the API).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from bittap.constants import AUTO_MINING_DURATION, PAYOUT_HOURS
from bittap.engine.clock import as_utc


class MiningState(enum.StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class MiningWindow:
    start: datetime
    end: datetime


def mining_state(window_end: datetime | None, now: datetime) -> MiningState:
    """Derive the run state from the stored window end."""
    if window_end is None:
        return MiningState.IDLE
    if as_utc(now) >= as_utc(window_end):
        return MiningState.COMPLETED
    return MiningState.RUNNING


def new_window(now: datetime) -> MiningWindow:
    now = as_utc(now)
    return MiningWindow(start=now, end=now + AUTO_MINING_DURATION)


def mining_payout(run_level: int) -> int:
    """Coins paid for one completed run at *run_level*."""
    return max(0, run_level) * PAYOUT_HOURS


def seconds_remaining(window_end: datetime | None, now: datetime) -> int:
    if window_end is None:
        return 0
    return max(0, int((as_utc(window_end) - as_utc(now)).total_seconds()))
