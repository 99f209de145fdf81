"""
tests/test_mining_service.py — Auto-Mining Scheduler
=====================================================
Start/claim transitions, the 8-hour window, and exactly-once payout.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from bittap.engine.errors import AccountNotFound, InvalidState
from bittap.engine.mining import MiningState, mining_payout, mining_state, seconds_remaining
from bittap.services.mining_service import claim_auto_mining, start_auto_mining
from bittap.services.progression_service import buy_auto_mining
from conftest import T0

EIGHT_HOURS = timedelta(hours=8)


class TestStateMachine:
    def test_idle_without_window(self):
        assert mining_state(None, T0) is MiningState.IDLE

    def test_running_before_end(self):
        assert mining_state(T0 + EIGHT_HOURS, T0) is MiningState.RUNNING

    def test_completed_at_end(self):
        assert mining_state(T0, T0) is MiningState.COMPLETED

    def test_payout_per_level(self):
        assert mining_payout(3) == 24
        assert mining_payout(0) == 0

    def test_seconds_remaining(self):
        assert seconds_remaining(T0 + timedelta(seconds=90), T0) == 90
        assert seconds_remaining(T0, T0 + timedelta(seconds=5)) == 0
        assert seconds_remaining(None, T0) == 0


class TestStart:
    def test_window_is_eight_hours(self, db_engine, make_account, load_account):
        make_account(1, auto_mining_level=3)

        result = start_auto_mining(db_engine, 1, now=T0)

        assert result.start_time == T0
        assert result.end_time == T0 + EIGHT_HOURS
        assert result.run_level == 3
        account = load_account(1)
        assert account.auto_mining_end.replace(tzinfo=None) == (T0 + EIGHT_HOURS).replace(tzinfo=None)
        assert account.auto_mining_run_level == 3

    def test_not_owned(self, db_engine, make_account):
        make_account(1, auto_mining_level=0)
        with pytest.raises(InvalidState, match="not unlocked"):
            start_auto_mining(db_engine, 1, now=T0)

    def test_already_running(self, db_engine, make_account):
        make_account(1, auto_mining_level=1)
        start_auto_mining(db_engine, 1, now=T0)
        with pytest.raises(InvalidState, match="already running"):
            start_auto_mining(db_engine, 1, now=T0 + timedelta(hours=1))

    def test_finished_but_unclaimed(self, db_engine, make_account):
        make_account(1, auto_mining_level=1)
        start_auto_mining(db_engine, 1, now=T0)
        with pytest.raises(InvalidState, match="Claim the finished"):
            start_auto_mining(db_engine, 1, now=T0 + EIGHT_HOURS + timedelta(seconds=1))

    def test_unknown_account(self, db_engine):
        with pytest.raises(AccountNotFound):
            start_auto_mining(db_engine, 404, now=T0)


class TestClaim:
    def test_completed_run_pays_once(self, db_engine, make_account, load_account):
        make_account(1, auto_mining_level=3, coins=10, total_coins=10)
        start_auto_mining(db_engine, 1, now=T0)
        later = T0 + EIGHT_HOURS + timedelta(seconds=1)

        first = claim_auto_mining(db_engine, 1, now=later)
        assert first.completed is True
        assert first.earned == 24
        assert first.coins == 34
        assert first.total_coins == 34

        second = claim_auto_mining(db_engine, 1, now=later)
        assert second.completed is False
        assert second.earned == 0

        account = load_account(1)
        assert account.coins == 34
        assert account.auto_mining_start is None
        assert account.auto_mining_end is None
        assert account.auto_mining_run_level is None

    def test_running_claim_changes_nothing(self, db_engine, make_account, load_account):
        make_account(1, auto_mining_level=2)
        start_auto_mining(db_engine, 1, now=T0)

        result = claim_auto_mining(db_engine, 1, now=T0 + timedelta(hours=7))

        assert result.completed is False
        assert load_account(1).auto_mining_end is not None
        assert load_account(1).coins == 0

    def test_idle_claim(self, db_engine, make_account):
        make_account(1, auto_mining_level=2)
        assert claim_auto_mining(db_engine, 1, now=T0).completed is False

    def test_unknown_account_claim(self, db_engine):
        assert claim_auto_mining(db_engine, 404, now=T0).completed is False

    def test_payout_uses_level_at_start(self, db_engine, make_account):
        make_account(1, auto_mining_level=1, coins=20_000, total_coins=20_000)
        start_auto_mining(db_engine, 1, now=T0)
        buy_auto_mining(db_engine, 1, now=T0 + timedelta(hours=1))

        result = claim_auto_mining(db_engine, 1, now=T0 + EIGHT_HOURS)

        assert result.earned == mining_payout(1)

    def test_restart_after_claim(self, db_engine, make_account):
        make_account(1, auto_mining_level=1)
        start_auto_mining(db_engine, 1, now=T0)
        claim_auto_mining(db_engine, 1, now=T0 + EIGHT_HOURS)

        again = start_auto_mining(db_engine, 1, now=T0 + EIGHT_HOURS)
        assert again.end_time == T0 + 2 * EIGHT_HOURS
