"""
tests/test_account_service.py — Account Store & Query Facade
=============================================================
Registration idempotency, referral on registration, the settled snapshot,
and the audit-logged operator reset.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bittap.constants import REFERRAL_BONUS
from bittap.database.models import Account, AdminActionType, AdminLog, ReferralCredit
from bittap.engine.errors import Unauthorized
from bittap.services.account_service import (
    DEFAULT_ACCOUNT_VIEW,
    get_account,
    register_account,
    reset_account,
    snapshot_account,
)
from bittap.services.mining_service import start_auto_mining
from conftest import OPERATOR_ID, T0


def _count(engine, model) -> int:
    with Session(engine) as session:
        return session.scalar(select(func.count()).select_from(model))


class TestRegistration:
    def test_new_account_starts_empty(self, db_engine):
        result = register_account(db_engine, 10, "alice", now=T0)

        assert result.created is True
        assert result.referral_credited is False
        account = get_account(db_engine, 10)
        assert (account.coins, account.total_coins) == (0, 0)
        assert account.energy == account.max_energy == 1000
        assert account.click_power == 1
        assert account.auto_mining_level == 0

    def test_duplicate_registration_is_noop(self, db_engine):
        register_account(db_engine, 1, "bob", now=T0)
        register_account(db_engine, 2, "alice", referral_token="ref1", now=T0)

        again = register_account(db_engine, 2, "alice", referral_token="ref1", now=T0)

        assert again.created is False
        assert again.referral_credited is False
        assert _count(db_engine, Account) == 2
        assert _count(db_engine, ReferralCredit) == 1
        assert get_account(db_engine, 1).coins == REFERRAL_BONUS

    def test_referral_credits_referrer(self, db_engine):
        register_account(db_engine, 1, "bob", now=T0)

        result = register_account(db_engine, 2, "alice", referral_token="ref1", now=T0)

        assert result.referral_credited is True
        bob = get_account(db_engine, 1)
        assert (bob.coins, bob.total_coins) == (REFERRAL_BONUS, REFERRAL_BONUS)
        assert get_account(db_engine, 2).referrer_id == 1

    def test_self_referral_is_ignored(self, db_engine):
        result = register_account(db_engine, 5, "eve", referral_token="ref5", now=T0)

        assert result.created is True
        assert result.referral_credited is False
        assert get_account(db_engine, 5).coins == 0

    def test_garbage_token_is_ignored(self, db_engine):
        result = register_account(db_engine, 5, "eve", referral_token="hello", now=T0)
        assert result.referral_credited is False

    def test_get_unknown_account(self, db_engine):
        assert get_account(db_engine, 31337) is None


class TestSnapshot:
    def test_unknown_account_gets_defaults(self, db_engine):
        view = snapshot_account(db_engine, 999, now=T0)
        assert view == {"id": 999, **DEFAULT_ACCOUNT_VIEW}
        assert _count(db_engine, Account) == 0

    def test_settles_energy(self, db_engine, make_account):
        make_account(1, energy=500)

        view = snapshot_account(db_engine, 1, now=T0 + timedelta(seconds=100))

        assert view["energy"] == 600
        assert view["autoMiningCompleted"] is False

    def test_settles_finished_mining(self, db_engine, make_account):
        make_account(1, auto_mining_level=3)
        start_auto_mining(db_engine, 1, now=T0)

        view = snapshot_account(db_engine, 1, now=T0 + timedelta(hours=8, seconds=1))

        assert view["autoMiningCompleted"] is True
        assert view["autoMiningEarned"] == 24
        assert view["coins"] == 24
        assert view["autoMiningEnd"] is None

    def test_running_mining_is_reported(self, db_engine, make_account):
        make_account(1, auto_mining_level=1)
        start_auto_mining(db_engine, 1, now=T0)

        view = snapshot_account(db_engine, 1, now=T0 + timedelta(hours=1))

        assert view["autoMiningCompleted"] is False
        assert view["autoMiningEnd"].startswith("2026-01-15T20:00:00")


class TestOperatorReset:
    def test_reset_restores_defaults(self, db_engine, make_account, load_account):
        make_account(1, coins=900, total_coins=5000, boost_level=4, click_power=4,
                     energy=10, max_energy=2000, energy_level=3, auto_mining_level=2,
                     referrer_id=7)

        assert reset_account(db_engine, 1, actor_id=OPERATOR_ID,
                             operator_id=OPERATOR_ID, now=T0) is True

        account = load_account(1)
        assert (account.coins, account.total_coins) == (0, 0)
        assert (account.click_power, account.boost_level) == (1, 1)
        assert (account.energy, account.max_energy, account.energy_level) == (1000, 1000, 1)
        assert account.auto_mining_level == 0
        assert account.referrer_id == 7
        assert account.display_name == "player1"

    def test_reset_is_audited(self, db_engine, make_account):
        make_account(1, coins=900)
        reset_account(db_engine, 1, actor_id=OPERATOR_ID, operator_id=OPERATOR_ID, now=T0)

        with Session(db_engine) as session:
            entry = session.scalar(select(AdminLog))
            assert entry.action_type == AdminActionType.RESET.value
            assert entry.actor_id == OPERATOR_ID
            assert entry.target_id == 1
            assert entry.before_snapshot["coins"] == 900
            assert entry.after_snapshot["coins"] == 0

    def test_non_operator_denied(self, db_engine, make_account, load_account):
        make_account(1, coins=900)

        with pytest.raises(Unauthorized) as exc_info:
            reset_account(db_engine, 1, actor_id=1, operator_id=OPERATOR_ID, now=T0)

        assert exc_info.value.message == Unauthorized.DENIAL
        assert load_account(1).coins == 900
        assert _count(db_engine, AdminLog) == 0

    def test_unknown_account(self, db_engine):
        assert reset_account(db_engine, 5, actor_id=OPERATOR_ID,
                             operator_id=OPERATOR_ID, now=T0) is False
