"""
tests/test_tap_service.py — Tap Ledger
=======================================
Server-side tap crediting: owned click power, energy spend, and no lost
updates when several sessions tap the same account at once.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from bittap.database.models import Account, Base
from bittap.engine.errors import AccountNotFound, InvalidState
from bittap.services.tap_service import _tap_credit, apply_tap
from conftest import T0


class TestTapCredit:
    def test_defaults_to_owned_power(self):
        assert _tap_credit(5, None) == 5

    def test_reported_power_cannot_exceed_owned(self):
        assert _tap_credit(2, 1_000_000) == 2

    def test_reported_power_may_lower_credit(self):
        assert _tap_credit(5, 3) == 3

    def test_credit_never_below_one(self):
        assert _tap_credit(5, 0) == 1


class TestApplyTap:
    def test_tap_credits_coins_and_spends_energy(self, db_engine, make_account, load_account):
        make_account(1, energy=1000, click_power=1)

        result = apply_tap(db_engine, 1, now=T0)

        assert result.credited == 1
        assert result.coins == 1
        assert result.total_coins == 1
        assert result.energy == 999
        account = load_account(1)
        assert (account.coins, account.total_coins, account.energy) == (1, 1, 999)

    def test_uses_owned_click_power(self, db_engine, make_account):
        make_account(1, click_power=4, boost_level=4)

        result = apply_tap(db_engine, 1, click_power=50, now=T0)

        assert result.credited == 4
        assert result.coins == 4

    def test_reconciles_before_spending(self, db_engine, make_account):
        make_account(1, energy=0, max_energy=1000)

        result = apply_tap(db_engine, 1, now=T0 + timedelta(seconds=10))

        assert result.energy == 9

    def test_out_of_energy(self, db_engine, make_account, load_account):
        make_account(1, energy=0, coins=7, total_coins=7)

        with pytest.raises(InvalidState, match="Out of energy"):
            apply_tap(db_engine, 1, now=T0)
        assert load_account(1).coins == 7

    def test_unknown_account(self, db_engine):
        with pytest.raises(AccountNotFound):
            apply_tap(db_engine, 12345, now=T0)

    def test_total_coins_tracks_lifetime(self, db_engine, make_account):
        make_account(1, coins=0, total_coins=500)
        result = apply_tap(db_engine, 1, now=T0)
        assert result.total_coins == 501

    def test_concurrent_taps_lose_nothing(self, tmp_path):
        # Separate connections per thread need a file-backed database
        engine = create_engine(
            f"sqlite:///{tmp_path / 'taps.db'}",
            connect_args={"timeout": 30, "check_same_thread": False},
        )
        Base.metadata.create_all(engine)
        with Session(engine) as session:
            session.add(Account(id=1, energy=1000, click_power=1,
                                last_energy_update=T0, created_at=T0))
            session.commit()

        def tap(_):
            return apply_tap(engine, 1, now=T0)

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(tap, range(20)))

        assert len(results) == 20
        with Session(engine) as session:
            account = session.get(Account, 1)
            assert account.coins == 20
            assert account.total_coins == 20
            assert account.energy == 980
        engine.dispose()
