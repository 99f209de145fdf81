"""
bittap.api.routes.users — Per-account game endpoints
=====================================================

The web client's surface.  Each route resolves the account id from the path
and invokes exactly one engine operation.  Request bodies keep the fields
older clients send (their own ``coins``/``energy`` totals, the tier they
think they're buying); the server prices and credits everything itself.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Engine

from bittap.api.deps import get_engine
from bittap.engine.errors import GameError
from bittap.services import mining_service, progression_service, tap_service
from bittap.services.account_service import default_view, snapshot_account

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class _ClientBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Client-side balance; accepted for compatibility, never trusted
    coins: int | None = None


class TapRequest(_ClientBody):
    energy: int | None = None
    click_power: int | None = Field(None, alias="clickPower", ge=1)


class ClickUpgradeRequest(_ClientBody):
    boost_level: int | None = Field(None, alias="boostLevel")
    click_power: int | None = Field(None, alias="clickPower")


class EnergyUpgradeRequest(_ClientBody):
    energy_level: int | None = Field(None, alias="energyLevel")
    max_energy: int | None = Field(None, alias="maxEnergy")


class AutoMiningPurchase(_ClientBody):
    auto_mining_level: int | None = Field(None, alias="autoMiningLevel")


class StartMiningRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    auto_mining_level: int | None = Field(None, alias="autoMiningLevel")


def _upgrade_response(result: progression_service.UpgradeResult) -> dict:
    return {
        "success": True,
        "coins": result.coins,
        "level": result.level,
        "cost": result.cost,
    }


# ---------------------------------------------------------------------------
# GET /user/{account_id}
# ---------------------------------------------------------------------------
@router.get("/{account_id}")
def get_user(account_id: int, engine: Engine = Depends(get_engine)):
    """Full account view.  Settles energy and a finished auto-mining run first."""
    try:
        return snapshot_account(engine, account_id)
    except GameError:
        logger.exception("Account read failed for %d; serving defaults", account_id)
        return default_view(account_id)


# ---------------------------------------------------------------------------
# POST /user/{account_id}/tap
# ---------------------------------------------------------------------------
@router.post("/{account_id}/tap")
def tap(
    account_id: int,
    body: TapRequest | None = None,
    engine: Engine = Depends(get_engine),
):
    body = body or TapRequest()
    result = tap_service.apply_tap(engine, account_id, click_power=body.click_power)
    return {
        "success": True,
        "coins": result.coins,
        "totalCoins": result.total_coins,
        "energy": result.energy,
    }


# ---------------------------------------------------------------------------
# Upgrades
# ---------------------------------------------------------------------------
@router.post("/{account_id}/upgrade")
def upgrade_click_power(
    account_id: int,
    body: ClickUpgradeRequest | None = None,
    engine: Engine = Depends(get_engine),
):
    body = body or ClickUpgradeRequest()
    result = progression_service.upgrade_click_power(
        engine, account_id, target_level=body.boost_level,
    )
    return _upgrade_response(result)


@router.post("/{account_id}/upgrade-energy")
def upgrade_energy(
    account_id: int,
    body: EnergyUpgradeRequest | None = None,
    engine: Engine = Depends(get_engine),
):
    body = body or EnergyUpgradeRequest()
    result = progression_service.upgrade_energy(
        engine, account_id, target_level=body.energy_level,
    )
    return _upgrade_response(result)


@router.post("/{account_id}/buy-auto-mining")
def buy_auto_mining(
    account_id: int,
    body: AutoMiningPurchase | None = None,
    engine: Engine = Depends(get_engine),
):
    body = body or AutoMiningPurchase()
    result = progression_service.buy_auto_mining(
        engine, account_id, target_level=body.auto_mining_level,
    )
    return _upgrade_response(result)


# ---------------------------------------------------------------------------
# Auto-mining
# ---------------------------------------------------------------------------
@router.post("/{account_id}/start-auto-mining")
def start_auto_mining(
    account_id: int,
    body: StartMiningRequest | None = None,
    engine: Engine = Depends(get_engine),
):
    # The run is always at the owned level; a reported level is ignored
    result = mining_service.start_auto_mining(engine, account_id)
    return {"success": True, "endTime": result.end_time.isoformat()}


@router.post("/{account_id}/claim-auto-mining")
def claim_auto_mining(account_id: int, engine: Engine = Depends(get_engine)):
    result = mining_service.claim_auto_mining(engine, account_id)
    if not result.completed:
        return {"success": False, "message": "Auto-mining is not finished yet."}
    return {
        "success": True,
        "earned": result.earned,
        "coins": result.coins,
        "totalCoins": result.total_coins,
    }
