"""
bittap.api.routes.admin — Operator endpoints (JWT-protected)
=============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import Engine

from bittap.api.deps import get_config, get_current_operator, get_engine
from bittap.config import BitTapConfig
from bittap.engine.errors import AccountNotFound
from bittap.services.account_service import reset_account
from bittap.services.stats_service import global_stats

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats")
def stats(
    operator: dict = Depends(get_current_operator),
    engine: Engine = Depends(get_engine),
):
    return global_stats(engine)


@router.post("/reset/{account_id}")
def reset(
    account_id: int,
    operator: dict = Depends(get_current_operator),
    cfg: BitTapConfig = Depends(get_config),
    engine: Engine = Depends(get_engine),
):
    """Zero an account's economy.  The token subject must still be the operator."""
    found = reset_account(
        engine,
        account_id,
        actor_id=int(operator["sub"]),
        operator_id=cfg.operator_id,
    )
    if not found:
        raise AccountNotFound(account_id)
    return {"success": True}
