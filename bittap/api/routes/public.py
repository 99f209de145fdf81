"""
bittap.api.routes.public — Read-only public endpoints
======================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Engine

from bittap.api.deps import get_engine
from bittap.services.stats_service import leaderboard

router = APIRouter(tags=["public"])


# ---------------------------------------------------------------------------
# GET /leaderboard
# ---------------------------------------------------------------------------
@router.get("/leaderboard")
def get_leaderboard(
    limit: int = Query(10, ge=1, le=100),
    engine: Engine = Depends(get_engine),
):
    """Top accounts by lifetime coins."""
    return leaderboard(engine, limit)
