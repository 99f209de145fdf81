"""
bittap.api.auth — Operator JWT issuance
========================================

There is no login flow: the chat bot hands the configured operator a
short-lived token (``/operator-token``), and the admin endpoints accept it
as a Bearer token.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
from fastapi import APIRouter, Depends

from bittap.api.deps import JWT_ALGORITHM, JWT_SECRET, get_current_operator

router = APIRouter(prefix="/auth", tags=["auth"])

OPERATOR_TOKEN_TTL = timedelta(hours=12)


def issue_operator_token(operator_id: int, username: str = "operator") -> str:
    payload = {
        "sub": str(operator_id),
        "username": username,
        "is_operator": True,
        "exp": datetime.now(UTC) + OPERATOR_TOKEN_TTL,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


@router.get("/me")
async def me(operator: dict = Depends(get_current_operator)):
    """Return the current operator's identity."""
    return {
        "id": operator["sub"],
        "username": operator.get("username", "operator"),
        "is_operator": True,
    }
