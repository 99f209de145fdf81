"""
bittap.api.main — FastAPI application entry point
==================================================

Run with::

    python -m bittap.api          # port from config.yaml (api_port)
    uvicorn bittap.api.main:app --port 3000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

load_dotenv()

from bittap.api.auth import router as auth_router  # noqa: E402
from bittap.api.deps import get_engine  # noqa: E402
from bittap.api.routes.admin import router as admin_router  # noqa: E402
from bittap.api.routes.public import router as public_router  # noqa: E402
from bittap.api.routes.users import router as users_router  # noqa: E402
from bittap.database.engine import dispose_engine, init_db  # noqa: E402
from bittap.engine.errors import GameError  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — ensure tables, then drain the pool on exit."""
    engine = get_engine()
    init_db(engine)
    logger.info("BitTap API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("BitTap API shutting down")
    dispose_engine(engine)


app = FastAPI(
    title="BitTap API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error mapping: every failure leaves as {"error": "..."}
# ---------------------------------------------------------------------------
@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


def _validation_summary(exc: RequestValidationError) -> str:
    """Flatten pydantic errors into one line, e.g. ``clickPower: Input should be ...``."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "path", "query"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content={"error": _validation_summary(exc)})


# Mount routers
app.include_router(auth_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(public_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/", response_class=PlainTextResponse)
def root():
    return "BitTap is running!"


@app.get("/api/health")
def health():
    return {"status": "ok"}
