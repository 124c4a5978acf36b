"""
SkillSphere — FastAPI application entry-point.

Run with:
    uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import Base, engine
from app.models import *  # noqa: F401,F403  (register tables on Base.metadata)
from app.services.errors import (
    DataIntegrityError,
    ExternalServiceError,
    InvalidStateError,
    NotFoundError,
)

# ── Import routers ──
from app.routers import skill_graph, skills, users

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("app")


# ── Lifespan: create tables on startup ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Skill graph engine — mastery decay, unlocks, recommendations, placement readiness.",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Register API routers ──
app.include_router(users.router)
app.include_router(skill_graph.router)
app.include_router(skills.router)


# ═══════════════════════════════════════════════════════════════
#  Error handlers
# ═══════════════════════════════════════════════════════════════

def error_response(status_code: int, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": status_code, "message": message, "details": details},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return error_response(404, exc.message, exc.details)


@app.exception_handler(DataIntegrityError)
async def data_integrity_handler(request: Request, exc: DataIntegrityError):
    logger.error(f"Data integrity error on {request.url.path}: {exc.message}")
    return error_response(409, exc.message, exc.details)


@app.exception_handler(InvalidStateError)
async def invalid_state_handler(request: Request, exc: InvalidStateError):
    logger.warning(f"Invalid state on {request.url.path}: {exc.message}")
    return error_response(422, exc.message, exc.details)


@app.exception_handler(ExternalServiceError)
async def external_service_handler(request: Request, exc: ExternalServiceError):
    logger.warning(f"External service failed on {request.url.path}: {exc.message}")
    return error_response(502, exc.message, exc.details)


# ── Health ──
@app.get("/")
async def root():
    return {"app": settings.APP_NAME, "status": "ok"}
