from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timey.db.base import get_db
from timey.core.chores import load_chore_catalog
from timey.core.config import settings
from timey.core.logger import setup_logger
from timey.models import ProfileDocument
from timey.routers import profiles as profiles_router
from timey.routers import rewards as rewards_router
from timey.core.errors import (
    TimeyException,
    timey_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

setup_logger(level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)

app = FastAPI(
    title="Timey API",
    description=(
        "**Chore and play-time progression tracker**\n\n"
        "Per-user chore schedules, daily XP with end-of-day penalties, levels "
        "and reward tokens, backed by one JSON profile document per user.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Domain errors first; the catch-all Exception handler must stay last.
app.add_exception_handler(TimeyException, timey_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(profiles_router.router)
app.include_router(rewards_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    `{"status": "ok", "db": "ok", "profiles": N, "chores": M}` when the profile
    store answers; HTTP 503 with `"db": "unreachable"` otherwise.
    """
    try:
        profiles = db.scalar(select(func.count()).select_from(ProfileDocument))
    except SQLAlchemyError as exc:
        logger.error(f"Health check could not reach the profile store: {exc}")
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": "unreachable"},
        )
    return {
        "status": "ok",
        "db": "ok",
        "env": settings.APP_ENV,
        "profiles": profiles,
        "chores": len(load_chore_catalog()),
    }
