"""
Gradebook API - FastAPI Main Application
"""

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gradebook.core.config import settings
from gradebook.core.db import get_db
from gradebook.core.errors import add_error_handlers
from gradebook.core.queue import _get_redis_connection
from gradebook.routers import class_groups, grades
from gradebook.routers import gradebook as gradebook_router

app = FastAPI(
    title="Gradebook API",
    description="Period, term and cumulative grade computation for school classes",
    version="0.1.0",
)

app.include_router(gradebook_router.router, prefix="/api/v1")
app.include_router(grades.router, prefix="/api/v1")
app.include_router(class_groups.router, prefix="/api/v1")

add_error_handlers(app)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Gradebook API",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
def health():
    """Health check endpoint"""
    return {"status": "ok"}


def _unavailable(component: str, exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=503,
        detail={"status": "error", component: "unavailable", "error": str(exc)},
    )


@app.get("/health/db")
def health_db(db: Session = Depends(get_db)):
    """Database health check endpoint"""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise _unavailable("database", exc) from exc
    return {"status": "ok", "db": "ok"}


@app.get("/health/redis")
def health_redis():
    """Redis health check, only meaningful when recomputes are queued."""
    if not settings.ASYNC_QUEUE_ENABLED:
        return {"status": "skipped", "async_enabled": False}
    try:
        _get_redis_connection().ping()
    except RedisError as exc:
        raise _unavailable("redis", exc) from exc
    return {"status": "ok", "redis": "ok"}
