from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from sentalerts import db
from sentalerts.config import CREATE_ALL_ENVS, AppInfo, Settings, get_settings
from sentalerts.core.logging import get_logger, setup_logging
from sentalerts.core.runtime_state import set_scheduler_active
import sentalerts.models  # registers the tables
from sentalerts.routers import get_api_router
from sentalerts.services.overdue_alerts import alert_overdue_requests_once
from sentalerts.services.scheduler_lock import (
    refresh_scheduler_lock,
    release_scheduler_lock,
    try_acquire_scheduler_lock,
)
from sentalerts.utils.errors import SentAlertError, error_response

logger = get_logger(__name__)
scheduler: AsyncIOScheduler | None = None


def _configure_middlewares(fastapi_app: FastAPI) -> None:
    """Configure optional observability integrations from the settings snapshot."""

    runtime_settings = get_settings()
    if runtime_settings.PROMETHEUS_ENABLED:
        from starlette_exporter import PrometheusMiddleware, handle_metrics

        fastapi_app.add_middleware(PrometheusMiddleware)
        fastapi_app.add_route("/metrics", handle_metrics)

    if runtime_settings.SENTRY_DSN:
        import sentry_sdk

        sentry_sdk.init(dsn=runtime_settings.SENTRY_DSN, traces_sample_rate=0.2)


def _start_scheduler(settings: Settings) -> AsyncIOScheduler:
    ttl = settings.SCHEDULER_LOCK_TTL_SECONDS
    new_scheduler = AsyncIOScheduler()
    new_scheduler.add_job(
        alert_overdue_requests_once,
        "interval",
        minutes=settings.OVERDUE_ALERT_INTERVAL_MINUTES,
        id="overdue-alerts",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    new_scheduler.add_job(
        refresh_scheduler_lock,
        "interval",
        seconds=max(ttl // 5, 1),
        kwargs={"ttl_seconds": ttl},
        id="scheduler-lock-heartbeat",
        replace_existing=True,
    )
    new_scheduler.start()
    return new_scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    global scheduler
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    logger.info("Application startup", extra={"env": settings.app_env})
    db.init_engine()  # sync, idempotent
    if settings.ALLOW_DB_CREATE_ALL and settings.app_env in CREATE_ALL_ENVS:
        logger.warning(
            "Running Base.metadata.create_all() because APP_ENV=%s and ALLOW_DB_CREATE_ALL=True",
            settings.app_env,
        )
        db.create_all()
    else:
        logger.info("Skipping create_all(); use Alembic migrations. APP_ENV=%s", settings.app_env)

    set_scheduler_active(False)
    lock_acquired = False
    if settings.SCHEDULER_ENABLED:
        lock_acquired = try_acquire_scheduler_lock(ttl_seconds=settings.SCHEDULER_LOCK_TTL_SECONDS)
        if lock_acquired:
            scheduler = _start_scheduler(settings)
            set_scheduler_active(True)
            logger.info(
                "Overdue alert scheduler started",
                extra={"interval_minutes": settings.OVERDUE_ALERT_INTERVAL_MINUTES},
            )
        else:
            logger.warning(
                "Scheduler disabled because lock is already held by another instance.",
                extra={"env": settings.app_env},
            )
    try:
        yield
    finally:
        if scheduler:
            scheduler.shutdown(wait=False)
            scheduler = None
        if lock_acquired:
            release_scheduler_lock()
        set_scheduler_active(False)
        db.close_engine()
        logger.info("Application shutdown", extra={"env": settings.app_env})


app_info = AppInfo()

app = FastAPI(title=app_info.name, version=app_info.version, lifespan=lifespan)

_configure_middlewares(app)
app.include_router(get_api_router())


@app.exception_handler(SentAlertError)
async def sent_alert_exception_handler(request: Request, exc: SentAlertError) -> JSONResponse:
    logger.info("Sent alert request rejected", extra={"code": exc.code})
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception", exc_info=exc)
    payload = error_response("INTERNAL_SERVER_ERROR", "An unexpected error occurred.")
    return JSONResponse(status_code=500, content=payload)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict) and "error" in detail:
        content: dict[str, Any] = detail
    else:
        content = error_response("HTTP_ERROR", str(detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


__all__ = ["app"]
