from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from . import __version__
from .config import settings
from .logging import configure_logging, logger
from .middleware import AccessLogAndMetricsMiddleware, RequestIDMiddleware
from .routers import health, mistakes, review
from .srs import Clock, MistakeScheduler
from .store import ReviewSQLiteStore


def create_app(scheduler: Optional[MistakeScheduler] = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    ``scheduler`` を渡さない場合は設定値の DB パスとタイムゾーンで生成する。
    テストでは一時 DB と固定時計を持つスケジューラを注入する。
    """
    configure_logging()
    if scheduler is None:
        store = ReviewSQLiteStore(db_path=settings.review_db_path, timeout_sec=settings.db_timeout_sec)
        scheduler = MistakeScheduler(store, Clock(settings.review_timezone))
    logger.info(
        "app_init",
        environment=settings.environment,
        db_path=scheduler.store.db_path,
        timezone=str(scheduler.clock.tz),
    )

    app = FastAPI(title="Chess Mistake Review API", version=__version__)
    app.state.scheduler = scheduler

    # Starlette では後から追加したミドルウェアが外側で実行される。
    # RequestID (内側) で採番し、AccessLog (外側) で構造化ログとメトリクスを記録する。
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(AccessLogAndMetricsMiddleware)

    app.include_router(review.router, prefix="/api")
    app.include_router(mistakes.router, prefix="/api")
    app.include_router(health.router)
    return app


app = create_app()
