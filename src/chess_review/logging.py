"""Structured logging setup.

構造化ログ (structlog + JSON) の初期化をまとめる。リクエスト ID などの
コンテキストは ContextVar 経由で全ログに付与される。
"""

from typing import Any

import logging
import structlog
from structlog import contextvars as structlog_contextvars

from .config import settings


_CONTEXT_KEYS = ("request_id",)


def _merge_request_context(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Copy the bound request context into the event unless it was set explicitly."""

    context = structlog_contextvars.get_contextvars()
    for key in _CONTEXT_KEYS:
        if key in context and key not in event_dict:
            event_dict[key] = context[key]
    return event_dict


def configure_logging() -> None:
    """Configure structlog for application-wide logging.

    標準 logging をメッセージのみのフォーマットで初期化し、structlog で
    ISO タイムスタンプ付きの JSON を出力する。
    """
    # force=True で既存ハンドラ（uvicorn 等）を上書きして一貫化。
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(message)s",
        handlers=[logging.StreamHandler()],
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            _merge_request_context,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )

    # Optional: Sentry integration (enabled if DSN is provided)
    try:
        if settings.sentry_dsn:
            import sentry_sdk  # type: ignore
            from sentry_sdk.integrations.logging import LoggingIntegration  # type: ignore

            sentry_logging = LoggingIntegration(
                level=logging.INFO,
                event_level=logging.ERROR,
            )
            sentry_sdk.init(dsn=settings.sentry_dsn, integrations=[sentry_logging])
    except Exception as exc:
        # Sentry が未インストール/初期化失敗でもアプリは継続
        logging.getLogger(__name__).warning("sentry_init_failed: %r", exc)


logger = structlog.get_logger()
