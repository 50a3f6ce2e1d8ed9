from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    環境変数から読み込まれるアプリ設定クラス。
    - review_db_path: ミスと復習セッションを保存する SQLite のパス
    - review_timezone: 「今日」を決める唯一の時計のタイムゾーン
    """

    environment: str = Field(
        default="development",
        description="Runtime environment / 実行環境",
    )

    # --- 復習スケジューラの永続化設定 ---
    review_db_path: str = Field(
        default=".data/review.sqlite3",
        description="Path to the review SQLite database / 復習用SQLite DBパス",
    )
    db_timeout_sec: float = Field(
        default=10.0,
        description="Seconds to wait for the SQLite write lock / 書き込みロック待ち秒数",
    )
    review_timezone: str = Field(
        default="UTC",
        description="IANA timezone used to decide 'today' / 日付判定に使うタイムゾーン",
    )

    # --- Observability ---
    log_level: str = Field(default="INFO", description="Root log level / ログレベル")
    sentry_dsn: str | None = Field(default=None, description="Sentry DSN (enable if set)")

    # - env_file: .env を読み込む
    # - extra: 未使用キーを無視
    # - case_sensitive: 環境変数キーの大小文字を区別しない
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("review_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        name = (value or "").strip() or "UTC"
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {value!r}") from exc
        return name

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return (value or "INFO").strip().upper()


settings = Settings()
