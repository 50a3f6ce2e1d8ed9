import pytest
from pydantic import ValidationError

from chess_review.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("REVIEW_DB_PATH", raising=False)
    monkeypatch.delenv("REVIEW_TIMEZONE", raising=False)
    settings = Settings(_env_file=None)
    assert settings.review_db_path == ".data/review.sqlite3"
    assert settings.review_timezone == "UTC"
    assert settings.sentry_dsn is None


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("REVIEW_DB_PATH", "/tmp/other.sqlite3")
    monkeypatch.setenv("REVIEW_TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("log_level", "debug")
    settings = Settings(_env_file=None)
    assert settings.review_db_path == "/tmp/other.sqlite3"
    assert settings.review_timezone == "Europe/Berlin"
    assert settings.log_level == "DEBUG"


def test_unknown_timezone_is_rejected(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("REVIEW_TIMEZONE", "Mars/Olympus_Mons")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
