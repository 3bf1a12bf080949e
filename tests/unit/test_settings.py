"""Unit tests for settings and database URL handling."""

from app.config import Settings, settings
from app.database import normalize_database_url


def test_fee_defaults():
    assert settings.FEE_GRACE_DAYS == 15
    assert settings.FEE_BILLING_INTERVAL_MONTHS == 1
    assert settings.FEE_DEFAULT_PAGE_SIZE == 20
    assert settings.IMPORT_PREVIEW_PAGE_SIZE == 10
    assert settings.PLACEHOLDER_TEXT == "N/A"


def test_origins_are_split():
    custom = Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        SECRET_KEY="x",
        ALLOWED_ORIGINS="https://a.example, https://b.example",
    )
    assert custom.ALLOWED_ORIGINS == ["https://a.example", "https://b.example"]


def test_postgres_url_uses_asyncpg_with_connect_timeout():
    url, connect_args = normalize_database_url("postgresql://u:p@db:5432/fees")
    assert url == "postgresql+asyncpg://u:p@db:5432/fees"
    assert connect_args["timeout"] == settings.DB_CONNECT_TIMEOUT


def test_sslmode_is_translated():
    url, connect_args = normalize_database_url("postgresql://u:p@db/fees?sslmode=require")
    assert "sslmode" not in url
    assert url.endswith("/fees")
    assert "ssl" in connect_args


def test_sqlite_url_untouched():
    assert normalize_database_url("sqlite+aiosqlite://") == ("sqlite+aiosqlite://", {})
