from __future__ import annotations

import pytest

from lms.core.config import AppEnv, Settings, load_settings

_VARS = (
    "APP_ENV",
    "LOG_LEVEL",
    "LOG_JSON",
    "PORT",
    "STATUS_CACHE_TTL",
    "DATABASE_URL",
    "REDIS_URL",
    "DB_POOL_SIZE",
    "DB_MAX_OVERFLOW",
    "JWT_PUBLIC_KEY_FILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_load_settings_defaults() -> None:
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"
    assert settings.log_json is False
    assert settings.port == 8000
    assert settings.status_cache_ttl == 300
    assert settings.database_url is None
    assert settings.redis_url is None
    assert (settings.db_pool_size, settings.db_max_overflow) == (5, 10)
    assert settings.jwt_public_key_file is None


def test_load_settings_normalizes_case_and_whitespace(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "  PROD ")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "debug"


def test_load_settings_reads_storage_urls(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://lms@db/lms")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")
    settings = load_settings()
    assert settings.database_url == "postgresql+asyncpg://lms@db/lms"
    assert settings.redis_url == "redis://cache:6379/0"


def test_load_settings_reads_pool_and_key_file(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DB_POOL_SIZE", "20")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "0")
    monkeypatch.setenv("JWT_PUBLIC_KEY_FILE", "/run/secrets/idp.pem")
    settings = load_settings()
    assert (settings.db_pool_size, settings.db_max_overflow) == (20, 0)
    assert settings.jwt_public_key_file == "/run/secrets/idp.pem"


@pytest.mark.parametrize("raw", ["true", "1", "yes", "ON"])
def test_load_settings_log_json_truthy(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("LOG_JSON", raw)
    assert load_settings().log_json is True


def test_load_settings_rejects_bad_log_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_JSON", "sometimes")
    with pytest.raises(ValueError, match="LOG_JSON must be a boolean"):
        load_settings()


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("APP_ENV", "staging", "APP_ENV must be dev|test|prod"),
        ("APP_ENV", "", "APP_ENV must be dev|test|prod"),
        ("LOG_LEVEL", "verbose", "LOG_LEVEL must be debug|info|warning|error"),
        ("PORT", "eighty", "PORT must be an integer"),
        ("STATUS_CACHE_TTL", "soon", "STATUS_CACHE_TTL must be an integer"),
        ("STATUS_CACHE_TTL", "-1", "STATUS_CACHE_TTL must be >= 0"),
        ("DB_POOL_SIZE", "0", "DB_POOL_SIZE must be >= 1"),
        ("DB_MAX_OVERFLOW", "many", "DB_MAX_OVERFLOW must be an integer"),
    ],
)
def test_load_settings_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str, message: str
) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=message):
        load_settings()


def _make_settings(app_env: AppEnv = "dev") -> Settings:
    return Settings(  # type: ignore[arg-type]
        app_env=app_env,
        log_level="info",
        log_json=False,
        port=8000,
        database_url=None,
        redis_url=None,
    )


@pytest.mark.parametrize("env", ["dev", "test", "prod"])
def test_settings_env_flags(env: AppEnv) -> None:
    s = _make_settings(env)
    assert (s.is_dev, s.is_test, s.is_prod) == (env == "dev", env == "test", env == "prod")


def test_settings_is_frozen() -> None:
    s = _make_settings()
    with pytest.raises(AttributeError):
        s.status_cache_ttl = 0  # type: ignore[misc]
