from callrelay import Settings
from callrelay.constants import (
    DEFAULT_ALLOWED_ORIGINS,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_PORT,
    DEFAULT_STORE_QUEUE_SIZE,
)

ENV_NAMES = [
    "ALLOWED_ORIGINS", "HISTORY_LIMIT", "PORT", "STORE_BACKEND",
    "STORE_QUEUE_SIZE", "STORE_RETRIES", "STORE_TIMEOUT_SECONDS", "LOG_LEVEL",
]


def clear_env(monkeypatch) -> None:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch) -> None:
    clear_env(monkeypatch)
    settings = Settings()
    assert settings.PORT == DEFAULT_PORT
    assert settings.ALLOWED_ORIGINS == DEFAULT_ALLOWED_ORIGINS
    assert settings.STORE_BACKEND == "memory"
    assert settings.HISTORY_LIMIT == DEFAULT_HISTORY_LIMIT
    assert settings.STORE_QUEUE_SIZE == DEFAULT_STORE_QUEUE_SIZE


def test_environment_overrides(monkeypatch) -> None:
    clear_env(monkeypatch)
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.test, http://b.test,")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("STORE_BACKEND", "REDIS")
    monkeypatch.setenv("STORE_TIMEOUT_SECONDS", "1.5")
    monkeypatch.setenv("STORE_QUEUE_SIZE", "50")
    settings = Settings()
    assert settings.ALLOWED_ORIGINS == ["http://a.test", "http://b.test"]
    assert settings.PORT == 9000
    assert settings.STORE_BACKEND == "redis"
    assert settings.STORE_TIMEOUT_SECONDS == 1.5
    assert settings.STORE_QUEUE_SIZE == 50


def test_invalid_values_fall_back(monkeypatch) -> None:
    clear_env(monkeypatch)
    monkeypatch.setenv("HISTORY_LIMIT", "lots")
    monkeypatch.setenv("STORE_BACKEND", "mongo")
    monkeypatch.setenv("STORE_RETRIES", "-3")
    monkeypatch.setenv("STORE_QUEUE_SIZE", "0")
    settings = Settings()
    assert settings.HISTORY_LIMIT == DEFAULT_HISTORY_LIMIT
    assert settings.STORE_BACKEND == "memory"
    assert settings.STORE_RETRIES == 0
    assert settings.STORE_QUEUE_SIZE == 1
