from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_UPSTREAM_TIMEOUT_SECONDS = 20.0
DEFAULT_HISTORY_WINDOW = 10


@dataclass(frozen=True)
class AppConfig:
    app_name: str
    app_version: str
    environment: str
    gemini_api_key: str | None
    gemini_model: str
    gemini_api_base_url: str
    upstream_timeout_seconds: float
    history_window: int
    temperature: float
    max_output_tokens: int
    top_p: float
    top_k: int
    cors_allow_origins: tuple[str, ...]


def _read_optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if not value:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _read_int_env(name: str, default: int) -> int:
    value = _read_optional_env(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_float_env(name: str, default: float, maximum: float | None = None) -> float:
    value = _read_optional_env(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    if parsed < 0:
        return default
    if maximum is not None and parsed > maximum:
        return maximum
    return parsed


def _read_csv_env(name: str) -> tuple[str, ...]:
    value = _read_optional_env(name)
    if value is None:
        return tuple()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def load_app_config() -> AppConfig:
    timeout_seconds = _read_float_env(
        "RELAY_UPSTREAM_TIMEOUT_SECONDS", default=DEFAULT_UPSTREAM_TIMEOUT_SECONDS
    )
    return AppConfig(
        app_name=os.getenv("APP_NAME", "Tender Chat Relay"),
        app_version=os.getenv("APP_VERSION", "0.1.0"),
        environment=os.getenv("APP_ENV", "development"),
        gemini_api_key=_read_optional_env("GEMINI_API_KEY")
        or _read_optional_env("GOOGLE_API_KEY"),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash").strip()
        or "gemini-2.5-flash",
        gemini_api_base_url=(
            _read_optional_env("GEMINI_API_BASE_URL") or DEFAULT_GEMINI_API_BASE_URL
        ).rstrip("/"),
        upstream_timeout_seconds=timeout_seconds or DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
        history_window=_read_int_env("RELAY_HISTORY_WINDOW", DEFAULT_HISTORY_WINDOW),
        temperature=_read_float_env("GEMINI_TEMPERATURE", default=0.7, maximum=2.0),
        max_output_tokens=_read_int_env("GEMINI_MAX_OUTPUT_TOKENS", default=800),
        top_p=_read_float_env("GEMINI_TOP_P", default=0.95, maximum=1.0),
        top_k=_read_int_env("GEMINI_TOP_K", default=40),
        cors_allow_origins=_read_csv_env("CORS_ALLOW_ORIGINS"),
    )
