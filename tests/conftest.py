from __future__ import annotations

import pytest

RELAY_ENV_VARS = (
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_MODEL",
    "GEMINI_API_BASE_URL",
    "RELAY_UPSTREAM_TIMEOUT_SECONDS",
    "RELAY_HISTORY_WINDOW",
    "GEMINI_TEMPERATURE",
    "GEMINI_MAX_OUTPUT_TOKENS",
    "GEMINI_TOP_P",
    "GEMINI_TOP_K",
    "CORS_ALLOW_ORIGINS",
)


@pytest.fixture(autouse=True)
def clean_relay_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in RELAY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
