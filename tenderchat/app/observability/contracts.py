from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RelayTrace:
    request_id: str
    outcome: str
    status_code: int
    user_type: str | None
    window_size: int
    latency_ms: int
    retryable: bool | None = None
