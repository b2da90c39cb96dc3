from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict
from uuid import uuid4

from tenderchat.app.observability.contracts import RelayTrace


def new_request_id() -> str:
    return f"relay-{uuid4().hex[:10]}"


def create_trace(
    request_id: str,
    started_at: float,
    *,
    outcome: str,
    status_code: int,
    user_type: str | None = None,
    window_size: int = 0,
    retryable: bool | None = None,
) -> RelayTrace:
    elapsed_ms = int((time.perf_counter() - started_at) * 1000)
    return RelayTrace(
        request_id=request_id,
        outcome=outcome,
        status_code=status_code,
        user_type=user_type,
        window_size=window_size,
        latency_ms=max(elapsed_ms, 0),
        retryable=retryable,
    )


def emit_relay_event(
    trace: RelayTrace,
    logger: logging.Logger | None = None,
) -> None:
    active_logger = logger or logging.getLogger(__name__)
    level = logging.INFO if trace.status_code < 500 else logging.WARNING
    active_logger.log(
        level, "relay_event %s", json.dumps(asdict(trace), sort_keys=True)
    )
