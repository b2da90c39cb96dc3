from __future__ import annotations

import logging
import time
from collections.abc import Awaitable
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from tenderchat.app.llm.gemini import build_gemini_client, extract_reply_text
from tenderchat.app.observability.service import (
    create_trace,
    emit_relay_event,
    new_request_id,
)
from tenderchat.app.relay.contracts import ChatRequest, RelayResponse
from tenderchat.app.relay.errors import (
    ConfigurationError,
    InvalidRequestError,
    MethodNotAllowedError,
    RelayError,
    UpstreamHTTPError,
    UpstreamLogicalError,
    UpstreamTimeoutError,
    UpstreamTransportError,
)
from tenderchat.app.relay.history import build_conversation_window
from tenderchat.app.relay.prompts import build_system_prompt
from tenderchat.core.config import AppConfig
from tenderchat.core.deadline import DeadlineExceededError, run_with_deadline

LOGGER = logging.getLogger(__name__)


@dataclass
class _RequestState:
    request_id: str
    stage: str = "received"
    user_type: str | None = None
    window_size: int = 0


class ChatRelay:
    """Stateless relay between the chat widget and the Gemini API.

    Every failure is turned into a JSON error envelope here; nothing raised
    while handling a request reaches the HTTP layer.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._logger = logger

    async def handle(self, *, method: str, payload: object) -> RelayResponse:
        started_at = time.perf_counter()
        state = _RequestState(request_id=new_request_id())
        retryable: bool | None = None
        try:
            response = await self._process(state, method, payload)
            outcome = "success"
        except RelayError as exc:
            LOGGER.warning(
                "Relay request failed",
                extra={
                    "request_id": state.request_id,
                    "stage": state.stage,
                    "outcome": exc.outcome,
                },
            )
            response = RelayResponse(status_code=exc.status_code, body=exc.envelope())
            outcome = exc.outcome
            retryable = exc.retryable
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception(
                "Error processing relay request",
                extra={"request_id": state.request_id, "stage": state.stage},
            )
            response = RelayResponse(
                status_code=500,
                body={
                    "error": "Failed to process request",
                    "details": str(exc) or "Unknown error",
                },
            )
            outcome = "unknown_error"
            retryable = True

        state.stage = "responded"
        emit_relay_event(
            create_trace(
                state.request_id,
                started_at,
                outcome=outcome,
                status_code=response.status_code,
                user_type=state.user_type,
                window_size=state.window_size,
                retryable=retryable,
            ),
            logger=self._logger,
        )
        return response

    async def _process(
        self,
        state: _RequestState,
        method: str,
        payload: object,
    ) -> RelayResponse:
        if method.upper() != "POST":
            raise MethodNotAllowedError()
        request = parse_chat_request(payload)
        state.stage = "validated"
        state.user_type = request.resolved_user_type().value

        if not self._config.gemini_api_key:
            LOGGER.error("Missing GEMINI_API_KEY environment variable")
            raise ConfigurationError()

        system_prompt = build_system_prompt(request.resolved_user_type())
        contents = build_conversation_window(
            system_prompt, request.messages, self._config.history_window
        )
        state.window_size = len(contents) - 1
        state.stage = "prompt-built"

        client = build_gemini_client(self._config, transport=self._transport)
        state.stage = "calling-upstream"
        LOGGER.info(
            "Calling Gemini API",
            extra={"request_id": state.request_id, "model": self._config.gemini_model},
        )
        upstream = await self._call_upstream(client.generate(contents))
        return _map_upstream_response(upstream)

    async def _call_upstream(
        self, call: Awaitable[httpx.Response]
    ) -> httpx.Response:
        deadline = self._config.upstream_timeout_seconds
        try:
            return await run_with_deadline(call, deadline)
        except DeadlineExceededError as exc:
            raise UpstreamTimeoutError() from exc
        except httpx.TimeoutException as exc:
            raise UpstreamTimeoutError() from exc
        except httpx.TransportError as exc:
            raise UpstreamTransportError(str(exc) or None) from exc


def parse_chat_request(payload: object) -> ChatRequest:
    if not isinstance(payload, dict):
        raise InvalidRequestError()
    try:
        return ChatRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidRequestError() from exc


def _map_upstream_response(upstream: httpx.Response) -> RelayResponse:
    LOGGER.info("Gemini API response status", extra={"status": upstream.status_code})
    if not upstream.is_success:
        LOGGER.error(
            "Gemini API HTTP error",
            extra={"status": upstream.status_code, "body": upstream.text[:500]},
        )
        raise UpstreamHTTPError(upstream.status_code, upstream.text)

    data = upstream.json()
    if isinstance(data, dict) and data.get("error"):
        error = data["error"]
        message = error.get("message") if isinstance(error, dict) else None
        raise UpstreamLogicalError(message if isinstance(message, str) else None)

    return RelayResponse(status_code=200, body={"message": extract_reply_text(data)})
