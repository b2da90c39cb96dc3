import asyncio
import json

import httpx
import pytest

from tenderchat.app.relay.contracts import UserType
from tenderchat.app.relay.prompts import COMPANY_GREETING
from tenderchat.client.session import (
    GATEWAY_TIMEOUT_MESSAGE,
    GENERIC_ERROR_MESSAGE,
    NO_RESPONSE_MESSAGE,
    SERVER_ERROR_MESSAGE,
    TIMEOUT_MESSAGE,
    ChatBusyError,
    ChatSession,
    error_message_for_status,
)


class _ScriptedRelay:
    def __init__(self, responses: list[httpx.Response]) -> None:
        self._responses = list(responses)
        self.payloads: list[dict[str, object]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/chat"
        self.payloads.append(json.loads(request.content))
        return self._responses.pop(0)


def _session(relay, **kwargs: object) -> ChatSession:
    return ChatSession(
        api_base_url="http://relay.test/",
        transport=httpx.MockTransport(relay),
        **kwargs,
    )


def test_session_starts_with_greeting_for_user_type() -> None:
    session = ChatSession(api_base_url="http://relay.test", user_type=UserType.COMPANY)

    assert [turn.content for turn in session.turns] == [COMPANY_GREETING]
    assert session.turns[0].role == "assistant"
    assert not session.pending


@pytest.mark.asyncio
async def test_send_turn_appends_user_and_assistant_turns() -> None:
    relay = _ScriptedRelay([httpx.Response(200, json={"message": "Here are tenders."})])
    session = _session(relay)

    reply = await session.send_turn("Show open tenders")

    assert reply is not None
    assert reply.content == "Here are tenders."
    assert not reply.is_error
    assert [turn.role for turn in session.turns] == ["assistant", "user", "assistant"]
    assert relay.payloads[0]["userType"] == "client"
    assert relay.payloads[0]["messages"][-1] == {
        "role": "user",
        "content": "Show open tenders",
    }
    assert not session.pending


@pytest.mark.asyncio
async def test_send_turn_ignores_blank_input() -> None:
    relay = _ScriptedRelay([])
    session = _session(relay)

    assert await session.send_turn("   ") is None
    assert len(session.turns) == 1
    assert relay.payloads == []


@pytest.mark.asyncio
async def test_send_turn_records_flagged_error_turn() -> None:
    relay = _ScriptedRelay([httpx.Response(504, json={"error": "Request timed out"})])
    session = _session(relay)

    reply = await session.send_turn("hello")

    assert reply is not None
    assert reply.is_error
    assert reply.content == GATEWAY_TIMEOUT_MESSAGE
    assert session.can_retry


@pytest.mark.asyncio
async def test_retry_resubmits_same_text_without_duplicating_turns() -> None:
    relay = _ScriptedRelay(
        [
            httpx.Response(500, json={"error": "Failed to process request"}),
            httpx.Response(200, json={"message": "Recovered."}),
        ]
    )
    session = _session(relay)
    await session.send_turn("Which bids close this week?")

    reply = await session.retry_last_failed()

    assert reply is not None
    assert reply.content == "Recovered."
    assert [turn.role for turn in session.turns] == ["assistant", "user", "assistant"]
    assert not any(turn.is_error for turn in session.turns)
    assert session.turns[1].content == "Which bids close this week?"
    assert relay.payloads[1]["messages"] == relay.payloads[0]["messages"]


@pytest.mark.asyncio
async def test_error_turns_are_not_sent_as_history() -> None:
    relay = _ScriptedRelay(
        [
            httpx.Response(502, json={"error": "AI service error"}),
            httpx.Response(200, json={"message": "ok"}),
        ]
    )
    session = _session(relay)
    await session.send_turn("first")

    await session.send_turn("second")

    contents = [item["content"] for item in relay.payloads[1]["messages"]]
    assert GENERIC_ERROR_MESSAGE not in contents
    assert contents[-2:] == ["first", "second"]


@pytest.mark.asyncio
async def test_retry_without_failure_is_a_no_op() -> None:
    relay = _ScriptedRelay([])
    session = _session(relay)

    assert await session.retry_last_failed() is None
    assert relay.payloads == []


@pytest.mark.asyncio
async def test_client_deadline_surfaces_timeout_turn() -> None:
    async def _slow_relay(request: httpx.Request) -> httpx.Response:
        _ = request
        await asyncio.sleep(10)
        return httpx.Response(200, json={"message": "late"})

    session = ChatSession(
        api_base_url="http://relay.test",
        timeout_seconds=0.05,
        transport=httpx.MockTransport(_slow_relay),
    )

    reply = await session.send_turn("hello")

    assert reply is not None
    assert reply.is_error
    assert reply.content == TIMEOUT_MESSAGE
    assert not session.pending


@pytest.mark.asyncio
async def test_transport_failure_surfaces_no_response_turn() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    session = ChatSession(
        api_base_url="http://relay.test", transport=httpx.MockTransport(_handler)
    )

    reply = await session.send_turn("hello")

    assert reply is not None
    assert reply.content == NO_RESPONSE_MESSAGE


@pytest.mark.asyncio
async def test_only_one_send_may_be_in_flight() -> None:
    release = asyncio.Event()

    async def _blocking_relay(request: httpx.Request) -> httpx.Response:
        _ = request
        await release.wait()
        return httpx.Response(200, json={"message": "done"})

    session = ChatSession(
        api_base_url="http://relay.test",
        transport=httpx.MockTransport(_blocking_relay),
    )
    first = asyncio.create_task(session.send_turn("first"))
    await asyncio.sleep(0.01)

    assert session.pending
    with pytest.raises(ChatBusyError):
        await session.send_turn("second")

    release.set()
    reply = await first
    assert reply is not None
    assert reply.content == "done"
    assert not session.pending


@pytest.mark.asyncio
async def test_success_without_message_is_treated_as_error() -> None:
    relay = _ScriptedRelay([httpx.Response(200, json={"unexpected": True})])
    session = _session(relay)

    reply = await session.send_turn("hello")

    assert reply is not None
    assert reply.is_error


def test_error_message_for_status_only_chooses_text() -> None:
    assert error_message_for_status(504) == GATEWAY_TIMEOUT_MESSAGE
    assert error_message_for_status(500) == SERVER_ERROR_MESSAGE
    assert error_message_for_status(400) == GENERIC_ERROR_MESSAGE
    assert error_message_for_status(502) == GENERIC_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_unexpected_http_error_still_leaves_a_retryable_error_turn() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.DecodingError("bad gzip", request=request)

    session = ChatSession(
        api_base_url="http://relay.test", transport=httpx.MockTransport(_handler)
    )

    reply = await session.send_turn("hello")

    assert reply is not None
    assert reply.is_error
    assert reply.content == GENERIC_ERROR_MESSAGE
    assert [turn.role for turn in session.turns] == ["assistant", "user", "assistant"]
    assert session.can_retry
    assert not session.pending
