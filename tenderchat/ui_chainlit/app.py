from __future__ import annotations

import os

import chainlit as cl

from tenderchat.app.relay.contracts import UserType
from tenderchat.client.session import ChatBusyError, ChatSession, Turn

API_BASE_URL = os.getenv("RELAY_API_URL", "http://localhost:8000").rstrip("/")
RETRY_ACTION_NAME = "retry_last_failed"

PROFILE_USER_TYPES = {
    "Company": UserType.COMPANY,
    "Client": UserType.CLIENT,
}


def _resolve_user_type(profile: object) -> UserType:
    if isinstance(profile, str):
        normalized = profile.strip().lower()
        for name, user_type in PROFILE_USER_TYPES.items():
            if name.lower() == normalized or user_type.value == normalized:
                return user_type
    return UserType.CLIENT


def _chat_session() -> ChatSession:
    session = cl.user_session.get("chat_session")
    if isinstance(session, ChatSession):
        return session
    session = ChatSession(
        api_base_url=API_BASE_URL,
        user_type=_resolve_user_type(cl.user_session.get("chat_profile")),
    )
    cl.user_session.set("chat_session", session)
    cl.user_session.set("error_messages", [])
    return session


def _retry_action() -> cl.Action:
    return cl.Action(name=RETRY_ACTION_NAME, payload={}, label="Retry")


async def _render_turn(turn: Turn) -> None:
    if not turn.is_error:
        await cl.Message(content=turn.content, author="Tender Assistant").send()
        return

    message = cl.Message(
        content=turn.content,
        author="Tender Assistant",
        actions=[_retry_action()],
    )
    await message.send()
    error_messages = cl.user_session.get("error_messages") or []
    error_messages.append(message)
    cl.user_session.set("error_messages", error_messages)


async def _clear_error_messages() -> None:
    error_messages = cl.user_session.get("error_messages") or []
    for message in error_messages:
        await message.remove()
    cl.user_session.set("error_messages", [])


@cl.set_chat_profiles
async def chat_profiles(current_user=None) -> list[cl.ChatProfile]:
    _ = current_user
    return [
        cl.ChatProfile(
            name="Company",
            markdown_description="Manage tender submissions, active bids and performance.",
        ),
        cl.ChatProfile(
            name="Client",
            markdown_description="Find construction tenders and prepare competitive bids.",
        ),
    ]


@cl.on_chat_start
async def on_chat_start() -> None:
    cl.user_session.set("chat_session", None)
    session = _chat_session()
    await cl.Message(
        content=session.turns[0].content, author="Tender Assistant"
    ).send()


@cl.on_message
async def on_message(message: cl.Message) -> None:
    session = _chat_session()
    try:
        reply = await session.send_turn(message.content)
    except ChatBusyError:
        await cl.Message(content="Please wait for the current reply.").send()
        return
    if reply is not None:
        await _render_turn(reply)


@cl.action_callback(RETRY_ACTION_NAME)
async def on_retry(action: cl.Action) -> None:
    _ = action
    session = _chat_session()
    if not session.can_retry:
        await cl.Message(content="There is no failed message to retry.").send()
        return
    await _clear_error_messages()
    try:
        reply = await session.retry_last_failed()
    except ChatBusyError:
        await cl.Message(content="Please wait for the current reply.").send()
        return
    if reply is not None:
        await _render_turn(reply)
