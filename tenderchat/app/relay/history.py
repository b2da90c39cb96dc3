from __future__ import annotations

from collections.abc import Sequence

from tenderchat.app.relay.contracts import ChatMessage

UPSTREAM_ROLES = {"assistant": "model", "user": "user"}


def to_upstream_turn(role: str, text: str) -> dict[str, object]:
    return {"role": UPSTREAM_ROLES.get(role, "user"), "parts": [{"text": text}]}


def recent_window(messages: Sequence[ChatMessage], limit: int) -> list[ChatMessage]:
    if limit <= 0:
        return []
    return list(messages[-limit:])


def build_conversation_window(
    system_prompt: str,
    messages: Sequence[ChatMessage],
    limit: int,
) -> list[dict[str, object]]:
    """Return upstream ``contents``: the system prompt followed by the last ``limit`` turns."""
    window = recent_window(messages, limit)
    return [
        to_upstream_turn("user", system_prompt),
        *(to_upstream_turn(message.role, message.content) for message in window),
    ]
