from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from tenderchat.app.relay.contracts import UserType
from tenderchat.app.relay.prompts import greeting_for
from tenderchat.core.deadline import DeadlineExceededError, run_with_deadline

LOGGER = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"
CLIENT_TIMEOUT_SECONDS = 45.0
CONNECT_TIMEOUT_SECONDS = 10.0

TIMEOUT_MESSAGE = (
    "Your request timed out. The server might be experiencing high traffic."
)
NO_RESPONSE_MESSAGE = (
    "No response received from the server. Please check your internet connection."
)
GATEWAY_TIMEOUT_MESSAGE = (
    "The server took too long to respond. "
    "This might be due to high traffic or complex queries."
)
SERVER_ERROR_MESSAGE = (
    "There was a server error processing your request. Our team has been notified."
)
GENERIC_ERROR_MESSAGE = (
    "I'm having trouble connecting right now. Please try again later."
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Turn:
    role: str
    content: str
    timestamp: datetime = field(default_factory=_now)
    is_error: bool = False


class ChatBusyError(RuntimeError):
    pass


def error_message_for_status(status_code: int) -> str:
    if status_code == 504:
        return GATEWAY_TIMEOUT_MESSAGE
    if status_code == 500:
        return SERVER_ERROR_MESSAGE
    return GENERIC_ERROR_MESSAGE


def serialize_history(turns: list[Turn] | tuple[Turn, ...]) -> list[dict[str, str]]:
    return [
        {"role": turn.role, "content": turn.content}
        for turn in turns
        if not turn.is_error
    ]


class ChatSession:
    """In-memory conversation for one widget session.

    Turns are only ever appended, except that ``retry_last_failed`` drops the
    trailing error turns together with the user turn that produced them before
    resending that user text.
    """

    def __init__(
        self,
        *,
        api_base_url: str,
        user_type: UserType = UserType.CLIENT,
        timeout_seconds: float = CLIENT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_base_url = api_base_url.rstrip("/")
        self._user_type = user_type
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._turns: list[Turn] = [
            Turn(role="assistant", content=greeting_for(user_type))
        ]
        self._pending = False

    @property
    def user_type(self) -> UserType:
        return self._user_type

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def can_retry(self) -> bool:
        return bool(self._turns) and self._turns[-1].is_error

    async def send_turn(self, text: str) -> Turn | None:
        if not text.strip():
            return None
        if self._pending:
            raise ChatBusyError("A message is already being sent.")

        self._turns.append(Turn(role="user", content=text))
        self._pending = True
        try:
            reply = await self._request_reply()
        finally:
            self._pending = False
        self._turns.append(reply)
        return reply

    async def retry_last_failed(self) -> Turn | None:
        if self._pending:
            raise ChatBusyError("A message is already being sent.")
        if not self.can_retry:
            return None

        index = len(self._turns)
        while index > 0 and self._turns[index - 1].is_error:
            index -= 1
        if index == 0 or self._turns[index - 1].role != "user":
            return None

        failed_user_turn = self._turns[index - 1]
        del self._turns[index - 1 :]
        return await self.send_turn(failed_user_turn.content)

    async def _request_reply(self) -> Turn:
        payload = {
            "messages": serialize_history(self._turns),
            "userType": self._user_type.value,
        }
        try:
            response = await run_with_deadline(
                self._post(payload), self._timeout_seconds
            )
        except (DeadlineExceededError, httpx.TimeoutException):
            LOGGER.warning("Chat request timed out")
            return _error_turn(TIMEOUT_MESSAGE)
        except httpx.TransportError as exc:
            LOGGER.warning("No response received from relay", exc_info=exc)
            return _error_turn(NO_RESPONSE_MESSAGE)
        except httpx.HTTPError as exc:
            LOGGER.warning("Chat request failed", exc_info=exc)
            return _error_turn(GENERIC_ERROR_MESSAGE)

        if response.status_code != 200:
            LOGGER.warning(
                "Relay returned an error",
                extra={"status": response.status_code, "body": response.text[:500]},
            )
            return _error_turn(error_message_for_status(response.status_code))

        try:
            body = response.json()
        except ValueError:
            body = None
        message = body.get("message") if isinstance(body, dict) else None
        if not isinstance(message, str):
            LOGGER.warning("Relay response is missing a message")
            return _error_turn(GENERIC_ERROR_MESSAGE)
        return Turn(role="assistant", content=message)

    async def _post(self, payload: dict[str, object]) -> httpx.Response:
        timeout = httpx.Timeout(None, connect=CONNECT_TIMEOUT_SECONDS)
        async with httpx.AsyncClient(
            timeout=timeout, transport=self._transport
        ) as client:
            return await client.post(f"{self._api_base_url}{CHAT_PATH}", json=payload)


def _error_turn(message: str) -> Turn:
    return Turn(role="assistant", content=message, is_error=True)
