from .contracts import ChatMessage, ChatRequest, RelayResponse, UserType
from .errors import RelayError
from .service import ChatRelay, parse_chat_request

__all__ = [
    "ChatMessage",
    "ChatRelay",
    "ChatRequest",
    "RelayError",
    "RelayResponse",
    "UserType",
    "parse_chat_request",
]
