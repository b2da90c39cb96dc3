from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserType(str, Enum):
    COMPANY = "company"
    CLIENT = "client"


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(min_length=1)
    user_type: str | None = Field(default=None, alias="userType")

    @field_validator("user_type", mode="before")
    @classmethod
    def _ignore_non_string_user_type(cls, value: object) -> object:
        return value if isinstance(value, str) else None

    def resolved_user_type(self) -> UserType:
        normalized = (self.user_type or "").strip().lower()
        if normalized == UserType.COMPANY.value:
            return UserType.COMPANY
        return UserType.CLIENT


@dataclass(frozen=True)
class RelayResponse:
    status_code: int
    body: dict[str, object] = field(default_factory=dict)
