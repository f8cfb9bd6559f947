# Role: Single stored chat message. Conversations are ordered sequences of these (by created_at,
# ties by insertion order). Pydantic makes them easy to serialize into replay snapshots.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Role = Literal["user", "assistant", "system"]

# Older chat clients stored turns as "human" / "ai".
_ROLE_ALIASES = {"ai": "assistant", "human": "user"}


def as_utc(value: datetime) -> datetime:
    # Key line: naive timestamps are read as UTC so every created_at is comparable.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    role: Role
    content: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            return _ROLE_ALIASES.get(lowered, lowered)
        return value

    @field_validator("content", mode="before")
    @classmethod
    def _none_content(cls, value):
        return "" if value is None else value

    @field_validator("created_at", mode="after")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)
