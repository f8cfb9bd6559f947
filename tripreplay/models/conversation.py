# Role: Conversation headers and saved chat examples. A ChatExample points at a source conversation and owns
# a frozen copy of that conversation's replay states (stored separately by the conversation store).

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from tripreplay.models.replay import ReplayConfig


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Conversation(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class ExampleMetadata(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    category: str = "general"
    is_active: bool = True
    replay_config: Optional[ReplayConfig] = None


class ExampleUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    category: Optional[str] = None
    is_active: Optional[bool] = None
    replay_config: Optional[ReplayConfig] = None


class ChatExample(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    conversation_id: str
    title: str
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    category: str = "general"
    is_active: bool = True
    replay_config: Optional[ReplayConfig] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: Optional[datetime] = None
