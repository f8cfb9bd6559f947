# Role: Replay data contract. CumulativeState is the accumulator threaded through one replay pass;
# ConversationState pairs each message with a deep-copied snapshot of it plus the UI hints for that step.

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

import tripreplay.config as config
from tripreplay.models.message import Message
from tripreplay.models.provider import Place, Provider
from tripreplay.models.tool_call import ToolKind


class MapAction(str, Enum):
    SHOW_SERVICE_ZONES = "showServiceZones"
    ADD_PINGS = "addPings"
    FOCUS = "focus"


class ServiceZoneRef(BaseModel):
    provider_id: Optional[str] = None
    provider_name: Optional[str] = None
    service_zone: Any = None


class CumulativeState(BaseModel):
    providers: List[Provider] = Field(default_factory=list)
    addresses: List[Place] = Field(default_factory=list)
    source_address: Optional[str] = None
    destination_address: Optional[str] = None
    origin_coords: Optional[List[float]] = None
    destination_coords: Optional[List[float]] = None
    public_transit: Optional[Dict[str, Any]] = None
    provider_details: Dict[str, Any] = Field(default_factory=dict)
    service_zones: List[ServiceZoneRef] = Field(default_factory=list)

    def snapshot(self) -> "CumulativeState":
        # Key line: an independent structural copy, so later steps never rewrite earlier snapshots.
        return self.model_copy(deep=True)


class NewData(BaseModel):
    # Only the fields touched at one step are set; everything else stays None.
    providers: Optional[List[Provider]] = None
    source_address: Optional[str] = None
    destination_address: Optional[str] = None
    origin_coords: Optional[List[float]] = None
    destination_coords: Optional[List[float]] = None
    public_transit: Optional[Dict[str, Any]] = None
    addresses: Optional[List[Place]] = None
    provider_info: Optional[Dict[str, Any]] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class UIHints(BaseModel):
    show_providers: bool = False
    show_addresses: bool = False
    map_action: Optional[MapAction] = None
    highlight_tool: Optional[ToolKind] = None
    new_data: NewData = Field(default_factory=NewData)


class ConversationState(BaseModel):
    sequence_number: int
    message: Message
    state_snapshot: CumulativeState
    ui_hints: UIHints


class ReplayConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    autoAdvance: bool = False
    delayMs: int = Field(default=2000, ge=0)
    showTypewriter: bool = True
    highlightToolCalls: bool = True

    @classmethod
    def from_env(cls) -> "ReplayConfig":
        return cls(
            autoAdvance=config.REPLAY_AUTO_ADVANCE,
            delayMs=config.REPLAY_DELAY_MS,
            showTypewriter=config.REPLAY_SHOW_TYPEWRITER,
            highlightToolCalls=config.REPLAY_HIGHLIGHT_TOOLS,
        )


class ConversationReplay(BaseModel):
    conversation_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    replay_config: ReplayConfig = Field(default_factory=ReplayConfig)
    states: List[ConversationState] = Field(default_factory=list)
