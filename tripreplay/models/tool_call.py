# Role: Normalized tool-call events. Every stored tool-call row (three tables, three shapes) becomes one
# ToolCallEvent with a `kind` discriminant, so the replay reducer dispatches over a closed set of variants.

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from tripreplay.models.message import as_utc
from tripreplay.models.provider import Place, Provider


class ToolKind(str, Enum):
    FIND_PROVIDERS = "find_providers"
    SEARCH_ADDRESSES = "search_addresses"
    GET_PROVIDER_INFO = "get_provider_info"


class FindProvidersPayload(BaseModel):
    providers: List[Provider] = Field(default_factory=list)
    source_address: Optional[str] = None
    destination_address: Optional[str] = None
    origin_coords: Optional[List[float]] = None
    destination_coords: Optional[List[float]] = None
    public_transit: Optional[Dict[str, Any]] = None


class SearchAddressesPayload(BaseModel):
    query_text: Optional[str] = None
    places: List[Place] = Field(default_factory=list)


class GetProviderInfoPayload(BaseModel):
    provider_id: Optional[str] = None
    provider_info: Optional[Dict[str, Any]] = None

    @field_validator("provider_id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        # provider ids are integers in the info table and strings elsewhere.
        return None if value is None else str(value)


class _EventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime

    @field_validator("created_at", mode="after")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class FindProvidersEvent(_EventBase):
    kind: Literal[ToolKind.FIND_PROVIDERS] = ToolKind.FIND_PROVIDERS
    payload: FindProvidersPayload = Field(default_factory=FindProvidersPayload)


class SearchAddressesEvent(_EventBase):
    kind: Literal[ToolKind.SEARCH_ADDRESSES] = ToolKind.SEARCH_ADDRESSES
    payload: SearchAddressesPayload = Field(default_factory=SearchAddressesPayload)


class GetProviderInfoEvent(_EventBase):
    kind: Literal[ToolKind.GET_PROVIDER_INFO] = ToolKind.GET_PROVIDER_INFO
    payload: GetProviderInfoPayload = Field(default_factory=GetProviderInfoPayload)


ToolCallEvent = Annotated[
    Union[FindProvidersEvent, SearchAddressesEvent, GetProviderInfoEvent],
    Field(discriminator="kind"),
]

tool_call_event_adapter: TypeAdapter = TypeAdapter(ToolCallEvent)
