# Role: Provider and Place records as they arrive from tool results. The persistence layer stores them with
# its own column names (provider_name, provider_type, eligibility_reqs, ...); aliases accept both spellings,
# and unknown columns are kept so snapshots carry the record through unchanged.

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from tripreplay.utils.geo import coerce_lat_lng


class Provider(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[Union[str, int]] = Field(default=None, validation_alias=AliasChoices("id", "provider_id"))
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "provider_name"))
    type: Optional[str] = Field(default=None, validation_alias=AliasChoices("type", "provider_type"))
    org: Optional[str] = Field(default=None, validation_alias=AliasChoices("org", "provider_org"))
    routing_type: Optional[str] = None
    eligibility_requirements: List[Any] = Field(
        default_factory=list,
        validation_alias=AliasChoices("eligibility_requirements", "eligibility_reqs"),
    )
    service_hours: Optional[Any] = None
    # Dict once resolved; a JSON string is kept as-is and parsed by the zone store.
    service_zone: Optional[Union[Dict[str, Any], str]] = None
    website: Optional[str] = None
    contacts: Optional[Any] = None

    @field_validator("eligibility_requirements", mode="before")
    @classmethod
    def _normalize_eligibility(cls, value):
        # 1) None -> []
        # 2) {"eligibility_reqs": [...]} wrapper -> inner list
        # 3) scalar -> [str(scalar)]
        if value is None:
            return []
        if isinstance(value, dict) and isinstance(value.get("eligibility_reqs"), list):
            return value["eligibility_reqs"]
        if not isinstance(value, list):
            return [str(value)]
        return value

    @property
    def key(self) -> Optional[str]:
        # Role: stable identity for merging; providers are compared as strings across tables.
        return str(self.id) if self.id is not None else None


class Place(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    formatted_address: Optional[str] = None
    coordinates: Optional[List[float]] = None

    @model_validator(mode="before")
    @classmethod
    def _derive_coordinates(cls, data):
        # Key line: Places results carry location in several shapes; normalize to [lat, lng].
        if not isinstance(data, dict):
            return data
        if data.get("coordinates") is not None:
            coords = coerce_lat_lng(data["coordinates"])
        else:
            coords = coerce_lat_lng(data)
        return {**data, "coordinates": coords}
