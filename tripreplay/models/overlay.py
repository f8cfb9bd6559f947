# Role: Map overlay records. Pings are point markers, ServiceZones are GeoJSON polygons with precomputed bounds.
# Both are frozen: the overlay stores own them and replace instances on update instead of mutating them.

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tripreplay.utils.geo import Bounds


class PingType(str, Enum):
    ORIGIN = "origin"
    DESTINATION = "destination"
    PROVIDER = "provider"
    SEARCH_RESULT = "search_result"
    CUSTOM = "custom"


class ZoneType(str, Enum):
    PROVIDER = "provider"
    COVERAGE = "coverage"
    ELIGIBILITY = "eligibility"
    CUSTOM = "custom"


PING_CONFIGS: Dict[PingType, Dict[str, Any]] = {
    PingType.ORIGIN: {"color": "#10B981", "icon": "📍", "zIndex": 1000, "popup": True, "draggable": False},
    PingType.DESTINATION: {"color": "#EF4444", "icon": "🎯", "zIndex": 1000, "popup": True, "draggable": False},
    PingType.PROVIDER: {"color": "#3B82F6", "icon": "🚌", "zIndex": 900, "popup": True, "draggable": False},
    PingType.SEARCH_RESULT: {"color": "#8B5CF6", "icon": "📌", "zIndex": 800, "popup": True, "draggable": False},
    PingType.CUSTOM: {"color": "#6B7280", "icon": "📍", "zIndex": 700, "popup": True, "draggable": False},
}

ZONE_CONFIGS: Dict[ZoneType, Dict[str, Any]] = {
    ZoneType.PROVIDER: {
        "color": "#3B82F6", "weight": 2, "opacity": 0.8, "fillOpacity": 0.2,
        "dashArray": None, "zIndex": 400, "interactive": True, "popup": True,
    },
    ZoneType.COVERAGE: {
        "color": "#10B981", "weight": 2, "opacity": 0.7, "fillOpacity": 0.15,
        "dashArray": "5,5", "zIndex": 300, "interactive": True, "popup": True,
    },
    ZoneType.ELIGIBILITY: {
        "color": "#F59E0B", "weight": 2, "opacity": 0.6, "fillOpacity": 0.1,
        "dashArray": "10,5", "zIndex": 200, "interactive": True, "popup": True,
    },
    ZoneType.CUSTOM: {
        "color": "#6B7280", "weight": 2, "opacity": 0.5, "fillOpacity": 0.1,
        "dashArray": None, "zIndex": 100, "interactive": True, "popup": True,
    },
}

# Cycled per store for provider zones without an explicit color.
PROVIDER_COLORS: List[str] = [
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEEAD",
    "#D4A5A5", "#9B59B6", "#3498DB", "#E67E22", "#2ECC71",
    "#F39C12", "#E74C3C", "#8E44AD", "#1ABC9C", "#16A085",
    "#27AE60", "#D35400", "#C0392B", "#7F8C8D", "#34495E",
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Ping(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: PingType = PingType.CUSTOM
    coordinates: List[float]
    label: str = ""
    description: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    config: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_now)
    visible: bool = True


class ServiceZone(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: ZoneType = ZoneType.CUSTOM
    geo_json: Dict[str, Any]
    label: str = ""
    description: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    config: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_now)
    visible: bool = True
    bounds: Optional[Bounds] = None

    @property
    def provider_id(self) -> Optional[str]:
        value = self.metadata.get("provider_id")
        return str(value) if value is not None else None


class FocusRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    center: List[float]
    zoom: int
    padding: int = 20
    should_focus: bool = True
    focus_id: Optional[str] = None
