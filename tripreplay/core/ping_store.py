# Role: Point-marker store (origin/destination/provider/search-result/custom pings).
# Owns Ping instances; callers only go through these operations. Every mutation swaps in a new list in one
# assignment, so a reader never sees a half-applied batch.

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence

import tripreplay.config as config
from tripreplay.core.errors import InvalidCoordinates
from tripreplay.core.focus import MapFocusController, focus_for_geometries, focus_for_point
from tripreplay.core.observable import Observable
from tripreplay.models.overlay import PING_CONFIGS, Ping, PingType
from tripreplay.utils.geo import validate_lat_lng


class PingStore(Observable):
    def __init__(self, focus: Optional[MapFocusController] = None) -> None:
        super().__init__()
        # Key line: the focus controller is shared with the zone store so both frame the same map.
        self.focus = focus or MapFocusController()
        self._pings: List[Ping] = []

    # ----------------------------
    # Construction
    # ----------------------------
    def _build_ping(self, ping_data: Mapping[str, Any]) -> Ping:
        ping_type = PingType(ping_data.get("type") or PingType.CUSTOM)
        coords = validate_lat_lng(ping_data.get("coordinates"))
        return Ping(
            id=str(uuid.uuid4()),
            type=ping_type,
            coordinates=coords,
            label=ping_data.get("label") or f"{ping_type.value} ping",
            description=ping_data.get("description") or "",
            metadata=dict(ping_data.get("metadata") or {}),
            config={**PING_CONFIGS[ping_type], **(ping_data.get("config") or {})},
        )

    def add_ping(self, ping_data: Mapping[str, Any], focus: bool = True) -> str:
        try:
            ping = self._build_ping(ping_data)
        except InvalidCoordinates as e:
            if config.DEBUG:
                print("PING_STORE rejected ping:", repr(e))
            raise

        self._pings = [*self._pings, ping]
        self._changed()

        if focus:
            self.focus_on_ping(ping.id)
        return ping.id

    def add_pings(self, pings_data: Sequence[Mapping[str, Any]], focus: bool = True) -> List[str]:
        # All-or-nothing: one bad coordinate rejects the whole batch before the store changes.
        new_pings = [self._build_ping(data) for data in pings_data]
        if not new_pings:
            return []

        self._pings = [*self._pings, *new_pings]
        self._changed()

        if focus:
            # Key line: frame exactly the points this batch added, not everything on the map.
            self.focus.request(focus_for_geometries(points=[p.coordinates for p in new_pings]))
        return [p.id for p in new_pings]

    # ----------------------------
    # Removal / update
    # ----------------------------
    def remove_ping(self, ping_id: str) -> bool:
        remaining = [p for p in self._pings if p.id != ping_id]
        removed = len(remaining) != len(self._pings)
        if removed:
            self._pings = remaining
            self._changed()
        return removed

    def remove_pings_by_type(self, ping_type: PingType) -> int:
        ping_type = PingType(ping_type)
        remaining = [p for p in self._pings if p.type != ping_type]
        removed = len(self._pings) - len(remaining)
        if removed:
            self._pings = remaining
            self._changed()
        return removed

    def clear_all(self) -> None:
        self._pings = []
        self._changed()

    def update_ping(self, ping_id: str, updates: Mapping[str, Any]) -> bool:
        # Role: replace fields on one ping; coordinates are re-validated, ids never change.
        changes: Dict[str, Any] = {k: v for k, v in updates.items() if k not in {"id", "created_at"}}
        unknown = set(changes) - set(Ping.model_fields)
        if unknown:
            raise ValueError(f"Unknown ping fields: {sorted(unknown)}")
        if "coordinates" in changes:
            changes["coordinates"] = validate_lat_lng(changes["coordinates"])

        updated = False
        result: List[Ping] = []
        for ping in self._pings:
            if ping.id == ping_id:
                # Key line: the merged record goes through validation; a bad value raises before the store changes.
                ping = Ping.model_validate({**ping.model_dump(), **changes})
                updated = True
            result.append(ping)

        if updated:
            self._pings = result
            self._changed()
        return updated

    def toggle_visibility(self, ping_id: str) -> bool:
        new_visibility = False
        found = False
        result: List[Ping] = []
        for ping in self._pings:
            if ping.id == ping_id:
                found = True
                new_visibility = not ping.visible
                ping = ping.model_copy(update={"visible": new_visibility})
            result.append(ping)
        if found:
            self._pings = result
            self._changed()
        return new_visibility

    # ----------------------------
    # Queries
    # ----------------------------
    @property
    def pings(self) -> List[Ping]:
        return list(self._pings)

    def get_ping(self, ping_id: str) -> Optional[Ping]:
        return next((p for p in self._pings if p.id == ping_id), None)

    def get_pings_by_type(self, ping_type: PingType) -> List[Ping]:
        ping_type = PingType(ping_type)
        return [p for p in self._pings if p.type == ping_type]

    def visible_pings(self) -> List[Ping]:
        return [p for p in self._pings if p.visible]

    def pings_by_type(self) -> Dict[PingType, List[Ping]]:
        return {t: [p for p in self._pings if p.type == t] for t in PingType}

    @property
    def count(self) -> int:
        return len(self._pings)

    @property
    def visible_count(self) -> int:
        return len(self.visible_pings())

    # ----------------------------
    # Focus
    # ----------------------------
    def focus_on_ping(self, ping_id: str, zoom: Optional[int] = None) -> None:
        ping = self.get_ping(ping_id)
        if ping is None:
            return
        self.focus.focus_on_point(ping.coordinates, zoom=zoom, focus_id=ping_id)

    def focus_on_all_pings(self, ping_type: Optional[PingType] = None, padding: int = 20) -> None:
        selected = [
            p for p in self._pings if p.visible and (ping_type is None or p.type == PingType(ping_type))
        ]
        if not selected:
            return
        if len(selected) == 1:
            self.focus.request(focus_for_point(selected[0].coordinates, padding, focus_id=selected[0].id))
            return
        self.focus.request(focus_for_geometries(points=[p.coordinates for p in selected], padding=padding))

    def focus_on_coordinates(self, coords: Sequence[float], zoom: int = 15) -> None:
        try:
            self.focus.focus_on_point(coords, zoom=zoom)
        except InvalidCoordinates:
            # Focus is advisory; an unusable point leaves the current view alone.
            return

    def reset_focus(self) -> None:
        self.focus.reset()
