# Role: Bridge from tool results to the map overlay. Live chat feeds tool-call events in as they arrive;
# the replay player feeds each ConversationState's new_data + map_action. Both go through apply(), so a
# conversation looks the same on the map whether it is live or replayed.

from __future__ import annotations

from typing import List, Optional, Sequence

import tripreplay.config as config
from tripreplay.core.errors import InvalidCoordinates
from tripreplay.core.ping_store import PingStore
from tripreplay.core.replay_reducer import ReplayReducer
from tripreplay.core.zone_store import ServiceZoneStore
from tripreplay.models.message import Message
from tripreplay.models.overlay import PingType, ZoneType
from tripreplay.models.provider import Place, Provider
from tripreplay.models.replay import ConversationState, CumulativeState, MapAction, NewData, UIHints
from tripreplay.models.tool_call import ToolCallEvent
from tripreplay.tools.geocode_client import GeocodeClient
from tripreplay.utils.geo import is_valid_lat_lng


class OverlaySync:
    def __init__(
        self,
        zone_store: Optional[ServiceZoneStore] = None,
        geocoder: Optional[GeocodeClient] = None,
        reducer: Optional[ReplayReducer] = None,
    ) -> None:
        # Key line: geocoding is optional; without it only already-resolved coordinates are drawn.
        self.zones = zone_store or ServiceZoneStore()
        self.pings: PingStore = self.zones.ping_store
        self.geocoder = geocoder
        self.reducer = reducer or ReplayReducer()
        self.state = CumulativeState()

    def reset(self) -> None:
        self.zones.clear_all()
        self.pings.clear_all()
        self.pings.reset_focus()
        self.state = CumulativeState()

    # ----------------------------
    # Entry points
    # ----------------------------
    def apply_tool_event(self, event: ToolCallEvent) -> UIHints:
        # Role: live path. Fold the event into the running state, derive hints exactly like a replay step would.
        new_data = NewData()
        self.reducer.apply_event(self.state, event, new_data)
        live_message = Message(
            id=f"live-{event.id}",
            role="assistant",
            created_at=event.created_at,
        )
        hints = self.reducer.compute_hints(live_message, [event], self.state, new_data)
        self.apply(hints.new_data, hints.map_action)
        return hints

    def apply_state(self, state: ConversationState) -> None:
        # Role: replay path. Snapshots replace the running state; only the increment is drawn.
        self.state = state.state_snapshot.snapshot()
        self.apply(state.ui_hints.new_data, state.ui_hints.map_action)

    def apply(self, new_data: NewData, map_action: Optional[MapAction]) -> None:
        # 1) Provider zones for re-sent providers are replaced, others stay
        # 2) Origin/destination pings are replaced; search results are appended
        # 3) The map action decides what to frame
        if new_data.providers:
            self._draw_provider_zones(new_data.providers)

        origin = new_data.origin_coords or self._resolve(new_data.source_address)
        destination = new_data.destination_coords or self._resolve(new_data.destination_address)
        if origin:
            self._replace_endpoint(PingType.ORIGIN, origin, new_data.source_address or "Origin")
        if destination:
            self._replace_endpoint(PingType.DESTINATION, destination, new_data.destination_address or "Destination")

        if new_data.addresses:
            self._draw_places(new_data.addresses)

        self._run_map_action(map_action)

    # ----------------------------
    # Drawing helpers
    # ----------------------------
    def _draw_provider_zones(self, providers: Sequence[Provider]) -> None:
        # Key line: a re-sent provider whose new zone is unusable keeps the zone already on the map.
        self.zones.replace_provider_zones(providers)

    def _resolve(self, address: Optional[str]) -> Optional[List[float]]:
        if not address or self.geocoder is None:
            return None
        result = self.geocoder.geocode(address)
        if not result.ok and config.DEBUG:
            print("OVERLAY_SYNC geocoding unavailable:", result.error)
        return result.coordinates

    def _replace_endpoint(self, ping_type: PingType, coords: List[float], label: str) -> None:
        if not is_valid_lat_lng(coords):
            return
        existing = self.pings.get_pings_by_type(ping_type)
        if existing and existing[0].coordinates == list(coords) and len(existing) == 1:
            return
        self.pings.remove_pings_by_type(ping_type)
        self.pings.add_ping({"type": ping_type, "coordinates": coords, "label": label}, focus=False)

    def _draw_places(self, places: Sequence[Place]) -> None:
        batch = []
        for place in places:
            if not is_valid_lat_lng(place.coordinates):
                continue
            batch.append(
                {
                    "type": PingType.SEARCH_RESULT,
                    "coordinates": place.coordinates,
                    "label": place.name or place.formatted_address or "Search result",
                    "description": place.formatted_address or "",
                    "metadata": {"place": place.model_dump(mode="json")},
                }
            )
        try:
            self.pings.add_pings(batch, focus=False)
        except InvalidCoordinates as e:
            if config.DEBUG:
                print("OVERLAY_SYNC skipped search results:", repr(e))

    def _run_map_action(self, map_action: Optional[MapAction]) -> None:
        if map_action == MapAction.SHOW_SERVICE_ZONES:
            if self.zones.provider_zones(visible_only=True):
                self.zones.focus_on_all_zones(ZoneType.PROVIDER)
            else:
                self.zones.focus_on_zones_and_pings()
        elif map_action == MapAction.ADD_PINGS:
            self.pings.focus_on_all_pings(PingType.SEARCH_RESULT)
        elif map_action == MapAction.FOCUS:
            self.zones.focus_on_zones_and_pings()
