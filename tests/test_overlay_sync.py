"""Tests for drawing replay increments and live tool events onto the overlay stores."""

from typing import Dict, List

import pytest

from tripreplay.core.overlay_sync import OverlaySync
from tripreplay.models.overlay import PingType
from tripreplay.models.provider import Provider
from tripreplay.models.replay import MapAction, NewData
from tripreplay.tools.geocode_client import GeocodeResult


class FakeGeocoder:
    def __init__(self, known: Dict[str, List[float]]) -> None:
        self.known = known
        self.queries: List[str] = []

    def geocode(self, address: str) -> GeocodeResult:
        self.queries.append(address)
        coords = self.known.get(address)
        if coords is None:
            return GeocodeResult(ok=False, error="not found")
        return GeocodeResult(ok=True, coordinates=coords, formatted_address=address)


@pytest.fixture
def sync() -> OverlaySync:
    return OverlaySync()


class TestReplayPath:
    def test_two_step_replay_draws_zones_on_second_step(self, sync, service, ride_conversation) -> None:
        first, second = service.build_states(ride_conversation)

        sync.apply_state(first)
        assert sync.zones.count == 0
        assert sync.zones.focus.version == 0

        sync.apply_state(second)
        assert [z.label for z in sync.zones.zones] == ["Dial-a-Ride", "County Shuttle"]
        assert sync.zones.focus.current.center == [1.5, 1.5]
        assert sync.zones.focus.current.zoom == 8
        assert len(sync.state.providers) == 2

    def test_running_state_is_a_copy_of_the_snapshot(self, sync, service, ride_conversation) -> None:
        states = service.build_states(ride_conversation)
        sync.apply_state(states[1])
        sync.state.providers.clear()
        assert len(states[1].state_snapshot.providers) == 2

    def test_resent_providers_replace_their_zones(self, sync, service, ride_conversation) -> None:
        states = service.build_states(ride_conversation)
        sync.apply_state(states[1])
        sync.apply_state(states[1])
        assert sync.zones.count == 2

    def test_malformed_resent_zone_keeps_the_earlier_one(self, sync, polygon) -> None:
        sync.apply(NewData(providers=[Provider(id="1", service_zone=polygon(0, 0))]), None)
        assert sync.zones.count == 1

        malformed = {"type": "Polygon", "coordinates": [[["x", "y"]]]}
        sync.apply(
            NewData(providers=[Provider(id="1", service_zone=malformed), Provider(id="2", service_zone=malformed)]),
            None,
        )
        assert [z.provider_id for z in sync.zones.zones] == ["1"]
        assert sync.zones.zones[0].bounds == [[0, 0], [1, 1]]

    def test_endpoints_from_coordinates(self, sync) -> None:
        sync.apply(
            NewData(source_address="A", destination_address="B", origin_coords=[1, 1], destination_coords=[2, 2]),
            MapAction.FOCUS,
        )
        origin = sync.pings.get_pings_by_type(PingType.ORIGIN)
        destination = sync.pings.get_pings_by_type(PingType.DESTINATION)
        assert [(p.label, p.coordinates) for p in origin] == [("A", [1.0, 1.0])]
        assert [(p.label, p.coordinates) for p in destination] == [("B", [2.0, 2.0])]
        assert sync.pings.focus.current.center == [1.5, 1.5]

    def test_new_origin_replaces_old_one(self, sync) -> None:
        sync.apply(NewData(origin_coords=[1, 1]), None)
        sync.apply(NewData(origin_coords=[3, 3]), None)
        assert [p.coordinates for p in sync.pings.get_pings_by_type(PingType.ORIGIN)] == [[3.0, 3.0]]

    def test_addresses_geocoded_when_coordinates_missing(self) -> None:
        geocoder = FakeGeocoder({"A": [10, 10]})
        sync = OverlaySync(geocoder=geocoder)
        sync.apply(NewData(source_address="A", destination_address="Nowhere"), MapAction.FOCUS)
        assert geocoder.queries == ["A", "Nowhere"]
        assert sync.pings.count == 1
        assert sync.pings.pings[0].type == PingType.ORIGIN

    def test_without_geocoder_unresolved_addresses_are_skipped(self, sync) -> None:
        sync.apply(NewData(source_address="A", destination_address="B"), MapAction.FOCUS)
        assert sync.pings.count == 0
        assert sync.pings.focus.version == 0


class TestLivePath:
    def test_search_results_become_pings(self, sync, search_event) -> None:
        places = [
            {"name": "Clinic", "coordinates": [1, 1]},
            {"name": "Library", "geometry": {"location": {"lat": 3, "lng": 1}}},
            {"name": "Nowhere"},
        ]
        hints = sync.apply_tool_event(search_event("s", 1, places))

        assert hints.map_action == MapAction.ADD_PINGS
        assert hints.show_addresses is True
        results = sync.pings.get_pings_by_type(PingType.SEARCH_RESULT)
        assert [p.label for p in results] == ["Clinic", "Library"]
        assert sync.pings.focus.current.center == [2.0, 1.0]
        assert len(sync.state.addresses) == 3

    def test_live_and_replay_draw_the_same_zones(self, service, ride_conversation) -> None:
        replayed = OverlaySync()
        for state in service.build_states(ride_conversation):
            replayed.apply_state(state)

        live = OverlaySync()
        records = service.store.calls_by_kind(ride_conversation)
        for event in service.normalizer.normalize(records).events:
            live.apply_tool_event(event)

        def drawn(sync: OverlaySync):
            return [(z.label, z.bounds, z.config["color"]) for z in sync.zones.zones]

        assert drawn(live) == drawn(replayed)
        assert live.zones.focus.current == replayed.zones.focus.current

    def test_reset_clears_everything(self, sync, find_event, provider, polygon) -> None:
        sync.apply_tool_event(find_event("f", 1, providers=[provider(1, "One", polygon(0, 0))], origin_coords=[1, 1]))
        sync.reset()
        assert sync.zones.count == 0
        assert sync.pings.count == 0
        assert sync.state.providers == []
        assert sync.zones.focus.current.should_focus is False
