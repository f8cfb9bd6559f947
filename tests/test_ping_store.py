"""Tests for the point-marker store."""

import pytest

from tripreplay.core.errors import InvalidCoordinates
from tripreplay.core.ping_store import PingStore
from tripreplay.models.overlay import PING_CONFIGS, PingType


@pytest.fixture
def pings() -> PingStore:
    return PingStore()


class TestAddPing:
    def test_boundary_coordinates_are_accepted(self, pings) -> None:
        ping_id = pings.add_ping({"type": "origin", "coordinates": [90, 180], "label": "Home"})
        ping = pings.get_ping(ping_id)
        assert ping.coordinates == [90.0, 180.0]
        assert ping.type == PingType.ORIGIN
        assert ping.config["color"] == PING_CONFIGS[PingType.ORIGIN]["color"]
        assert pings.focus.current.center == [90.0, 180.0]
        assert pings.focus.current.focus_id == ping_id

    @pytest.mark.parametrize("coords", [[90.0001, 0], [0, -180.0001], ["a", 0], None])
    def test_out_of_range_is_rejected(self, pings, coords) -> None:
        with pytest.raises(InvalidCoordinates):
            pings.add_ping({"coordinates": coords})
        assert pings.count == 0
        assert pings.version == 0

    def test_defaults_and_config_override(self, pings) -> None:
        ping_id = pings.add_ping({"coordinates": [1, 2], "config": {"color": "#000000"}}, focus=False)
        ping = pings.get_ping(ping_id)
        assert ping.type == PingType.CUSTOM
        assert ping.label == "custom ping"
        assert ping.config["color"] == "#000000"
        assert ping.config["zIndex"] == PING_CONFIGS[PingType.CUSTOM]["zIndex"]
        assert pings.focus.version == 0


class TestAddPings:
    def test_batch_is_all_or_nothing(self, pings) -> None:
        with pytest.raises(InvalidCoordinates):
            pings.add_pings([{"coordinates": [1, 1]}, {"coordinates": [100, 0]}])
        assert pings.pings == []

    def test_batch_focuses_on_new_points_only(self, pings) -> None:
        pings.add_ping({"coordinates": [40, 40]}, focus=False)
        ids = pings.add_pings([{"coordinates": [0, 0]}, {"coordinates": [1, 1]}])
        assert len(ids) == 2
        assert pings.focus.current.center == [0.5, 0.5]
        assert pings.focus.current.zoom == 10

    def test_empty_batch(self, pings) -> None:
        assert pings.add_pings([]) == []
        assert pings.version == 0


class TestMutations:
    def test_remove_and_remove_by_type(self, pings) -> None:
        a = pings.add_ping({"type": "search_result", "coordinates": [1, 1]}, focus=False)
        pings.add_ping({"type": "search_result", "coordinates": [2, 2]}, focus=False)
        pings.add_ping({"type": "destination", "coordinates": [3, 3]}, focus=False)

        assert pings.remove_ping(a) is True
        assert pings.remove_ping(a) is False
        assert pings.remove_pings_by_type(PingType.SEARCH_RESULT) == 1
        assert [p.type for p in pings.pings] == [PingType.DESTINATION]

    def test_update_revalidates_coordinates(self, pings) -> None:
        ping_id = pings.add_ping({"coordinates": [1, 1]}, focus=False)
        with pytest.raises(InvalidCoordinates):
            pings.update_ping(ping_id, {"coordinates": [0, 200]})
        assert pings.update_ping(ping_id, {"coordinates": [2, 2], "label": "Moved", "id": "ignored"})
        ping = pings.get_ping(ping_id)
        assert (ping.coordinates, ping.label) == ([2.0, 2.0], "Moved")
        assert pings.update_ping("missing", {"label": "x"}) is False

    def test_update_validates_the_merged_record(self, pings) -> None:
        ping_id = pings.add_ping({"coordinates": [1, 1]}, focus=False)
        version = pings.version
        with pytest.raises(ValueError):
            pings.update_ping(ping_id, {"visible": "maybe"})
        with pytest.raises(ValueError):
            pings.update_ping(ping_id, {"colour": "red"})
        assert pings.get_ping(ping_id).visible is True
        assert pings.version == version

        assert pings.update_ping(ping_id, {"type": "destination"})
        assert pings.get_ping(ping_id).type == PingType.DESTINATION

    def test_toggle_visibility(self, pings) -> None:
        ping_id = pings.add_ping({"coordinates": [1, 1]}, focus=False)
        assert pings.toggle_visibility(ping_id) is False
        assert pings.visible_count == 0
        assert pings.count == 1
        assert pings.toggle_visibility(ping_id) is True

        version = pings.version
        assert pings.toggle_visibility("missing") is False
        assert pings.version == version

    def test_listeners_are_notified(self, pings) -> None:
        calls = []
        unsubscribe = pings.subscribe(lambda: calls.append(pings.count))
        pings.add_ping({"coordinates": [1, 1]}, focus=False)
        pings.clear_all()
        unsubscribe()
        pings.add_ping({"coordinates": [1, 1]}, focus=False)
        assert calls == [1, 0]


class TestFocus:
    def test_focus_on_all_skips_hidden(self, pings) -> None:
        keep = pings.add_ping({"coordinates": [0, 0]}, focus=False)
        hidden = pings.add_ping({"coordinates": [50, 50]}, focus=False)
        pings.toggle_visibility(hidden)
        pings.focus_on_all_pings()
        assert pings.focus.current.center == [0.0, 0.0]
        assert pings.focus.current.focus_id == keep

    def test_focus_on_type(self, pings) -> None:
        pings.add_ping({"type": "origin", "coordinates": [0, 0]}, focus=False)
        pings.add_ping({"type": "search_result", "coordinates": [10, 10]}, focus=False)
        pings.add_ping({"type": "search_result", "coordinates": [12, 10]}, focus=False)
        pings.focus_on_all_pings(PingType.SEARCH_RESULT)
        assert pings.focus.current.center == [11.0, 10.0]
        assert pings.focus.current.zoom == 9

    def test_focus_on_bad_coordinates_is_ignored(self, pings) -> None:
        pings.focus_on_coordinates([500, 0])
        assert pings.focus.version == 0
        pings.focus_on_coordinates([1, 1], zoom=11)
        assert pings.focus.current.zoom == 11
