"""Tests for merging per-kind tool-call rows into one ordered event list."""

import json

import pytest

from tripreplay.core.normalizer import ToolCallNormalizer
from tripreplay.models.tool_call import (
    FindProvidersEvent,
    GetProviderInfoEvent,
    SearchAddressesEvent,
    ToolKind,
)


@pytest.fixture
def normalizer() -> ToolCallNormalizer:
    return ToolCallNormalizer()


class TestOrdering:
    def test_merges_kinds_by_created_at(self, normalizer, at) -> None:
        records = {
            ToolKind.FIND_PROVIDERS: [{"id": "f1", "created_at": at(30).isoformat(), "provider_data": []}],
            ToolKind.SEARCH_ADDRESSES: [{"id": "s1", "created_at": at(10).isoformat(), "places_data": []}],
            ToolKind.GET_PROVIDER_INFO: [{"id": "g1", "created_at": at(20).isoformat(), "provider_id": 7}],
        }
        result = normalizer.normalize(records)
        assert [e.id for e in result.events] == ["s1", "g1", "f1"]
        assert result.issues == []

    def test_ties_keep_per_kind_order_then_kind_order(self, normalizer, at) -> None:
        same = at(5).isoformat()
        records = {
            ToolKind.SEARCH_ADDRESSES: [
                {"id": "s-b", "created_at": same},
                {"id": "s-a", "created_at": same},
            ],
            ToolKind.FIND_PROVIDERS: [{"id": "f", "created_at": same}],
        }
        result = normalizer.normalize(records)
        assert [(e.kind, e.id) for e in result.events] == [
            (ToolKind.FIND_PROVIDERS, "f"),
            (ToolKind.SEARCH_ADDRESSES, "s-b"),
            (ToolKind.SEARCH_ADDRESSES, "s-a"),
        ]

    def test_naive_timestamps_read_as_utc(self, normalizer, at) -> None:
        records = {
            ToolKind.SEARCH_ADDRESSES: [
                {"id": "naive", "created_at": "2024-05-01T12:00:10"},
                {"id": "aware", "created_at": at(5).isoformat()},
            ]
        }
        result = normalizer.normalize(records)
        assert [e.id for e in result.events] == ["aware", "naive"]
        assert all(e.created_at.tzinfo is not None for e in result.events)


class TestPayloadShapes:
    def test_find_providers_string_json_with_origin(self, normalizer, at, provider, polygon) -> None:
        row = {
            "id": 11,
            "created_at": at(0).isoformat(),
            "source_address": "A",
            "destination_address": "B",
            "provider_data": json.dumps(
                {
                    "data": [provider(1, "Dial-a-Ride", polygon(0, 0))],
                    "origin": {"lat": 37.1, "lng": -122.1},
                    "destination": [37.2, -122.2],
                }
            ),
            "public_transit_data": json.dumps({"routes": []}),
        }
        event = normalizer.normalize_record(ToolKind.FIND_PROVIDERS, row)
        assert isinstance(event, FindProvidersEvent)
        assert event.id == "11"
        payload = event.payload
        assert [p.name for p in payload.providers] == ["Dial-a-Ride"]
        assert payload.providers[0].key == "1"
        assert payload.providers[0].eligibility_requirements == ["senior"]
        assert payload.origin_coords == [37.1, -122.1]
        assert payload.destination_coords == [37.2, -122.2]
        assert payload.public_transit == {"routes": []}

    def test_search_addresses_places_wrapper(self, normalizer, at) -> None:
        row = {
            "id": "s",
            "created_at": at(0).isoformat(),
            "query_text": "clinic",
            "places_data": {
                "places": [
                    {"name": "Clinic", "formatted_address": "1 Main St", "geometry": {"location": {"lat": 1, "lng": 2}}},
                    "garbage",
                ]
            },
        }
        event = normalizer.normalize_record(ToolKind.SEARCH_ADDRESSES, row)
        assert isinstance(event, SearchAddressesEvent)
        assert len(event.payload.places) == 1
        assert event.payload.places[0].coordinates == [1.0, 2.0]

    def test_provider_info_id_is_string(self, normalizer, at) -> None:
        row = {"id": "g", "created_at": at(0).isoformat(), "provider_id": 42, "provider_info": '{"phone": "555"}'}
        event = normalizer.normalize_record(ToolKind.GET_PROVIDER_INFO, row)
        assert isinstance(event, GetProviderInfoEvent)
        assert event.payload.provider_id == "42"
        assert event.payload.provider_info == {"phone": "555"}


class TestCorruptRows:
    def test_unparseable_json_yields_empty_payload(self, normalizer, at) -> None:
        records = {
            ToolKind.FIND_PROVIDERS: [
                {"id": "bad", "created_at": at(1).isoformat(), "provider_data": "{not json"},
                {"id": "good", "created_at": at(2).isoformat(), "provider_data": "[]"},
            ]
        }
        result = normalizer.normalize(records)
        assert [e.id for e in result.events] == ["bad", "good"]
        assert result.events[0].payload.providers == []
        assert [(i.record_id, i.field) for i in result.issues] == [("bad", "provider_data")]

    def test_invalid_provider_fields_keep_row_with_empty_payload(self, normalizer, at) -> None:
        row = {"id": "x", "created_at": at(1).isoformat(), "provider_data": [{"provider_name": ["not", "a", "name"]}]}
        issues = []
        event = normalizer.normalize_record(ToolKind.FIND_PROVIDERS, row, issues)
        assert isinstance(event, FindProvidersEvent)
        assert event.payload.providers == []
        assert issues[0].field == "payload"

    @pytest.mark.parametrize(
        "row",
        [
            {"created_at": "2024-05-01T12:00:00Z"},
            {"id": "no-time"},
            {"id": "bad-time", "created_at": "yesterday-ish"},
        ],
    )
    def test_rows_without_usable_id_or_time_are_dropped(self, normalizer, row) -> None:
        result = normalizer.normalize({ToolKind.SEARCH_ADDRESSES: [row]})
        assert result.events == []
        assert len(result.issues) == 1
        assert result.issues[0].field == "created_at"
