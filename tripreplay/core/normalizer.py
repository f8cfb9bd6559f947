# Role: Tool-call normalizer. Turns the per-kind stored rows of one conversation into a single
# timestamp-sorted list of ToolCallEvents. A corrupt row degrades to an empty payload (recorded as an issue)
# instead of blocking replay of the rest of the conversation.

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import ValidationError

import tripreplay.config as config
from tripreplay.core.errors import MalformedEventPayload
from tripreplay.models.tool_call import (
    FindProvidersEvent,
    FindProvidersPayload,
    GetProviderInfoEvent,
    GetProviderInfoPayload,
    SearchAddressesEvent,
    SearchAddressesPayload,
    ToolCallEvent,
    ToolKind,
)
from tripreplay.utils.geo import coerce_lat_lng

RawRecord = Mapping[str, Any]

_MISSING = object()


@dataclass(frozen=True)
class NormalizationResult:
    events: List[ToolCallEvent]
    issues: List[MalformedEventPayload] = field(default_factory=list)


class ToolCallNormalizer:
    def normalize(self, records_by_kind: Mapping[ToolKind, Iterable[RawRecord]]) -> NormalizationResult:
        # 1) Convert every row of every kind into an event (corrupt fields -> empty payload + issue)
        # 2) Stable-sort by created_at: ties keep per-kind order, kinds keep ToolKind order
        events: List[ToolCallEvent] = []
        issues: List[MalformedEventPayload] = []

        for kind in ToolKind:
            for record in records_by_kind.get(kind) or []:
                event = self.normalize_record(kind, record, issues)
                if event is not None:
                    events.append(event)

        events.sort(key=lambda e: e.created_at)

        if config.DEBUG and issues:
            print("\n--- TOOL CALL NORMALIZER ---")
            for issue in issues:
                print("MALFORMED PAYLOAD:", issue)
            print("----------------------------\n")

        return NormalizationResult(events=events, issues=issues)

    def normalize_record(
        self,
        kind: ToolKind,
        record: RawRecord,
        issues: Optional[List[MalformedEventPayload]] = None,
    ) -> Optional[ToolCallEvent]:
        # Role: one row -> one event. Rows without id/created_at cannot be ordered and are dropped.
        sink = issues if issues is not None else []
        record_id = record.get("id")
        created_at = record.get("created_at")
        if record_id is None or created_at is None:
            sink.append(MalformedEventPayload(str(record_id), kind.value, "created_at", "missing id or created_at"))
            return None

        record_id = str(record_id)

        try:
            if kind == ToolKind.FIND_PROVIDERS:
                payload = self._find_providers_payload(record_id, record, sink)
                return FindProvidersEvent(id=record_id, created_at=created_at, payload=payload)
            if kind == ToolKind.SEARCH_ADDRESSES:
                payload = self._search_addresses_payload(record_id, record, sink)
                return SearchAddressesEvent(id=record_id, created_at=created_at, payload=payload)
            payload = self._provider_info_payload(record_id, record, sink)
            return GetProviderInfoEvent(id=record_id, created_at=created_at, payload=payload)
        except ValidationError as e:
            # Key line: an unreadable timestamp drops the row; an unreadable payload keeps the row, empty.
            if any(err.get("loc", ())[:1] == ("created_at",) for err in e.errors()):
                sink.append(MalformedEventPayload(record_id, kind.value, "created_at", str(e)))
                return None
            sink.append(MalformedEventPayload(record_id, kind.value, "payload", str(e)))
            return self._empty_event(kind, record_id, created_at, sink)

    def _empty_event(
        self, kind: ToolKind, record_id: str, created_at: Any, sink: List[MalformedEventPayload]
    ) -> Optional[ToolCallEvent]:
        try:
            if kind == ToolKind.FIND_PROVIDERS:
                return FindProvidersEvent(id=record_id, created_at=created_at)
            if kind == ToolKind.SEARCH_ADDRESSES:
                return SearchAddressesEvent(id=record_id, created_at=created_at)
            return GetProviderInfoEvent(id=record_id, created_at=created_at)
        except ValidationError as e:
            sink.append(MalformedEventPayload(record_id, kind.value, "created_at", str(e)))
            return None

    def _decode(
        self, record_id: str, kind: ToolKind, record: RawRecord, name: str, sink: List[MalformedEventPayload]
    ) -> Any:
        # Role: JSON columns may arrive as strings; undecodable values become _MISSING.
        value = record.get(name)
        if not isinstance(value, str):
            return value
        if not value.strip():
            return None
        try:
            return json.loads(value)
        except ValueError as e:
            sink.append(MalformedEventPayload(record_id, kind.value, name, repr(e)))
            return _MISSING

    def _find_providers_payload(
        self, record_id: str, record: RawRecord, sink: List[MalformedEventPayload]
    ) -> FindProvidersPayload:
        kind = ToolKind.FIND_PROVIDERS
        provider_data = self._decode(record_id, kind, record, "provider_data", sink)
        transit = self._decode(record_id, kind, record, "public_transit_data", sink)

        providers, origin, destination = _split_provider_data(provider_data)

        return FindProvidersPayload(
            providers=providers,
            source_address=record.get("source_address") or None,
            destination_address=record.get("destination_address") or None,
            origin_coords=coerce_lat_lng(origin or record.get("source_coords")),
            destination_coords=coerce_lat_lng(destination or record.get("destination_coords")),
            public_transit=transit if isinstance(transit, dict) else None,
        )

    def _search_addresses_payload(
        self, record_id: str, record: RawRecord, sink: List[MalformedEventPayload]
    ) -> SearchAddressesPayload:
        places_data = self._decode(record_id, ToolKind.SEARCH_ADDRESSES, record, "places_data", sink)

        if isinstance(places_data, list):
            places = places_data
        elif isinstance(places_data, dict):
            places = places_data.get("places") or []
        else:
            places = []

        return SearchAddressesPayload(
            query_text=record.get("query_text"),
            places=[p for p in places if isinstance(p, dict)],
        )

    def _provider_info_payload(
        self, record_id: str, record: RawRecord, sink: List[MalformedEventPayload]
    ) -> GetProviderInfoPayload:
        info = self._decode(record_id, ToolKind.GET_PROVIDER_INFO, record, "provider_info", sink)
        return GetProviderInfoPayload(
            provider_id=record.get("provider_id"),
            provider_info=info if isinstance(info, dict) else None,
        )


def _split_provider_data(provider_data: Any) -> Tuple[List[Dict[str, Any]], Any, Any]:
    # provider_data is either [provider, ...] or {"data": [...], "origin": ..., "destination": ...}
    if isinstance(provider_data, list):
        return [p for p in provider_data if isinstance(p, dict)], None, None
    if isinstance(provider_data, dict):
        providers = provider_data.get("data") or []
        if not isinstance(providers, list):
            providers = []
        return (
            [p for p in providers if isinstance(p, dict)],
            provider_data.get("origin") or provider_data.get("source_coords"),
            provider_data.get("destination") or provider_data.get("destination_coords"),
        )
    return [], None, None
