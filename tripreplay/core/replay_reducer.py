# Role: Replay state reducer. Folds a timestamp-ordered message list and a timestamp-ordered tool-call event
# list into one ConversationState per message: a deep-copied snapshot of the cumulative state plus the UI hints
# (what to show, what map action to take, what is new at this step).

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set, Tuple

import tripreplay.config as config
from tripreplay.models.message import Message
from tripreplay.models.provider import Place, Provider
from tripreplay.models.replay import (
    ConversationState,
    CumulativeState,
    MapAction,
    NewData,
    ServiceZoneRef,
    UIHints,
)
from tripreplay.models.tool_call import (
    FindProvidersEvent,
    GetProviderInfoEvent,
    SearchAddressesEvent,
    ToolCallEvent,
    ToolKind,
)


def order_messages(messages: Sequence[Message]) -> List[Message]:
    # Key line: sorted() is stable, so equal created_at keeps insertion order.
    return sorted(messages, key=lambda m: m.created_at)


class ReplayReducer:
    def reduce(self, messages: Sequence[Message], events: Sequence[ToolCallEvent]) -> List[ConversationState]:
        # 1) Order messages and events by created_at
        # 2) For each message: apply every unprocessed event with created_at <= message.created_at
        # 3) Derive hints from the kinds applied at this step
        # 4) Emit (message, deep-copied snapshot, hints); step i+1 starts only after step i is emitted
        if not messages:
            return []

        ordered_messages = order_messages(messages)
        ordered_events = sorted(events, key=lambda e: e.created_at)

        state = CumulativeState()
        # Row ids are only unique within one tool-call table.
        processed: Set[Tuple[str, str]] = set()
        cursor = 0
        states: List[ConversationState] = []

        for idx, message in enumerate(ordered_messages):
            applicable: List[ToolCallEvent] = []
            # Events are sorted, so everything due for this message sits at the front of what's left.
            while cursor < len(ordered_events) and ordered_events[cursor].created_at <= message.created_at:
                event = ordered_events[cursor]
                cursor += 1
                key = (event.kind.value, event.id)
                if key in processed:
                    continue
                processed.add(key)
                applicable.append(event)

            new_data = NewData()
            for event in applicable:
                self.apply_event(state, event, new_data)

            hints = self.compute_hints(message, applicable, state, new_data)

            if config.DEBUG:
                print(
                    f"REPLAY step={idx + 1} role={message.role} "
                    f"applied={[e.kind.value for e in applicable]} "
                    f"map_action={hints.map_action.value if hints.map_action else None}"
                )

            states.append(
                ConversationState(
                    sequence_number=idx + 1,
                    message=message,
                    state_snapshot=state.snapshot(),
                    ui_hints=hints,
                )
            )

        return states

    def apply_event(self, state: CumulativeState, event: ToolCallEvent, new_data: Optional[NewData] = None) -> NewData:
        """Apply one event to `state` in place and record the increment it introduced in `new_data`."""
        increment = new_data if new_data is not None else NewData()

        if isinstance(event, FindProvidersEvent):
            self._apply_find_providers(state, event, increment)
        elif isinstance(event, SearchAddressesEvent):
            self._apply_search_addresses(state, event, increment)
        elif isinstance(event, GetProviderInfoEvent):
            self._apply_provider_info(state, event, increment)
        else:
            raise TypeError(f"Unsupported tool call event: {type(event).__name__}")

        return increment

    def _apply_find_providers(self, state: CumulativeState, event: FindProvidersEvent, increment: NewData) -> None:
        payload = event.payload

        # Key line: upsert by provider id; providers are never dropped during one pass.
        _merge_providers(state.providers, payload.providers)
        increment.providers = (increment.providers or []) + [p.model_copy(deep=True) for p in payload.providers]

        for provider in payload.providers:
            if provider.service_zone is None:
                continue
            ref = ServiceZoneRef(
                provider_id=provider.key,
                provider_name=provider.name,
                service_zone=provider.service_zone,
            )
            _merge_zone_ref(state.service_zones, ref)

        if payload.source_address:
            state.source_address = payload.source_address
            increment.source_address = payload.source_address
        if payload.destination_address:
            state.destination_address = payload.destination_address
            increment.destination_address = payload.destination_address
        if payload.origin_coords:
            state.origin_coords = list(payload.origin_coords)
            increment.origin_coords = list(payload.origin_coords)
        if payload.destination_coords:
            state.destination_coords = list(payload.destination_coords)
            increment.destination_coords = list(payload.destination_coords)
        if payload.public_transit:
            state.public_transit = dict(payload.public_transit)
            increment.public_transit = dict(payload.public_transit)

    def _apply_search_addresses(self, state: CumulativeState, event: SearchAddressesEvent, increment: NewData) -> None:
        places = event.payload.places
        for place in places:
            if not _contains_place(state.addresses, place):
                state.addresses.append(place.model_copy(deep=True))
        increment.addresses = (increment.addresses or []) + [p.model_copy(deep=True) for p in places]

    def _apply_provider_info(self, state: CumulativeState, event: GetProviderInfoEvent, increment: NewData) -> None:
        payload = event.payload
        if payload.provider_id and payload.provider_info:
            state.provider_details[payload.provider_id] = dict(payload.provider_info)
            increment.provider_info = dict(payload.provider_info)

    def compute_hints(
        self,
        message: Message,
        applied: Sequence[ToolCallEvent],
        state: CumulativeState,
        new_data: NewData,
    ) -> UIHints:
        # Priority when several kinds land on one step: find_providers > search_addresses > get_provider_info.
        hints = UIHints(new_data=new_data)
        kinds = {event.kind for event in applied}
        # Key line: per-tool hints belong to assistant turns; other roles only carry new_data and FOCUS.
        if message.role == "assistant":
            if ToolKind.FIND_PROVIDERS in kinds:
                hints.show_providers = True
                hints.highlight_tool = ToolKind.FIND_PROVIDERS
                hints.map_action = MapAction.SHOW_SERVICE_ZONES

            if ToolKind.SEARCH_ADDRESSES in kinds:
                hints.show_addresses = True
                if hints.highlight_tool is None:
                    hints.highlight_tool = ToolKind.SEARCH_ADDRESSES
                if hints.map_action is None:
                    hints.map_action = MapAction.ADD_PINGS

            if ToolKind.GET_PROVIDER_INFO in kinds and hints.highlight_tool is None:
                hints.highlight_tool = ToolKind.GET_PROVIDER_INFO

        # Key line: once both ends of the trip are known, every otherwise-idle step re-frames the map.
        if state.source_address and state.destination_address and hints.map_action is None:
            hints.map_action = MapAction.FOCUS

        return hints


def _merge_providers(current: List[Provider], incoming: Sequence[Provider]) -> None:
    index: Dict[str, int] = {p.key: i for i, p in enumerate(current) if p.key is not None}
    for provider in incoming:
        copy = provider.model_copy(deep=True)
        key = provider.key
        if key is not None and key in index:
            current[index[key]] = copy
            continue
        if key is None and any(_same_record(copy, existing) for existing in current):
            continue
        current.append(copy)
        if key is not None:
            index[key] = len(current) - 1


def _merge_zone_ref(current: List[ServiceZoneRef], ref: ServiceZoneRef) -> None:
    for i, existing in enumerate(current):
        if ref.provider_id is not None and existing.provider_id == ref.provider_id:
            current[i] = ref
            return
        if ref.provider_id is None and _same_record(existing, ref):
            return
    current.append(ref)


def _same_record(a, b) -> bool:
    return a.model_dump(mode="json") == b.model_dump(mode="json")


def _contains_place(addresses: Sequence[Place], place: Place) -> bool:
    return any(_same_record(existing, place) for existing in addresses)
