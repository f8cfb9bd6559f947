"""Shared fixtures: fixed clock, message/event factories and GeoJSON builders."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import pytest

import tripreplay.config as config
from tripreplay.core.conversation_store import ConversationStore
from tripreplay.core.replay_service import ReplayService
from tripreplay.models.message import Message
from tripreplay.models.tool_call import (
    FindProvidersEvent,
    FindProvidersPayload,
    GetProviderInfoEvent,
    GetProviderInfoPayload,
    SearchAddressesEvent,
    SearchAddressesPayload,
)

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def quiet_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin runtime settings so a developer's .env never leaks into assertions."""
    monkeypatch.setattr(config, "DEBUG", False)
    monkeypatch.setattr(config, "REPLAY_AUTO_ADVANCE", False)
    monkeypatch.setattr(config, "REPLAY_DELAY_MS", 2000)
    monkeypatch.setattr(config, "REPLAY_SHOW_TYPEWRITER", True)
    monkeypatch.setattr(config, "REPLAY_HIGHLIGHT_TOOLS", True)
    monkeypatch.setattr(config, "GOOGLE_MAPS_API_KEY", None)


@pytest.fixture
def at() -> Callable[[float], datetime]:
    """Timestamp `seconds` after a fixed base time."""

    def _at(seconds: float) -> datetime:
        return BASE_TIME + timedelta(seconds=seconds)

    return _at


@pytest.fixture
def message(at: Callable[[float], datetime]) -> Callable[..., Message]:
    def _message(message_id: str, role: str, seconds: float, content: str = "") -> Message:
        return Message(id=message_id, role=role, content=content or f"{role} {message_id}", created_at=at(seconds))

    return _message


def square(lng: float, lat: float, size: float = 1.0) -> Dict[str, Any]:
    """Closed Polygon covering [lng, lng+size] x [lat, lat+size]."""
    return {
        "type": "Polygon",
        "coordinates": [
            [
                [lng, lat],
                [lng + size, lat],
                [lng + size, lat + size],
                [lng, lat + size],
                [lng, lat],
            ]
        ],
    }


@pytest.fixture
def polygon() -> Callable[..., Dict[str, Any]]:
    return square


def provider_row(provider_id: Any, name: str, zone: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "provider_id": provider_id,
        "provider_name": name,
        "provider_type": "paratransit",
        "eligibility_reqs": ["senior"],
        "service_zone": zone,
    }


@pytest.fixture
def provider() -> Callable[..., Dict[str, Any]]:
    return provider_row


@pytest.fixture
def find_event(at: Callable[[float], datetime]) -> Callable[..., FindProvidersEvent]:
    def _find(
        event_id: str,
        seconds: float,
        providers: Optional[List[Dict[str, Any]]] = None,
        source: Optional[str] = None,
        destination: Optional[str] = None,
        **extra: Any,
    ) -> FindProvidersEvent:
        payload = FindProvidersPayload(
            providers=providers or [],
            source_address=source,
            destination_address=destination,
            **extra,
        )
        return FindProvidersEvent(id=event_id, created_at=at(seconds), payload=payload)

    return _find


@pytest.fixture
def search_event(at: Callable[[float], datetime]) -> Callable[..., SearchAddressesEvent]:
    def _search(event_id: str, seconds: float, places: Optional[List[Dict[str, Any]]] = None) -> SearchAddressesEvent:
        payload = SearchAddressesPayload(query_text="clinic", places=places or [])
        return SearchAddressesEvent(id=event_id, created_at=at(seconds), payload=payload)

    return _search


@pytest.fixture
def info_event(at: Callable[[float], datetime]) -> Callable[..., GetProviderInfoEvent]:
    def _info(event_id: str, seconds: float, provider_id: str, info: Optional[Dict[str, Any]] = None) -> GetProviderInfoEvent:
        payload = GetProviderInfoPayload(provider_id=provider_id, provider_info=info or {"phone": "555-0100"})
        return GetProviderInfoEvent(id=event_id, created_at=at(seconds), payload=payload)

    return _info


@pytest.fixture
def store() -> ConversationStore:
    return ConversationStore()


@pytest.fixture
def service(store: ConversationStore) -> ReplayService:
    return ReplayService(store=store)


@pytest.fixture
def ride_conversation(store: ConversationStore, at: Callable[[float], datetime]) -> str:
    """One user turn at t=0, one assistant turn at t=5 with a find_providers row (two providers) at t=5."""
    conversation = store.create_conversation(title="Ride from A to B", conversation_id="conv-1")
    store.add_message(conversation.id, "user", "Find a ride from A to B", created_at=at(0), message_id="m1")
    store.add_message(conversation.id, "assistant", "Here are two providers.", created_at=at(5), message_id="m2")
    store.add_tool_call(
        conversation.id,
        "find_providers",
        {
            "id": "fp-1",
            "created_at": at(5).isoformat(),
            "source_address": "A",
            "destination_address": "B",
            "provider_data": [
                provider_row(1, "Dial-a-Ride", square(0, 0)),
                provider_row(2, "County Shuttle", square(2, 2)),
            ],
        },
    )
    return conversation.id
