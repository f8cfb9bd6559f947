"""Tests for replay generation and chat examples with persisted states."""

import pytest

from tripreplay.core.errors import ConversationNotFound, ExampleNotFound
from tripreplay.core.replay_service import dump_states
from tripreplay.models.conversation import ExampleMetadata
from tripreplay.models.replay import ReplayConfig


class TestGenerateReplay:
    def test_two_step_scenario(self, service, ride_conversation) -> None:
        replay = service.generate_replay(ride_conversation)
        assert replay.conversation_id == ride_conversation
        assert replay.title == "Ride from A to B"
        assert replay.replay_config == ReplayConfig(delayMs=2000)

        first, second = replay.states
        assert first.state_snapshot.providers == []
        assert first.ui_hints.show_providers is False
        assert len(second.state_snapshot.providers) == 2
        assert second.ui_hints.show_providers is True
        assert len(second.ui_hints.new_data.providers) == 2

    def test_corrupt_event_does_not_block_replay(self, service, store, at) -> None:
        store.add_message("c", "user", "Find a ride from A to B", created_at=at(0))
        store.add_message("c", "assistant", "Looking...", created_at=at(5))
        store.add_tool_call("c", "find_providers", {"id": "fp", "created_at": at(5).isoformat(), "provider_data": "{oops"})

        states = service.build_states("c")
        assert len(states) == 2
        assert states[1].state_snapshot.providers == []

    def test_unknown_conversation_is_empty(self, service) -> None:
        replay = service.generate_replay("missing", ReplayConfig(autoAdvance=True))
        assert replay.states == []
        assert replay.title is None
        assert replay.replay_config.autoAdvance is True


class TestExamples:
    def test_saved_states_match_regenerated_states(self, service, ride_conversation) -> None:
        example, states = service.save_as_example(ride_conversation, ExampleMetadata(title="Ride demo", tags=["demo"]))

        assert example.conversation_id == ride_conversation
        assert example.replay_config == ReplayConfig.from_env()
        stored = service.example_states(example.id)
        assert dump_states(stored) == dump_states(states)
        assert dump_states(service.regenerate_states(example.id)) == dump_states(states)

    def test_regenerate_picks_up_new_messages(self, service, store, ride_conversation, at) -> None:
        example, _ = service.save_as_example(ride_conversation, ExampleMetadata(title="Ride demo"))
        store.add_message(ride_conversation, "user", "Thanks", created_at=at(9))

        assert len(service.example_states(example.id)) == 2
        assert len(service.regenerate_states(example.id)) == 3
        assert len(service.example_states(example.id)) == 3

    def test_create_example_has_no_states_until_regenerated(self, service, ride_conversation) -> None:
        example = service.create_example(ride_conversation, ExampleMetadata(title="Later"))
        assert example.replay_config is None
        assert service.example_states(example.id) == []

    def test_missing_records(self, service, store) -> None:
        with pytest.raises(ConversationNotFound):
            service.save_as_example("missing", ExampleMetadata(title="x"))
        with pytest.raises(ConversationNotFound):
            service.create_example("missing", ExampleMetadata(title="x"))
        with pytest.raises(ExampleNotFound):
            service.example_states("missing")
        with pytest.raises(ExampleNotFound):
            service.regenerate_states("missing")
