# Role: Orchestrator for replay generation. Reads one conversation's messages and tool-call rows from the
# store, normalizes and reduces them, and manages chat examples whose replay states are persisted verbatim.

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import tripreplay.config as config
from tripreplay.core.conversation_store import ConversationStore
from tripreplay.core.errors import ConversationNotFound, ExampleNotFound
from tripreplay.core.normalizer import ToolCallNormalizer
from tripreplay.core.replay_reducer import ReplayReducer
from tripreplay.models.conversation import ChatExample, ExampleMetadata
from tripreplay.models.replay import ConversationReplay, ConversationState, ReplayConfig


def dump_states(states: List[ConversationState]) -> List[Dict[str, Any]]:
    return [s.model_dump(mode="json") for s in states]


class ReplayService:
    def __init__(
        self,
        store: Optional[ConversationStore] = None,
        normalizer: Optional[ToolCallNormalizer] = None,
        reducer: Optional[ReplayReducer] = None,
    ) -> None:
        # Key line: dependencies are injectable for testing.
        self.store = store or ConversationStore()
        self.normalizer = normalizer or ToolCallNormalizer()
        self.reducer = reducer or ReplayReducer()

    def build_states(self, conversation_id: str) -> List[ConversationState]:
        # 1) Messages ascending by created_at (empty/missing conversation -> empty replay)
        # 2) All tool-call rows -> one sorted event list
        # 3) Reduce into one state per message
        messages = self.store.list_messages(conversation_id)
        if not messages:
            return []

        normalized = self.normalizer.normalize(self.store.calls_by_kind(conversation_id))
        if config.DEBUG:
            print(
                f"REPLAY conversation={conversation_id} messages={len(messages)} "
                f"events={len(normalized.events)} issues={len(normalized.issues)}"
            )
        return self.reducer.reduce(messages, normalized.events)

    def generate_replay(self, conversation_id: str, replay_config: Optional[ReplayConfig] = None) -> ConversationReplay:
        conversation = self.store.get_conversation(conversation_id)
        return ConversationReplay(
            conversation_id=conversation_id,
            title=conversation.title if conversation else None,
            created_at=conversation.created_at if conversation else None,
            replay_config=replay_config or ReplayConfig.from_env(),
            states=self.build_states(conversation_id),
        )

    def save_as_example(self, conversation_id: str, metadata: ExampleMetadata) -> Tuple[ChatExample, List[ConversationState]]:
        if self.store.get_conversation(conversation_id) is None:
            raise ConversationNotFound(conversation_id)

        states = self.build_states(conversation_id)
        example = ChatExample(
            conversation_id=conversation_id,
            title=metadata.title,
            description=metadata.description,
            tags=list(metadata.tags),
            category=metadata.category or "general",
            is_active=metadata.is_active,
            replay_config=metadata.replay_config or ReplayConfig.from_env(),
        )
        self.store.save_example(example)
        self.store.set_example_states(example.id, dump_states(states))
        return example, states

    def create_example(self, conversation_id: str, metadata: ExampleMetadata) -> ChatExample:
        # Role: register an example without generating states (regenerate_states fills them later).
        if self.store.get_conversation(conversation_id) is None:
            raise ConversationNotFound(conversation_id)
        example = ChatExample(
            conversation_id=conversation_id,
            title=metadata.title,
            description=metadata.description,
            tags=list(metadata.tags),
            category=metadata.category or "general",
            is_active=metadata.is_active,
            replay_config=metadata.replay_config,
        )
        return self.store.save_example(example)

    def example_states(self, example_id: str) -> List[ConversationState]:
        if self.store.get_example(example_id) is None:
            raise ExampleNotFound(example_id)
        return [ConversationState.model_validate(raw) for raw in self.store.get_example_states(example_id)]

    def regenerate_states(self, example_id: str) -> List[ConversationState]:
        example = self.store.get_example(example_id)
        if example is None:
            raise ExampleNotFound(example_id)
        if self.store.get_conversation(example.conversation_id) is None:
            raise ConversationNotFound(example.conversation_id)

        states = self.build_states(example.conversation_id)
        self.store.set_example_states(example_id, dump_states(states))
        return states
