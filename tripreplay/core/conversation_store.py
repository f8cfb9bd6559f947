# Role: In-memory conversation log. Owns conversations, their messages, the raw tool-call rows per kind,
# saved chat examples and each example's persisted replay states. Stands in for the relational tables.

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from tripreplay.models.conversation import ChatExample, Conversation, ExampleUpdate
from tripreplay.models.message import Message
from tripreplay.models.tool_call import ToolKind

# Table names used by conversation exports.
TOOL_CALL_TABLES: Dict[ToolKind, str] = {
    ToolKind.FIND_PROVIDERS: "find_providers_calls",
    ToolKind.SEARCH_ADDRESSES: "search_addresses_calls",
    ToolKind.GET_PROVIDER_INFO: "get_provider_info_calls",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ConversationStore:
    def __init__(self) -> None:
        self._conversations: Dict[str, Conversation] = {}
        self._messages: Dict[str, List[Message]] = {}
        self._tool_calls: Dict[str, Dict[ToolKind, List[Dict[str, Any]]]] = {}
        self._examples: Dict[str, ChatExample] = {}
        self._example_states: Dict[str, List[Dict[str, Any]]] = {}

    # ----------------------------
    # Conversations + messages
    # ----------------------------
    def create_conversation(self, title: Optional[str] = None, conversation_id: Optional[str] = None) -> Conversation:
        conversation = Conversation(title=title) if conversation_id is None else Conversation(id=conversation_id, title=title)
        self._conversations[conversation.id] = conversation
        self._messages.setdefault(conversation.id, [])
        self._tool_calls.setdefault(conversation.id, {kind: [] for kind in ToolKind})
        return conversation

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def get_or_create(self, conversation_id: str) -> Conversation:
        # Reuse existing conversation or initialize a fresh one.
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            conversation = self.create_conversation(conversation_id=conversation_id)
        return conversation

    def _touch(self, conversation_id: str) -> None:
        conversation = self._conversations[conversation_id]
        self._conversations[conversation_id] = conversation.model_copy(update={"updated_at": _now()})

    def add_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        created_at: Optional[Union[datetime, str]] = None,
        message_id: Optional[str] = None,
    ) -> Message:
        # 1) Append the message (ids and timestamps default to new values)
        # 2) Update the conversation's last-seen timestamp
        self.get_or_create(conversation_id)
        message = Message(
            id=message_id or str(uuid.uuid4()),
            role=role,
            content=content,
            created_at=created_at or _now(),
        )
        self._messages[conversation_id].append(message)
        self._touch(conversation_id)
        return message

    def list_messages(self, conversation_id: str) -> List[Message]:
        # Key line: stable sort keeps insertion order for equal timestamps.
        return sorted(self._messages.get(conversation_id, []), key=lambda m: m.created_at)

    # ----------------------------
    # Tool calls
    # ----------------------------
    def add_tool_call(self, conversation_id: str, kind: ToolKind, record: Mapping[str, Any]) -> Dict[str, Any]:
        # Role: store the row as-is (JSON columns may be strings); only id/created_at get defaults.
        self.get_or_create(conversation_id)
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", _now().isoformat())
        row["conversation_id"] = conversation_id
        self._tool_calls[conversation_id][ToolKind(kind)].append(row)
        self._touch(conversation_id)
        return dict(row)

    def list_calls(self, conversation_id: str, kind: ToolKind) -> List[Dict[str, Any]]:
        calls = self._tool_calls.get(conversation_id, {}).get(ToolKind(kind), [])
        return [dict(row) for row in calls]

    def calls_by_kind(self, conversation_id: str) -> Dict[ToolKind, List[Dict[str, Any]]]:
        return {kind: self.list_calls(conversation_id, kind) for kind in ToolKind}

    # ----------------------------
    # Chat examples
    # ----------------------------
    def save_example(self, example: ChatExample) -> ChatExample:
        self._examples[example.id] = example
        return example

    def get_example(self, example_id: str) -> Optional[ChatExample]:
        return self._examples.get(example_id)

    def list_examples(
        self, is_active: Optional[bool] = None, limit: int = 50, offset: int = 0
    ) -> Tuple[List[ChatExample], int]:
        # Newest first, like the examples table listing.
        examples = sorted(self._examples.values(), key=lambda e: e.created_at, reverse=True)
        if is_active is not None:
            examples = [e for e in examples if e.is_active == is_active]
        return examples[offset : offset + limit], len(examples)

    def update_example(self, example_id: str, updates: ExampleUpdate) -> Optional[ChatExample]:
        example = self._examples.get(example_id)
        if example is None:
            return None
        changes = updates.model_dump(exclude_unset=True)
        if "replay_config" in changes and updates.replay_config is not None:
            changes["replay_config"] = updates.replay_config
        changes["updated_at"] = _now()
        updated = example.model_copy(update=changes)
        self._examples[example_id] = updated
        return updated

    def delete_example(self, example_id: str) -> bool:
        # Key line: an example's stored states go with it.
        self._example_states.pop(example_id, None)
        return self._examples.pop(example_id, None) is not None

    def set_example_states(self, example_id: str, states: List[Dict[str, Any]]) -> None:
        self._example_states[example_id] = [dict(s) for s in states]

    def get_example_states(self, example_id: str) -> List[Dict[str, Any]]:
        return [dict(s) for s in self._example_states.get(example_id, [])]

    # ----------------------------
    # Exports
    # ----------------------------
    def load_export(self, data: Mapping[str, Any]) -> Conversation:
        """
        Load one conversation export:
        {"conversation": {...}, "messages": [...], "find_providers_calls": [...],
         "search_addresses_calls": [...], "get_provider_info_calls": [...]}
        """
        header = dict(data.get("conversation") or {})
        conversation = self.create_conversation(
            title=header.get("title"),
            conversation_id=str(header["id"]) if header.get("id") else None,
        )
        for raw in data.get("messages") or []:
            self.add_message(
                conversation.id,
                role=raw.get("role", "user"),
                content=raw.get("content") or "",
                created_at=raw.get("created_at"),
                message_id=str(raw["id"]) if raw.get("id") is not None else None,
            )
        for kind, table in TOOL_CALL_TABLES.items():
            for row in data.get(table) or []:
                self.add_tool_call(conversation.id, kind, row)
        return self._conversations[conversation.id]

    def load_export_file(self, path: Union[str, Path]) -> Conversation:
        with open(path, "r", encoding="utf-8") as f:
            return self.load_export(json.load(f))
