# Role: Thin HTTP adapter over the conversation log: create conversations, append messages and raw tool-call
# rows, and read tool calls back in normalized (timestamp-sorted) form.

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from tripreplay.api.deps import get_replay_service
from tripreplay.core.replay_service import ReplayService
from tripreplay.models.conversation import Conversation
from tripreplay.models.message import Message, Role
from tripreplay.models.tool_call import ToolKind

router = APIRouter(prefix="/conversations", tags=["conversations"])


class CreateConversationRequest(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None


class AddMessageRequest(BaseModel):
    role: Role
    content: str
    id: Optional[str] = None
    created_at: Optional[datetime] = None


class ToolCallsResponse(BaseModel):
    conversation_id: str
    tool_calls: List[Dict[str, Any]]
    issues: List[Dict[str, str]] = Field(default_factory=list)


@router.post("", response_model=Conversation, status_code=201)
def create_conversation(
    req: CreateConversationRequest, service: ReplayService = Depends(get_replay_service)
) -> Conversation:
    if req.id and service.store.get_conversation(req.id) is not None:
        raise HTTPException(status_code=409, detail="Conversation already exists")
    return service.store.create_conversation(title=req.title, conversation_id=req.id)


@router.get("/{conversation_id}", response_model=Conversation)
def get_conversation(conversation_id: str, service: ReplayService = Depends(get_replay_service)) -> Conversation:
    conversation = service.store.get_conversation(conversation_id)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


@router.get("/{conversation_id}/messages", response_model=List[Message])
def list_messages(conversation_id: str, service: ReplayService = Depends(get_replay_service)) -> List[Message]:
    return service.store.list_messages(conversation_id)


@router.post("/{conversation_id}/messages", response_model=Message, status_code=201)
def add_message(
    conversation_id: str, req: AddMessageRequest, service: ReplayService = Depends(get_replay_service)
) -> Message:
    return service.store.add_message(
        conversation_id,
        role=req.role,
        content=req.content,
        created_at=req.created_at,
        message_id=req.id,
    )


@router.post("/{conversation_id}/tool-calls/{kind}", status_code=201)
def add_tool_call(
    conversation_id: str,
    kind: ToolKind,
    record: Dict[str, Any],
    service: ReplayService = Depends(get_replay_service),
) -> Dict[str, Any]:
    # Key line: rows are stored raw; bad JSON inside them is tolerated until replay time.
    return service.store.add_tool_call(conversation_id, kind, record)


@router.get("/{conversation_id}/tool-calls", response_model=ToolCallsResponse)
def list_tool_calls(
    conversation_id: str,
    kind: Optional[ToolKind] = None,
    recent: Optional[int] = None,
    service: ReplayService = Depends(get_replay_service),
) -> ToolCallsResponse:
    # 1) Normalize every row of the conversation (optionally a single kind)
    # 2) `recent=N` keeps the N newest events, newest first
    if recent is not None and recent <= 0:
        raise HTTPException(status_code=400, detail="recent must be a positive integer")

    records = service.store.calls_by_kind(conversation_id)
    if kind is not None:
        records = {kind: records[kind]}

    result = service.normalizer.normalize(records)
    events = result.events
    if recent is not None:
        events = list(reversed(events))[:recent]

    return ToolCallsResponse(
        conversation_id=conversation_id,
        tool_calls=[e.model_dump(mode="json") for e in events],
        issues=[
            {"record_id": i.record_id, "kind": i.kind, "field": i.field, "error": i.error}
            for i in result.issues
        ],
    )
