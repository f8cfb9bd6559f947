# Role: Chat-example management. Examples are curated conversations with frozen replay states that the
# front page plays back; states can be regenerated from the source conversation at any time.

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from tripreplay.api.deps import get_replay_service
from tripreplay.core.errors import ConversationNotFound, ExampleNotFound
from tripreplay.core.replay_service import ReplayService
from tripreplay.models.conversation import ChatExample, ExampleMetadata, ExampleUpdate
from tripreplay.models.replay import ConversationState

router = APIRouter(prefix="/chat-examples", tags=["chat-examples"])


class CreateExampleRequest(ExampleMetadata):
    conversation_id: str


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class ExampleList(BaseModel):
    data: List[ChatExample]
    pagination: Pagination


class ExampleWithStates(ChatExample):
    states: List[ConversationState]


def _require_example(service: ReplayService, example_id: str) -> ChatExample:
    example = service.store.get_example(example_id)
    if example is None:
        raise HTTPException(status_code=404, detail="Chat example not found")
    return example


@router.get("", response_model=ExampleList)
def list_examples(
    is_active: Optional[bool] = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    service: ReplayService = Depends(get_replay_service),
) -> ExampleList:
    examples, total = service.store.list_examples(is_active=is_active, limit=limit, offset=offset)
    return ExampleList(
        data=examples,
        pagination=Pagination(total=total, limit=limit, offset=offset, has_more=total > offset + limit),
    )


@router.post("", response_model=ChatExample, status_code=201)
def create_example(req: CreateExampleRequest, service: ReplayService = Depends(get_replay_service)) -> ChatExample:
    metadata = ExampleMetadata.model_validate(req.model_dump(exclude={"conversation_id"}))
    try:
        return service.create_example(req.conversation_id, metadata)
    except ConversationNotFound:
        raise HTTPException(status_code=404, detail="Conversation not found")


@router.get("/{example_id}", response_model=ChatExample)
def get_example(example_id: str, service: ReplayService = Depends(get_replay_service)) -> ChatExample:
    return _require_example(service, example_id)


@router.get("/{example_id}/with-states", response_model=ExampleWithStates)
def get_example_with_states(example_id: str, service: ReplayService = Depends(get_replay_service)) -> ExampleWithStates:
    example = _require_example(service, example_id)
    states = service.example_states(example_id)
    return ExampleWithStates(**example.model_dump(), states=states)


@router.put("/{example_id}", response_model=ChatExample)
def update_example(
    example_id: str, req: ExampleUpdate, service: ReplayService = Depends(get_replay_service)
) -> ChatExample:
    updated = service.store.update_example(example_id, req)
    if updated is None:
        raise HTTPException(status_code=404, detail="Chat example not found")
    return updated


@router.delete("/{example_id}")
def delete_example(example_id: str, service: ReplayService = Depends(get_replay_service)) -> dict:
    if not service.store.delete_example(example_id):
        raise HTTPException(status_code=404, detail="Chat example not found")
    return {"success": True, "deleted": example_id}


@router.post("/{example_id}/regenerate-states", response_model=ExampleWithStates)
def regenerate_states(example_id: str, service: ReplayService = Depends(get_replay_service)) -> ExampleWithStates:
    try:
        states = service.regenerate_states(example_id)
    except ExampleNotFound:
        raise HTTPException(status_code=404, detail="Chat example not found")
    except ConversationNotFound:
        raise HTTPException(status_code=404, detail="Source conversation no longer exists")
    example = _require_example(service, example_id)
    return ExampleWithStates(**example.model_dump(), states=states)
