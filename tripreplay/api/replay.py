# Role: Replay endpoints. GET builds the full replay for a conversation (empty states when there is nothing
# to replay); POST /save-as-example freezes the current replay into a chat example.

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from tripreplay.api.deps import get_replay_service
from tripreplay.core.errors import ConversationNotFound
from tripreplay.core.replay_service import ReplayService
from tripreplay.models.conversation import ExampleMetadata
from tripreplay.models.replay import ConversationReplay, ConversationState

router = APIRouter(prefix="/replay", tags=["replay"])


class SaveAsExampleRequest(ExampleMetadata):
    conversation_id: str


class ExampleWithStates(BaseModel):
    example: Dict[str, Any]
    states: List[ConversationState]


@router.get("", response_model=ConversationReplay)
def get_replay(
    conversation_id: Optional[str] = None, service: ReplayService = Depends(get_replay_service)
) -> ConversationReplay:
    if not conversation_id:
        raise HTTPException(status_code=400, detail="conversation_id query parameter required")
    return service.generate_replay(conversation_id)


@router.post("/save-as-example", response_model=ExampleWithStates, status_code=201)
def save_as_example(req: SaveAsExampleRequest, service: ReplayService = Depends(get_replay_service)) -> ExampleWithStates:
    metadata = ExampleMetadata.model_validate(req.model_dump(exclude={"conversation_id"}))
    try:
        example, states = service.save_as_example(req.conversation_id, metadata)
    except ConversationNotFound:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return ExampleWithStates(example=example.model_dump(mode="json"), states=states)
