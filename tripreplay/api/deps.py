# Role: Process-wide wiring for the HTTP layer. One store + one replay service per app process;
# routers import these instead of constructing their own.

from tripreplay.core.conversation_store import ConversationStore
from tripreplay.core.replay_service import ReplayService

conversation_store = ConversationStore()
replay_service = ReplayService(store=conversation_store)


def get_replay_service() -> ReplayService:
    return replay_service
