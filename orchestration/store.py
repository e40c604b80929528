"""
Conversation stores
Durable copies of conversations keyed by id within a fixed namespace. Stores
only ever see Conversation.to_dict(), so attached media is never written.
"""
from typing import Protocol

from supabase import Client

from config import settings
from utils import fetch_conversation_rows, get_logger, upsert_conversation_row
from .types import Conversation

logger = get_logger(__name__)


class ConversationStore(Protocol):

    def save(self, conversation: Conversation) -> None:
        ...

    def load_all(self) -> list[Conversation]:
        ...


class InMemoryConversationStore:
    """Keeps serialized records in a dict, one namespace per instance"""

    def __init__(self, namespace: str | None = None):
        self.namespace = namespace or settings.CONVERSATIONS_NAMESPACE
        self._records: dict[str, dict] = {}

    def save(self, conversation: Conversation) -> None:
        self._records[conversation.id] = conversation.to_dict()

    def load_all(self) -> list[Conversation]:
        return [Conversation.from_dict(record) for record in self._records.values()]

    def records(self) -> dict[str, dict]:
        """Raw persisted shape, as a durable backend would hold it"""
        return {key: dict(value) for key, value in self._records.items()}


class SupabaseConversationStore:
    """One row per conversation in a Supabase table, payload stored as JSON"""

    def __init__(self, client: Client, table: str | None = None, namespace: str | None = None):
        self.client = client
        self.table = table or settings.CONVERSATIONS_TABLE
        self.namespace = namespace or settings.CONVERSATIONS_NAMESPACE

    def save(self, conversation: Conversation) -> None:
        upsert_conversation_row(self.client, self.table, self.namespace, conversation.to_dict())

    def load_all(self) -> list[Conversation]:
        conversations = []
        for payload in fetch_conversation_rows(self.client, self.table, self.namespace):
            try:
                conversations.append(Conversation.from_dict(payload))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable stored conversation {payload.get('id')}: {e}")
        return conversations
