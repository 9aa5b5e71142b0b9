"""
Conversation history: list, open and delete an owner's conversations.
"""

from __future__ import annotations

import logging

from voxbench.errors import Forbidden, NotFound
from voxbench.session import ConversationSession
from voxbench.storage.models import ConversationSummary, Message
from voxbench.storage.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)


class HistoryBrowser:
    """
    Browses one owner's past conversations. When given the live session,
    opening re-points it and deleting the active conversation resets it.
    """

    def __init__(self, store: SQLiteStore, session: ConversationSession | None = None):
        self.store = store
        self.session = session

    def list(self, owner_id: str, limit: int | None = None) -> list[ConversationSummary]:
        """Newest first, only the owner's conversations."""
        return self.store.list_conversations(owner_id, limit=limit)

    def open(self, owner_id: str, conversation_id: str) -> list[Message]:
        """Switch the session to a conversation, or just read it if no session."""
        if self.session is not None and self.session.owner_id == owner_id:
            return self.session.switch_to(conversation_id)
        if self.store.get_conversation(owner_id, conversation_id) is None:
            raise NotFound(f"Conversation {conversation_id} not found")
        return self.store.get_messages(owner_id, conversation_id)

    def delete(self, owner_id: str, conversation_id: str):
        """
        Delete an owned conversation and its messages.
        Raises NotFound if it doesn't exist, Forbidden if someone else owns it.
        """
        if not self.store.delete_conversation(owner_id, conversation_id):
            if self.store.conversation_exists(conversation_id):
                logger.warning("Owner %s tried to delete conversation %s", owner_id, conversation_id)
                raise Forbidden(f"Conversation {conversation_id} belongs to another user")
            raise NotFound(f"Conversation {conversation_id} not found")

        if self.session is not None and self.session.conversation_id == conversation_id:
            self.session.start_new()
