"""
Conversation state for one session.

Holds the active conversation id and its ordered message list. A
conversation is created lazily on the first exchange. After every write
the message list is re-read from the store, so what the session shows is
always what was persisted.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from voxbench.errors import NotFound, PartialExchangeError, PersistenceError
from voxbench.storage.models import Conversation, Message
from voxbench.storage.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)


def assistant_content(model: str) -> str:
    return f"AI response using {model}"


class ConversationSession:
    """Active conversation and its messages for a single owner."""

    def __init__(self, store: SQLiteStore, owner_id: str):
        self.store = store
        self.owner_id = owner_id
        self.conversation_id: str | None = None
        self.messages: list[Message] = []

    def ensure_conversation(self, model: str, language: str) -> str:
        """Return the active conversation id, creating one if none is active."""
        if self.conversation_id:
            return self.conversation_id

        conv = Conversation(user_id=self.owner_id, model_used=model, language=language)
        try:
            self.store.create_conversation(conv)
        except PersistenceError:
            logger.error("Failed to create conversation for %s", self.owner_id)
            self.conversation_id = None
            raise

        self.conversation_id = conv.id
        self.messages = []
        logger.info("Started conversation %s (%s)", conv.id, conv.title)
        return conv.id

    def record_exchange(
        self,
        conversation_id: str,
        transcript: str,
        audio_url: str,
        latency_ms: int,
        model: str,
    ) -> tuple[Message, Message]:
        """
        Persist the user message, then the assistant message.

        No rollback: if the assistant write fails the user message stays
        and PartialExchangeError is raised.
        """
        user_msg = Message(
            conversation_id=conversation_id,
            content=transcript,
            transcript=transcript,
            is_user=True,
            latency_ms=latency_ms,
        )
        if not self.store.add_message(self.owner_id, user_msg):
            if conversation_id == self.conversation_id:
                logger.warning("Active conversation %s is gone; starting over", conversation_id)
                self.start_new()
            raise NotFound(f"Conversation {conversation_id} not found")

        ai_msg = Message(
            conversation_id=conversation_id,
            content=assistant_content(model),
            audio_url=audio_url,
            is_user=False,
            latency_ms=latency_ms,
        )
        try:
            if not self.store.add_message(self.owner_id, ai_msg):
                raise PersistenceError(f"Conversation {conversation_id} disappeared mid-exchange")
        except PersistenceError as e:
            logger.error("Assistant message failed after user message %s: %s", user_msg.id, e)
            try:
                self._reload_or_reset(conversation_id)
            except PersistenceError as refresh_err:
                logger.warning("Could not reload messages: %s", refresh_err)
            raise PartialExchangeError(
                f"Saved your message but not the reply: {e}", user_message=user_msg,
            ) from e

        self.store.touch_conversation(
            self.owner_id, conversation_id, datetime.now(timezone.utc).isoformat(),
        )
        self._refresh_if_active(conversation_id)
        return user_msg, ai_msg

    def switch_to(self, conversation_id: str) -> list[Message]:
        """Make another owned conversation active and load its messages."""
        if self.store.get_conversation(self.owner_id, conversation_id) is None:
            raise NotFound(f"Conversation {conversation_id} not found")
        messages = self.store.get_messages(self.owner_id, conversation_id)
        self.conversation_id = conversation_id
        self.messages = messages
        return self.messages

    def start_new(self):
        """Forget the active conversation. Nothing is deleted."""
        self.conversation_id = None
        self.messages = []

    def refresh(self) -> list[Message]:
        """Re-read the active conversation's messages."""
        if self.conversation_id:
            self.messages = self.store.get_messages(self.owner_id, self.conversation_id)
        else:
            self.messages = []
        return self.messages

    def _refresh_if_active(self, conversation_id: str):
        if conversation_id == self.conversation_id:
            self.refresh()

    def _reload_or_reset(self, conversation_id: str):
        """Refresh the active conversation, or drop it if it no longer exists."""
        if conversation_id != self.conversation_id:
            return
        if self.store.get_conversation(self.owner_id, conversation_id) is None:
            logger.warning("Active conversation %s is gone; starting over", conversation_id)
            self.start_new()
        else:
            self.refresh()
