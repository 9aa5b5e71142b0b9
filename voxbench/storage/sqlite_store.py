"""
SQLite storage for conversations, messages and performance records.
This is the source of truth. Every read and write is scoped to an owner:
the WHERE clauses below are the access policy, not the callers.
"""

import sqlite3
import logging
from pathlib import Path
from contextlib import contextmanager

from voxbench.errors import PersistenceError
from voxbench.storage.models import (
    Conversation,
    ConversationSummary,
    Message,
    PerformanceRecord,
)

logger = logging.getLogger(__name__)

CREATE_TABLES = """
CREATE TABLE IF NOT EXISTS conversations (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT 'New Conversation',
    model_used TEXT NOT NULL,
    language TEXT NOT NULL DEFAULT 'en',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS messages (
    id TEXT PRIMARY KEY,
    conversation_id TEXT NOT NULL,
    content TEXT NOT NULL,
    transcript TEXT DEFAULT NULL,
    audio_url TEXT DEFAULT NULL,
    is_user BOOLEAN NOT NULL DEFAULT 1,
    latency_ms INTEGER DEFAULT NULL,
    created_at TEXT NOT NULL,
    FOREIGN KEY (conversation_id) REFERENCES conversations(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS model_performance (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    model_name TEXT NOT NULL,
    language TEXT NOT NULL DEFAULT 'en',
    latency_ms INTEGER NOT NULL,
    quality_score REAL CHECK (quality_score >= 0 AND quality_score <= 5),
    expressivity_score REAL CHECK (expressivity_score >= 0 AND expressivity_score <= 5),
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_conversations_user_id
    ON conversations(user_id);
CREATE INDEX IF NOT EXISTS idx_conversations_created_at
    ON conversations(created_at DESC);
CREATE INDEX IF NOT EXISTS idx_messages_conversation_id
    ON messages(conversation_id);
CREATE INDEX IF NOT EXISTS idx_messages_created_at
    ON messages(created_at);
CREATE INDEX IF NOT EXISTS idx_model_performance_user_id
    ON model_performance(user_id);
CREATE INDEX IF NOT EXISTS idx_model_performance_model_name
    ON model_performance(model_name);
"""


class SQLiteStore:
    """Owner-scoped SQLite store. One connection per operation."""

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with self._connect() as conn:
            conn.executescript(CREATE_TABLES)
        logger.info("SQLite store initialized at %s", self.db_path)

    @contextmanager
    def _connect(self):
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ─ Conversations ──────────────────────────────────────────────────────

    def create_conversation(self, conv: Conversation) -> Conversation:
        """Insert a new conversation row."""
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO conversations
                   (id, user_id, title, model_used, language, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (conv.id, conv.user_id, conv.title, conv.model_used,
                 conv.language, conv.created_at, conv.updated_at),
            )
        logger.debug("Created conversation %s (owner=%s, model=%s)", conv.id, conv.user_id, conv.model_used)
        return conv

    def get_conversation(self, owner_id: str, conversation_id: str) -> Conversation | None:
        """Fetch a conversation, or None if it doesn't exist for this owner."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM conversations WHERE id = ? AND user_id = ?",
                (conversation_id, owner_id),
            ).fetchone()
        return Conversation.from_row(dict(row)) if row else None

    def conversation_exists(self, conversation_id: str) -> bool:
        """True if any owner has a conversation with this id."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM conversations WHERE id = ?",
                (conversation_id,),
            ).fetchone()
        return row is not None

    def touch_conversation(self, owner_id: str, conversation_id: str, updated_at: str) -> bool:
        """Bump updated_at. Returns False if the conversation isn't the owner's."""
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE conversations SET updated_at = ? WHERE id = ? AND user_id = ?",
                (updated_at, conversation_id, owner_id),
            )
        return cur.rowcount > 0

    def list_conversations(self, owner_id: str, limit: int | None = None) -> list[ConversationSummary]:
        """Owner's conversations newest-first, each with its message count."""
        sql = """SELECT c.*,
                        (SELECT COUNT(*) FROM messages m
                         WHERE m.conversation_id = c.id) AS message_count
                 FROM conversations c
                 WHERE c.user_id = ?
                 ORDER BY c.created_at DESC, c.rowid DESC"""
        params: tuple = (owner_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (owner_id, limit)
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [
            ConversationSummary(
                conversation=Conversation.from_row(dict(r)),
                message_count=r["message_count"],
            )
            for r in rows
        ]

    def delete_conversation(self, owner_id: str, conversation_id: str) -> bool:
        """Delete the conversation and (via cascade) its messages. Owner-scoped."""
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM conversations WHERE id = ? AND user_id = ?",
                (conversation_id, owner_id),
            )
        deleted = cur.rowcount > 0
        if deleted:
            logger.info("Deleted conversation %s (owner=%s)", conversation_id, owner_id)
        return deleted

    # ─ Messages ───────────────────────────────────────────────────────────

    def add_message(self, owner_id: str, msg: Message) -> bool:
        """
        Insert a message, but only into a conversation the owner holds.
        Returns False (nothing written) when the conversation isn't theirs.
        """
        with self._connect() as conn:
            cur = conn.execute(
                """INSERT INTO messages
                   (id, conversation_id, content, transcript, audio_url,
                    is_user, latency_ms, created_at)
                   SELECT ?, ?, ?, ?, ?, ?, ?, ?
                   WHERE EXISTS (
                       SELECT 1 FROM conversations
                       WHERE id = ? AND user_id = ?
                   )""",
                (msg.id, msg.conversation_id, msg.content, msg.transcript,
                 msg.audio_url, int(msg.is_user), msg.latency_ms, msg.created_at,
                 msg.conversation_id, owner_id),
            )
        stored = cur.rowcount > 0
        logger.debug(
            "Stored message %s (user=%s, conv=%s, ok=%s)",
            msg.id, msg.is_user, msg.conversation_id, stored,
        )
        return stored

    def get_messages(self, owner_id: str, conversation_id: str) -> list[Message]:
        """All messages of an owned conversation, oldest first."""
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT m.* FROM messages m
                   JOIN conversations c ON c.id = m.conversation_id
                   WHERE m.conversation_id = ? AND c.user_id = ?
                   ORDER BY m.created_at ASC, m.rowid ASC""",
                (conversation_id, owner_id),
            ).fetchall()
        return [Message.from_row(dict(r)) for r in rows]

    # ─ Performance ────────────────────────────────────────────────────────

    def add_performance(self, record: PerformanceRecord) -> PerformanceRecord:
        """Append one performance record."""
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO model_performance
                   (id, user_id, model_name, language, latency_ms,
                    quality_score, expressivity_score, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (record.id, record.user_id, record.model_name, record.language,
                 record.latency_ms, record.quality_score,
                 record.expressivity_score, record.created_at),
            )
        logger.debug("Stored performance record %s (model=%s)", record.id, record.model_name)
        return record

    def get_performance(self, owner_id: str) -> list[PerformanceRecord]:
        """Owner's performance records in insertion order."""
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT * FROM model_performance
                   WHERE user_id = ?
                   ORDER BY created_at ASC, rowid ASC""",
                (owner_id,),
            ).fetchall()
        return [PerformanceRecord.from_row(dict(r)) for r in rows]

    # ─ Stats ──────────────────────────────────────────────────────────────

    def get_stats(self, owner_id: str) -> dict:
        """Row counts for one owner."""
        with self._connect() as conn:
            conv_count = conn.execute(
                "SELECT COUNT(*) FROM conversations WHERE user_id = ?", (owner_id,)
            ).fetchone()[0]
            msg_count = conn.execute(
                """SELECT COUNT(*) FROM messages m
                   JOIN conversations c ON c.id = m.conversation_id
                   WHERE c.user_id = ?""",
                (owner_id,),
            ).fetchone()[0]
            perf_count = conn.execute(
                "SELECT COUNT(*) FROM model_performance WHERE user_id = ?", (owner_id,)
            ).fetchone()[0]
        return {
            "conversations": conv_count,
            "messages": msg_count,
            "performance_records": perf_count,
        }
