"""
Persistence for voxbench: dataclass models plus the owner-scoped SQLite store.
"""
from voxbench.storage.models import (
    Conversation,
    ConversationSummary,
    Message,
    ModelStats,
    PerformanceRecord,
)
from voxbench.storage.sqlite_store import SQLiteStore

__all__ = [
    "Conversation",
    "ConversationSummary",
    "Message",
    "ModelStats",
    "PerformanceRecord",
    "SQLiteStore",
]
