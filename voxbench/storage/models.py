"""
Data models for conversation storage.
These define the shape of data flowing between the store, the session
and the aggregator.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from uuid import uuid4


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def default_title(model_name: str) -> str:
    """'moshi' -> 'Moshi Conversation'. Only the first character is upper-cased."""
    return f"{model_name[:1].upper()}{model_name[1:]} Conversation"


@dataclass
class Message:
    """A single message in a conversation."""
    id: str = field(default_factory=lambda: uuid4().hex)
    conversation_id: str = ""
    content: str = ""
    transcript: str | None = None
    audio_url: str | None = None
    is_user: bool = True
    latency_ms: int | None = None
    created_at: str = field(default_factory=_now)

    @classmethod
    def from_row(cls, row: dict) -> "Message":
        return cls(
            id=row["id"],
            conversation_id=row["conversation_id"],
            content=row["content"],
            transcript=row.get("transcript"),
            audio_url=row.get("audio_url"),
            is_user=bool(row["is_user"]),
            latency_ms=row.get("latency_ms"),
            created_at=row["created_at"],
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Conversation:
    """A conversation owned by exactly one user."""
    user_id: str = ""
    model_used: str = ""
    language: str = "en"
    title: str = ""
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: str = field(default_factory=_now)
    updated_at: str = ""

    def __post_init__(self):
        if not self.title:
            self.title = default_title(self.model_used)
        if not self.updated_at:
            self.updated_at = self.created_at

    @classmethod
    def from_row(cls, row: dict) -> "Conversation":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            model_used=row["model_used"],
            language=row["language"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ConversationSummary:
    """History-list entry: a conversation plus its message count."""
    conversation: Conversation
    message_count: int = 0

    @property
    def id(self) -> str:
        return self.conversation.id

    def to_dict(self) -> dict:
        return {**self.conversation.to_dict(), "message_count": self.message_count}


@dataclass
class PerformanceRecord:
    """One exchange's latency and (placeholder) scores. Append-only."""
    user_id: str = ""
    model_name: str = ""
    language: str = "en"
    latency_ms: int = 0
    quality_score: float | None = None
    expressivity_score: float | None = None
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: str = field(default_factory=_now)

    @classmethod
    def from_row(cls, row: dict) -> "PerformanceRecord":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            model_name=row["model_name"],
            language=row["language"],
            latency_ms=row["latency_ms"],
            quality_score=row.get("quality_score"),
            expressivity_score=row.get("expressivity_score"),
            created_at=row["created_at"],
        )


@dataclass
class ModelStats:
    """Per-model averages. Derived on demand, never stored."""
    model_name: str
    avg_latency: float = 0.0
    avg_quality: float = 0.0
    avg_expressivity: float = 0.0
    usage_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)
