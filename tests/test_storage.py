"""
Tests for SQLite storage.
Uses a temp database for each test.
"""

import sqlite3

import pytest

from voxbench.errors import PersistenceError
from voxbench.storage.models import (
    Conversation,
    Message,
    PerformanceRecord,
    default_title,
)
from voxbench.storage.sqlite_store import SQLiteStore


def _conv(store, owner="alice", model="moshi"):
    return store.create_conversation(Conversation(user_id=owner, model_used=model, language="en"))


def test_default_title():
    assert default_title("moshi") == "Moshi Conversation"
    assert default_title("spirit_lm") == "Spirit_lm Conversation"


def test_conversation_gets_default_title(store):
    conv = _conv(store, model="ultravox")
    assert conv.title == "Ultravox Conversation"
    assert conv.updated_at == conv.created_at

    fetched = store.get_conversation("alice", conv.id)
    assert fetched == conv


def test_get_conversation_is_owner_scoped(store):
    conv = _conv(store, owner="alice")
    assert store.get_conversation("bob", conv.id) is None
    assert store.conversation_exists(conv.id)


def test_messages_in_insertion_order(store):
    conv = _conv(store)
    for i in range(5):
        assert store.add_message("alice", Message(conversation_id=conv.id, content=f"m{i}"))

    messages = store.get_messages("alice", conv.id)
    assert [m.content for m in messages] == ["m0", "m1", "m2", "m3", "m4"]


def test_same_timestamp_keeps_insertion_order(store):
    conv = _conv(store)
    stamp = "2026-01-01T00:00:00+00:00"
    store.add_message("alice", Message(conversation_id=conv.id, content="first", created_at=stamp))
    store.add_message("alice", Message(conversation_id=conv.id, content="second", created_at=stamp, is_user=False))

    messages = store.get_messages("alice", conv.id)
    assert [m.content for m in messages] == ["first", "second"]
    assert messages[0].is_user is True
    assert messages[1].is_user is False


def test_add_message_to_foreign_conversation_writes_nothing(store):
    conv = _conv(store, owner="alice")
    assert store.add_message("bob", Message(conversation_id=conv.id, content="sneaky")) is False
    assert store.get_messages("alice", conv.id) == []


def test_get_messages_hidden_from_other_owner(store):
    conv = _conv(store, owner="alice")
    store.add_message("alice", Message(conversation_id=conv.id, content="hi"))
    assert store.get_messages("bob", conv.id) == []


def test_list_conversations_newest_first_with_counts(store):
    old = store.create_conversation(Conversation(
        user_id="alice", model_used="moshi", created_at="2026-01-01T00:00:00+00:00",
    ))
    new = store.create_conversation(Conversation(
        user_id="alice", model_used="ultravox", created_at="2026-02-01T00:00:00+00:00",
    ))
    store.add_message("alice", Message(conversation_id=old.id, content="a"))
    store.add_message("alice", Message(conversation_id=old.id, content="b"))
    _conv(store, owner="bob")

    summaries = store.list_conversations("alice")
    assert [s.id for s in summaries] == [new.id, old.id]
    assert [s.message_count for s in summaries] == [0, 2]


def test_list_conversations_limit(store):
    for _ in range(3):
        _conv(store)
    assert len(store.list_conversations("alice", limit=2)) == 2


def test_delete_cascades_to_messages(store):
    conv = _conv(store)
    store.add_message("alice", Message(conversation_id=conv.id, content="bye"))

    assert store.delete_conversation("alice", conv.id) is True
    assert store.get_conversation("alice", conv.id) is None
    with store._connect() as conn:
        left = conn.execute("SELECT COUNT(*) FROM messages").fetchone()[0]
    assert left == 0


def test_delete_requires_owner(store):
    conv = _conv(store, owner="alice")
    assert store.delete_conversation("bob", conv.id) is False
    assert store.get_conversation("alice", conv.id) is not None


def test_touch_conversation(store):
    conv = _conv(store)
    assert store.touch_conversation("alice", conv.id, "2030-01-01T00:00:00+00:00")
    assert store.get_conversation("alice", conv.id).updated_at == "2030-01-01T00:00:00+00:00"
    assert not store.touch_conversation("bob", conv.id, "2031-01-01T00:00:00+00:00")


def test_performance_records_scoped_and_ordered(store):
    store.add_performance(PerformanceRecord(user_id="alice", model_name="moshi", latency_ms=100))
    store.add_performance(PerformanceRecord(user_id="bob", model_name="moshi", latency_ms=999))
    store.add_performance(PerformanceRecord(user_id="alice", model_name="ultravox", latency_ms=200))

    records = store.get_performance("alice")
    assert [r.latency_ms for r in records] == [100, 200]


def test_score_check_constraint_raises_persistence_error(store):
    with pytest.raises(PersistenceError):
        store.add_performance(PerformanceRecord(
            user_id="alice", model_name="moshi", latency_ms=1, quality_score=7.5,
        ))


def test_sqlite_errors_are_wrapped(store):
    with pytest.raises(PersistenceError) as exc_info:
        with store._connect() as conn:
            conn.execute("SELECT * FROM no_such_table")
    assert isinstance(exc_info.value.__cause__, sqlite3.Error)


def test_stats_counts(store):
    conv = _conv(store)
    store.add_message("alice", Message(conversation_id=conv.id, content="x"))
    store.add_performance(PerformanceRecord(user_id="alice", model_name="moshi", latency_ms=5))

    assert store.get_stats("alice") == {"conversations": 1, "messages": 1, "performance_records": 1}
    assert store.get_stats("bob") == {"conversations": 0, "messages": 0, "performance_records": 0}


def test_init_idempotent(tmp_path):
    """Opening the same file twice doesn't crash."""
    db = str(tmp_path / "test.db")
    SQLiteStore(db)
    assert SQLiteStore(db) is not None


class _BrokenConnection:
    """Connection whose every statement fails, recording close()."""

    def __init__(self):
        self.row_factory = None
        self.closed = False

    def execute(self, sql, params=()):
        raise sqlite3.OperationalError("database is locked")

    def commit(self):
        pass

    def rollback(self):
        pass

    def close(self):
        self.closed = True


def test_pragma_failure_is_wrapped_and_closes(store, monkeypatch):
    conn = _BrokenConnection()
    monkeypatch.setattr(sqlite3, "connect", lambda path: conn)

    with pytest.raises(PersistenceError) as exc_info:
        store.get_conversation("alice", "anything")
    assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)
    assert conn.closed
