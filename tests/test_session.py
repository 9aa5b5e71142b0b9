"""
Tests for the conversation session (state manager).
"""

import pytest

from voxbench.errors import NotFound, PartialExchangeError, PersistenceError
from voxbench.session import ConversationSession, assistant_content
from voxbench.storage.models import Conversation


@pytest.fixture
def session(store):
    return ConversationSession(store, "alice")


def test_ensure_conversation_is_lazy_and_stable(session, store):
    assert session.conversation_id is None
    first = session.ensure_conversation("moshi", "en")
    second = session.ensure_conversation("ultravox", "fr")
    assert first == second
    assert len(store.list_conversations("alice")) == 1

    conv = store.get_conversation("alice", first)
    assert conv.model_used == "moshi"
    assert conv.title == "Moshi Conversation"


def test_ensure_conversation_failure_leaves_no_active_id(session, store, monkeypatch):
    def fail(conv):
        raise PersistenceError("disk full")

    monkeypatch.setattr(store, "create_conversation", fail)
    with pytest.raises(PersistenceError):
        session.ensure_conversation("moshi", "en")
    assert session.conversation_id is None


def test_record_exchange_appends_pair(session):
    conv_id = session.ensure_conversation("moshi", "en")
    session.record_exchange(conv_id, "hello there", "https://a/1.wav", 420, "moshi")
    before = list(session.messages)
    assert len(before) == 2

    user_msg, ai_msg = session.record_exchange(conv_id, "again", "https://a/2.wav", 380, "moshi")
    assert len(session.messages) == len(before) + 2

    new_user, new_ai = session.messages[-2:]
    assert new_user.is_user and not new_ai.is_user
    assert new_user.id == user_msg.id and new_ai.id == ai_msg.id
    stamps = [m.created_at for m in session.messages]
    assert stamps == sorted(stamps)


def test_record_exchange_message_contents(session):
    conv_id = session.ensure_conversation("spirit_lm", "en")
    user_msg, ai_msg = session.record_exchange(conv_id, "bonjour", "https://a/x.wav", 512, "spirit_lm")

    assert user_msg.content == "bonjour"
    assert user_msg.transcript == "bonjour"
    assert user_msg.audio_url is None
    assert user_msg.latency_ms == 512

    assert ai_msg.content == assistant_content("spirit_lm") == "AI response using spirit_lm"
    assert ai_msg.audio_url == "https://a/x.wav"
    assert ai_msg.transcript is None
    assert ai_msg.latency_ms == 512


def test_record_exchange_bumps_updated_at(session, store):
    conv_id = session.ensure_conversation("moshi", "en")
    created = store.get_conversation("alice", conv_id).updated_at
    session.record_exchange(conv_id, "hi", "u", 1, "moshi")
    assert store.get_conversation("alice", conv_id).updated_at >= created


def test_partial_exchange_keeps_user_message(session, store, monkeypatch):
    conv_id = session.ensure_conversation("moshi", "en")
    original = store.add_message

    def flaky(owner_id, msg):
        if not msg.is_user:
            raise PersistenceError("connection reset")
        return original(owner_id, msg)

    monkeypatch.setattr(store, "add_message", flaky)
    with pytest.raises(PartialExchangeError) as exc_info:
        session.record_exchange(conv_id, "hello", "u", 10, "moshi")

    assert isinstance(exc_info.value, PersistenceError)
    stored = store.get_messages("alice", conv_id)
    assert len(stored) == 1 and stored[0].is_user
    assert exc_info.value.user_message.id == stored[0].id
    # In-memory list reflects what was persisted
    assert [m.id for m in session.messages] == [stored[0].id]


def test_record_exchange_into_foreign_conversation(store):
    conv = store.create_conversation(Conversation(user_id="bob", model_used="moshi"))
    session = ConversationSession(store, "alice")
    with pytest.raises(NotFound):
        session.record_exchange(conv.id, "hi", "u", 1, "moshi")
    assert store.get_messages("bob", conv.id) == []


def test_switch_to_loads_messages(session, store):
    conv_a = session.ensure_conversation("moshi", "en")
    session.record_exchange(conv_a, "in a", "u", 1, "moshi")

    session.start_new()
    conv_b = session.ensure_conversation("ultravox", "en")
    assert conv_b != conv_a
    assert session.messages == []

    messages = session.switch_to(conv_a)
    assert session.conversation_id == conv_a
    assert [m.content for m in messages] == ["in a", "AI response using moshi"]


def test_switch_to_unknown_keeps_state(session):
    conv_id = session.ensure_conversation("moshi", "en")
    session.record_exchange(conv_id, "hi", "u", 1, "moshi")
    with pytest.raises(NotFound):
        session.switch_to("does-not-exist")
    assert session.conversation_id == conv_id
    assert len(session.messages) == 2


def test_switch_to_other_owners_conversation(store):
    bob_conv = store.create_conversation(Conversation(user_id="bob", model_used="moshi"))
    session = ConversationSession(store, "alice")
    with pytest.raises(NotFound):
        session.switch_to(bob_conv.id)


def test_start_new_deletes_nothing(session, store):
    conv_id = session.ensure_conversation("moshi", "en")
    session.record_exchange(conv_id, "keep me", "u", 1, "moshi")
    session.start_new()

    assert session.conversation_id is None
    assert session.messages == []
    assert len(store.get_messages("alice", conv_id)) == 2
    assert session.ensure_conversation("moshi", "en") != conv_id


def test_active_conversation_deleted_elsewhere(session, store):
    from voxbench.history import HistoryBrowser

    conv_id = session.ensure_conversation("moshi", "en")
    session.record_exchange(conv_id, "first", "u", 1, "moshi")
    HistoryBrowser(store).delete("alice", conv_id)

    failures = 0
    for _ in range(3):
        cid = session.ensure_conversation("moshi", "en")
        try:
            session.record_exchange(cid, "again", "u", 1, "moshi")
        except NotFound:
            failures += 1
            assert session.conversation_id is None
            assert session.messages == []

    assert failures == 1
    assert session.conversation_id not in (None, conv_id)
    assert len(store.list_conversations("alice")) == 1
    assert len(session.messages) == 4


def test_conversation_deleted_mid_exchange_resets(session, store, monkeypatch):
    conv_id = session.ensure_conversation("moshi", "en")
    original = store.add_message

    def delete_before_reply(owner_id, msg):
        if not msg.is_user:
            store.delete_conversation(owner_id, conv_id)
        return original(owner_id, msg)

    monkeypatch.setattr(store, "add_message", delete_before_reply)
    with pytest.raises(PartialExchangeError):
        session.record_exchange(conv_id, "hello", "u", 1, "moshi")

    assert session.conversation_id is None
    assert session.messages == []
    assert session.ensure_conversation("moshi", "en") != conv_id
