"""
Unit tests for the coach conversation on a drop.
"""

import pytest
from datetime import datetime

from dailydrop.errors import AccessDeniedError, NotFoundError, ValidationError
from dailydrop.models import Message
from dailydrop.services.conversation import (
    ERROR_REPLY,
    NO_API_KEY_REPLY,
    CoachResponder,
    _merge_turns,
    conversation_history,
    list_messages,
    post_message,
    reply_to_message,
)
from dailydrop.services.drops import OPENING_MESSAGE, record_answer

NOW = datetime(2024, 3, 15, 18, 0)


class FakeCoach:
    def __init__(self, reply="Tell me more about that."):
        self.reply_text = reply
        self.calls = []

    def reply(self, history, user_message):
        self.calls.append((history, user_message))
        return self.reply_text


class BrokenCoach:
    def reply(self, history, user_message):
        raise RuntimeError("upstream exploded")


@pytest.fixture
def drop(db, user, questions):
    return record_answer(db, user.id, questions[0].id, "A walk in the park", NOW)


class TestMergeTurns:
    """Tests for shaping turns for the Messages API."""

    def test_leading_assistant_turns_dropped(self):
        turns = [
            {"role": "assistant", "content": "Hello"},
            {"role": "user", "content": "Hi"},
        ]
        assert _merge_turns(turns) == [{"role": "user", "content": "Hi"}]

    def test_consecutive_roles_joined(self):
        turns = [
            {"role": "user", "content": "One"},
            {"role": "user", "content": "Two"},
            {"role": "assistant", "content": "Three"},
        ]
        assert _merge_turns(turns) == [
            {"role": "user", "content": "One\n\nTwo"},
            {"role": "assistant", "content": "Three"},
        ]

    def test_input_not_mutated(self):
        turns = [{"role": "user", "content": "One"}, {"role": "user", "content": "Two"}]
        _merge_turns(turns)
        assert turns[0]["content"] == "One"


class TestConversationHistory:
    """Tests for building the coach's context from a drop."""

    def test_starts_with_question_and_answer(self, drop):
        history = conversation_history(drop)
        assert history[0]["role"] == "user"
        assert drop.question_text in history[0]["content"]
        assert "A walk in the park" in history[0]["content"]
        assert history[1] == {"role": "assistant", "content": OPENING_MESSAGE}

    def test_excludes_message(self, db, user, drop):
        message = post_message(db, user.id, drop.id, "It helped me think")
        db.refresh(drop)
        history = conversation_history(drop, exclude_id=message.id)
        assert all(turn["content"] != "It helped me think" for turn in history)


class TestPostMessage:
    """Tests for storing user messages."""

    def test_stores_trimmed_user_message(self, db, user, drop):
        message = post_message(db, user.id, drop.id, "  I felt calm  ")
        assert message.text == "I felt calm"
        assert message.from_user is True
        assert message.role == "user"

    def test_blank_rejected(self, db, user, drop):
        with pytest.raises(ValidationError):
            post_message(db, user.id, drop.id, "   ")

    def test_other_users_drop_denied(self, db, other_user, drop):
        with pytest.raises(AccessDeniedError):
            post_message(db, other_user.id, drop.id, "Sneaky")

    def test_missing_drop(self, db, user):
        with pytest.raises(NotFoundError):
            post_message(db, user.id, 999, "Hello?")

    def test_list_messages_oldest_first(self, db, user, drop):
        post_message(db, user.id, drop.id, "Follow up")
        db.refresh(drop)
        texts = [m.text for m in list_messages(db, user.id, drop.id)]
        assert texts == [OPENING_MESSAGE, "Follow up"]

    def test_message_count_tracks_conversation(self, db, user, drop):
        post_message(db, user.id, drop.id, "Follow up")
        db.refresh(drop)
        assert drop.message_count == 2


class TestReplyToMessage:
    """Tests for the background coach reply."""

    def test_stores_coach_reply(self, db, session_factory, user, drop):
        message = post_message(db, user.id, drop.id, "What should I do next?")
        coach = FakeCoach()

        reply = reply_to_message(session_factory, drop.id, message.id, coach=coach)

        assert reply.text == "Tell me more about that."
        assert reply.from_user is False
        history, user_message = coach.calls[0]
        assert user_message == "What should I do next?"
        assert history[0]["role"] == "user"
        assert len(history) == 2  # answer + opening message

    def test_coach_failure_stores_apology(self, db, session_factory, user, drop):
        message = post_message(db, user.id, drop.id, "Hello")
        reply = reply_to_message(session_factory, drop.id, message.id, coach=BrokenCoach())
        assert reply.text == ERROR_REPLY

    def test_missing_api_key_stores_fallback(self, db, session_factory, user, drop, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        message = post_message(db, user.id, drop.id, "Hello")
        reply = reply_to_message(session_factory, drop.id, message.id)
        assert reply.text == NO_API_KEY_REPLY

    def test_missing_drop_is_skipped(self, db, session_factory):
        assert reply_to_message(session_factory, 999, 1, coach=FakeCoach()) is None

    def test_unknown_message_is_skipped(self, db, session_factory, drop):
        assert reply_to_message(session_factory, drop.id, 999, coach=FakeCoach()) is None
        assert db.query(Message).filter(Message.drop_id == drop.id).count() == 1


class TestCoachResponder:
    """Tests for the Anthropic-backed coach."""

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ValueError):
            CoachResponder()

    def test_joins_text_blocks(self):
        class Block:
            def __init__(self, type, text=""):
                self.type = type
                self.text = text

        class FakeMessages:
            def __init__(self):
                self.kwargs = None

            def create(self, **kwargs):
                self.kwargs = kwargs
                return type("Response", (), {
                    "content": [Block("text", "Hello "), Block("tool_use"), Block("text", "there")]
                })()

        client = type("Client", (), {})()
        client.messages = FakeMessages()

        coach = CoachResponder(client=client, model="test-model")
        assert coach.reply([{"role": "assistant", "content": "Hi"}], "Hey") == "Hello there"
        assert client.messages.kwargs["model"] == "test-model"
        assert client.messages.kwargs["messages"] == [{"role": "user", "content": "Hey"}]
