"""
Conversation Service

Each drop carries a short conversation between the user and an AI coach.
The user's message is stored during the request; the coach's reply is
generated afterwards (FastAPI background task) in a fresh session.
"""

import logging
import os
from typing import Dict, List, Optional

import anthropic
from sqlalchemy.orm import Session

from dailydrop.errors import ValidationError
from dailydrop.models import Drop, Message
from dailydrop.services.drops import get_owned_drop

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-7-sonnet-20250219"

NO_API_KEY_REPLY = (
    "I'm sorry, I can't generate a thoughtful response right now. "
    "Please try again later."
)
ERROR_REPLY = (
    "I apologize, but I'm having trouble processing your message right now. "
    "Could you try again?"
)
EMPTY_REPLY = "I'm not sure how to respond to that."


class CoachResponder:
    """AI coach that continues the conversation about a journal entry."""

    def __init__(self, client=None, model: Optional[str] = None):
        if client is None:
            api_key = os.getenv('ANTHROPIC_API_KEY')
            if not api_key:
                raise ValueError("ANTHROPIC_API_KEY environment variable not set")
            client = anthropic.Anthropic(api_key=api_key)
        self.client = client
        self.model = model or os.getenv('ANTHROPIC_MODEL', DEFAULT_MODEL)

    def reply(self, history: List[Dict], user_message: str) -> str:
        """
        Generate the coach's next turn.

        Args:
            history: Prior turns as {"role", "content"} dicts, oldest first
            user_message: The message being answered

        Returns:
            Reply text
        """
        response = self.client.messages.create(
            model=self.model,
            max_tokens=1000,
            messages=_merge_turns(history + [{"role": "user", "content": user_message}]),
        )

        reply_text = ""
        for block in response.content:
            if block.type == "text":
                reply_text += block.text
        return reply_text.strip() or EMPTY_REPLY


def _merge_turns(turns: List[Dict]) -> List[Dict]:
    """Drop leading coach turns and join consecutive same-role turns.

    The Messages API wants alternating roles starting with the user.
    """
    merged = []
    for turn in turns:
        if not merged and turn["role"] != "user":
            continue
        if merged and merged[-1]["role"] == turn["role"]:
            merged[-1] = {
                "role": turn["role"],
                "content": merged[-1]["content"] + "\n\n" + turn["content"],
            }
        else:
            merged.append(dict(turn))
    return merged


def conversation_history(drop: Drop, exclude_id: Optional[int] = None) -> List[Dict]:
    """The drop's answer followed by its messages, as conversation turns."""
    turns = [{
        "role": "user",
        "content": f'Question: "{drop.question_text}"\nMy answer: "{drop.text}"',
    }]
    for message in drop.messages:
        if message.id == exclude_id:
            continue
        turns.append({"role": message.role, "content": message.text})
    return turns


def list_messages(db: Session, user_id: str, drop_id: int) -> List[Message]:
    """Messages of the user's drop, oldest first."""
    drop = get_owned_drop(db, user_id, drop_id)
    return list(drop.messages)


def post_message(db: Session, user_id: str, drop_id: int, text: str) -> Message:
    """Store a message from the user on one of their drops."""
    if text is None or not str(text).strip():
        raise ValidationError("Text field is required and cannot be empty")

    drop = get_owned_drop(db, user_id, drop_id)
    message = Message(drop_id=drop.id, text=str(text).strip(), from_user=True)
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def reply_to_message(
    session_factory,
    drop_id: int,
    user_message_id: int,
    coach: Optional[CoachResponder] = None
) -> Optional[Message]:
    """
    Generate and store the coach reply to a user message.

    Runs outside the request, so it opens its own session. Returns the stored
    reply, or None if the drop no longer exists.
    """
    db = session_factory()
    try:
        drop = db.query(Drop).filter(Drop.id == drop_id).first()
        if not drop:
            logger.info(f"Drop {drop_id} no longer exists, skipping coach reply")
            return None

        current = next((m for m in drop.messages if m.id == user_message_id), None)
        if current is None:
            logger.warning(f"Message {user_message_id} not found on drop {drop_id}")
            return None

        history = conversation_history(drop, exclude_id=user_message_id)

        if coach is None:
            try:
                coach = CoachResponder()
            except ValueError:
                logger.warning("ANTHROPIC_API_KEY not set; storing fallback coach reply")
                return _store_reply(db, drop_id, NO_API_KEY_REPLY)

        try:
            reply_text = coach.reply(history, current.text)
        except Exception:
            logger.exception(f"Coach reply failed for drop {drop_id}")
            reply_text = ERROR_REPLY

        return _store_reply(db, drop_id, reply_text)
    finally:
        db.close()


def _store_reply(db: Session, drop_id: int, text: str) -> Message:
    reply = Message(drop_id=drop_id, text=text, from_user=False)
    db.add(reply)
    db.commit()
    db.refresh(reply)
    return reply
