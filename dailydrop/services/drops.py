"""
Drop Service

Recording answers and reading a user's drops.

Writes:
- record_answer() stores one drop for an explicit question id
- submit_daily_answer() resolves today's question, checks the user has not
  answered it yet and stores the drop, all in one transaction while holding
  a row lock on the user

The unique (user_id, question_id, journaling_date) constraint on drops turns
a lost race between two submissions into AlreadyAnsweredError.

Reads go through EntryStore, which is bound to one user for one request.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from dailydrop.clock import journaling_date, to_utc_naive, utc_now
from dailydrop.errors import (
    AccessDeniedError,
    AlreadyAnsweredError,
    NotFoundError,
    ValidationError,
)
from dailydrop.models import Drop, Message, Question, User
from dailydrop.services.daily_question import get_daily_question, has_answered_today

logger = logging.getLogger(__name__)

# First coach message on every new drop
OPENING_MESSAGE = (
    "Thank you for sharing that. I'd like to explore your thoughts on this "
    "more deeply. What led you to this answer?"
)


def _clean_answer(answer_text: Optional[str]) -> str:
    if answer_text is None or not str(answer_text).strip():
        raise ValidationError("Text field is required and cannot be empty")
    return str(answer_text).strip()


def _lock_user(db: Session, user_id: str) -> User:
    """Load the user row FOR UPDATE; serializes a user's concurrent writes."""
    user = db.query(User).filter(User.id == user_id).with_for_update().first()
    if not user:
        raise NotFoundError("User not found")
    return user


def _find_same_day_answer(
    db: Session, user_id: str, question_id: int, day
) -> Optional[Drop]:
    return (
        db.query(Drop)
        .filter(
            Drop.user_id == user_id,
            Drop.question_id == question_id,
            Drop.journaling_date == day,
        )
        .first()
    )


def _insert_drop(
    db: Session,
    user_id: str,
    question: Question,
    text: str,
    created_at: datetime,
) -> Drop:
    drop = Drop(
        user_id=user_id,
        question_id=question.id,
        question_text=question.text,
        text=text,
        journaling_date=journaling_date(created_at),
        created_at=created_at,
    )
    drop.messages.append(
        Message(text=OPENING_MESSAGE, from_user=False, created_at=created_at)
    )
    db.add(drop)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if _find_same_day_answer(db, user_id, question.id, drop.journaling_date):
            logger.warning(
                f"Rejected duplicate answer: user {user_id}, question {question.id}, "
                f"day {drop.journaling_date}"
            )
            raise AlreadyAnsweredError()
        raise

    db.refresh(drop)
    logger.info(f"Created drop {drop.id} for user {user_id} (question {question.id})")
    return drop


def get_owned_drop(db: Session, user_id: str, drop_id: int) -> Drop:
    """Fetch a drop for its owner; 404 when missing, 403 for anyone else."""
    drop = db.query(Drop).filter(Drop.id == drop_id).first()
    if not drop:
        raise NotFoundError("Drop not found")
    if drop.user_id != user_id:
        raise AccessDeniedError()
    return drop


def record_answer(
    db: Session,
    user_id: str,
    question_id: int,
    answer_text: str,
    now: Optional[datetime] = None
) -> Drop:
    """
    Store a user's answer to a specific question.

    Raises:
        ValidationError: answer is blank
        NotFoundError: question_id does not exist
        AlreadyAnsweredError: the user already answered this question today
    """
    text = _clean_answer(answer_text)
    created_at = to_utc_naive(now) if now else utc_now()

    question = db.query(Question).filter(Question.id == question_id).first()
    if not question:
        raise NotFoundError("Question not found")

    _lock_user(db, user_id)
    if _find_same_day_answer(db, user_id, question.id, journaling_date(created_at)):
        db.rollback()
        raise AlreadyAnsweredError()

    return _insert_drop(db, user_id, question, text, created_at)


def submit_daily_answer(
    db: Session,
    user_id: str,
    answer_text: str,
    now: Optional[datetime] = None
) -> Drop:
    """
    Answer today's question, refusing a second answer on the same day.

    The guard runs against the user's drops from the locked transaction,
    so two parallel submissions cannot both pass it.
    """
    text = _clean_answer(answer_text)
    created_at = to_utc_naive(now) if now else utc_now()

    question = get_daily_question(db, created_at)

    _lock_user(db, user_id)
    todays = (
        db.query(Drop)
        .filter(
            Drop.user_id == user_id,
            Drop.journaling_date == journaling_date(created_at),
        )
        .all()
    )
    if has_answered_today(todays, question.text, created_at):
        db.rollback()
        raise AlreadyAnsweredError()

    return _insert_drop(db, user_id, question, text, created_at)


class EntryStore:
    """
    A user's drops for the duration of one request.

    list_entries() is memoized; record_answer() through the store clears
    the memo so the next read sees the new drop.
    """

    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.user_id = user_id
        self._entries: Optional[List[Drop]] = None

    def invalidate(self):
        self._entries = None

    def list_entries(self) -> List[Drop]:
        """All of the user's drops, newest created_at first (ties: newest id)."""
        if self._entries is None:
            self._entries = (
                self.db.query(Drop)
                .options(selectinload(Drop.messages))
                .filter(Drop.user_id == self.user_id)
                .order_by(Drop.created_at.desc(), Drop.id.desc())
                .all()
            )
        return self._entries

    def recent_entries(self, n: int) -> List[Drop]:
        """First n of list_entries(), in the same order."""
        if n <= 0:
            return []
        return self.list_entries()[:n]

    def get_entry(self, entry_id: int) -> Optional[Drop]:
        """The user's drop with this id, or None."""
        return (
            self.db.query(Drop)
            .filter(Drop.id == entry_id, Drop.user_id == self.user_id)
            .first()
        )

    def latest_entry_id(self) -> Optional[int]:
        """Id of the most recently created drop."""
        entries = self.list_entries()
        if not entries:
            return None
        return sorted(entries, key=lambda d: d.created_at, reverse=True)[0].id

    def has_answered_today(self, todays_question_text: Optional[str], now: Optional[datetime] = None) -> bool:
        return has_answered_today(self.list_entries(), todays_question_text, now)

    def record_answer(self, question_id: int, answer_text: str, now: Optional[datetime] = None) -> Drop:
        try:
            return record_answer(self.db, self.user_id, question_id, answer_text, now)
        finally:
            self.invalidate()

    def submit_daily_answer(self, answer_text: str, now: Optional[datetime] = None) -> Drop:
        try:
            return submit_daily_answer(self.db, self.user_id, answer_text, now)
        finally:
            self.invalidate()
