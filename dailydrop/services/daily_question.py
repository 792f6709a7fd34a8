"""
Daily Question Service

Rules:
- The pool is every active question, ordered by id
- Today's question = pool[day_number % len(pool)]
- day_number counts journaling days (UTC-7) since 1970-01-01, so every user
  sees the same question on the same day and the index advances by one
  each day, wrapping at the end of the pool

The answered-today check uses the same UTC-7 journaling day: an entry counts
only when its journaling date is today's AND it answers today's question.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Sequence
from sqlalchemy.orm import Session

from dailydrop.clock import day_number, journaling_date
from dailydrop.errors import EmptyPoolError
from dailydrop.models import Question


def daily_question_index(pool_size: int, now: Optional[datetime] = None) -> int:
    """Position in a pool of pool_size questions for the journaling day of now."""
    if pool_size <= 0:
        raise EmptyPoolError()
    return day_number(now) % pool_size


def resolve_daily_question(
    pool: Sequence[Question],
    now: Optional[datetime] = None
) -> Question:
    """
    Pick today's question from an ordered pool.

    Args:
        pool: Questions in pool order
        now: Reference instant (defaults to current UTC time)

    Returns:
        The question for the journaling day of now

    Raises:
        EmptyPoolError: if the pool is empty
    """
    if not pool:
        raise EmptyPoolError()
    return pool[daily_question_index(len(pool), now)]


def get_question_pool(db: Session) -> List[Question]:
    """Active questions in pool order."""
    return (
        db.query(Question)
        .filter(Question.is_active.is_(True))
        .order_by(Question.id)
        .all()
    )


def get_daily_question(db: Session, now: Optional[datetime] = None) -> Question:
    """Load the pool and resolve today's question from it."""
    return resolve_daily_question(get_question_pool(db), now)


def has_answered_today(
    entries: Iterable,
    todays_question_text: Optional[str],
    now: Optional[datetime] = None
) -> bool:
    """
    Check whether any entry answers today's question on today's journaling day.

    Entries only need created_at and question_text attributes. A missing
    question text means the question is not resolved yet, which never
    counts as answered.
    """
    if not todays_question_text:
        return False

    today = journaling_date(now)
    for entry in entries:
        if entry.question_text != todays_question_text:
            continue
        if journaling_date(entry.created_at) == today:
            return True
    return False
