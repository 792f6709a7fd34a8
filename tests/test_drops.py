"""
Unit tests for recording drops and the EntryStore read surface.

Tests:
- Blank answers and unknown question ids are rejected
- The question text is snapshotted onto the drop
- One answer per question per journaling day
- list/recent/get/latest over a user's drops
"""

import pytest
from datetime import datetime, timedelta
from sqlalchemy.exc import IntegrityError

from dailydrop.clock import journaling_date
from dailydrop.errors import (
    AccessDeniedError,
    AlreadyAnsweredError,
    NotFoundError,
    ValidationError,
)
from dailydrop.models import Drop, Message
from dailydrop.services.daily_question import get_daily_question
from dailydrop.services.drops import (
    OPENING_MESSAGE,
    EntryStore,
    _insert_drop,
    get_owned_drop,
    record_answer,
    submit_daily_answer,
)

NOW = datetime(2024, 3, 15, 18, 0)


class TestRecordAnswer:
    """Tests for record_answer."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_blank_answer_rejected(self, db, user, questions, text):
        with pytest.raises(ValidationError):
            record_answer(db, user.id, questions[0].id, text, NOW)
        assert db.query(Drop).count() == 0

    def test_unknown_question_rejected(self, db, user, questions):
        """No fallback to another question."""
        with pytest.raises(NotFoundError):
            record_answer(db, user.id, 9999, "A real answer", NOW)
        assert db.query(Drop).count() == 0

    def test_unknown_user_rejected(self, db, questions):
        with pytest.raises(NotFoundError):
            record_answer(db, "nobody", questions[0].id, "A real answer", NOW)

    def test_stores_snapshot_of_question(self, db, user, questions):
        question = questions[2]
        drop = record_answer(db, user.id, question.id, "  Walking the dog  ", NOW)

        assert drop.question_id == question.id
        assert drop.question_text == question.text
        assert drop.text == "Walking the dog"
        assert drop.created_at == NOW
        assert drop.journaling_date == journaling_date(NOW)

    def test_snapshot_survives_question_edit(self, db, user, questions):
        question = questions[0]
        original = question.text
        drop = record_answer(db, user.id, question.id, "Sunshine", NOW)

        question.text = "Reworded question?"
        db.commit()
        db.refresh(drop)
        assert drop.question_text == original

    def test_new_drop_starts_conversation(self, db, user, questions):
        drop = record_answer(db, user.id, questions[0].id, "Sunshine", NOW)

        assert drop.message_count == 1
        assert drop.messages[0].text == OPENING_MESSAGE
        assert drop.messages[0].from_user is False

    def test_same_question_same_day_rejected(self, db, user, questions):
        record_answer(db, user.id, questions[0].id, "First", NOW)
        with pytest.raises(AlreadyAnsweredError):
            record_answer(db, user.id, questions[0].id, "Second", NOW + timedelta(hours=3))
        assert db.query(Drop).count() == 1

    def test_same_question_next_day_allowed(self, db, user, questions):
        record_answer(db, user.id, questions[0].id, "First", NOW)
        record_answer(db, user.id, questions[0].id, "Again", NOW + timedelta(days=1))
        assert db.query(Drop).count() == 2

    def test_other_user_same_question_allowed(self, db, user, other_user, questions):
        record_answer(db, user.id, questions[0].id, "Mine", NOW)
        record_answer(db, other_user.id, questions[0].id, "Theirs", NOW)
        assert db.query(Drop).count() == 2


class TestSubmitDailyAnswer:
    """Tests for answering today's question."""

    def test_answers_todays_question(self, db, user, questions):
        drop = submit_daily_answer(db, user.id, "Coffee with a friend", NOW)
        assert drop.question_id == get_daily_question(db, NOW).id

    def test_second_answer_same_day_rejected(self, db, user, questions):
        submit_daily_answer(db, user.id, "First", NOW)
        # 05:00 UTC next morning is still the same UTC-7 day
        with pytest.raises(AlreadyAnsweredError):
            submit_daily_answer(db, user.id, "Second", datetime(2024, 3, 16, 5, 0))

    def test_next_journaling_day_allowed(self, db, user, questions):
        first = submit_daily_answer(db, user.id, "First", NOW)
        second = submit_daily_answer(db, user.id, "Second", datetime(2024, 3, 16, 8, 0))
        assert second.question_id != first.question_id

    def test_blank_answer_rejected(self, db, user, questions):
        with pytest.raises(ValidationError):
            submit_daily_answer(db, user.id, "  ", NOW)


class TestUniqueConstraint:
    """The database backs up the guard when two writes race."""

    def test_duplicate_row_rejected(self, db, user, questions):
        day = journaling_date(NOW)
        for created_at in (NOW, NOW + timedelta(minutes=1)):
            db.add(Drop(
                user_id=user.id,
                question_id=questions[0].id,
                question_text=questions[0].text,
                text="Racing answer",
                journaling_date=day,
                created_at=created_at,
            ))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_lost_race_reported_as_already_answered(self, db, user, questions):
        """An insert that slips past the same-day check still ends in one drop."""
        first = _insert_drop(db, user.id, questions[0], "First writer", NOW)

        with pytest.raises(AlreadyAnsweredError):
            _insert_drop(db, user.id, questions[0], "Second writer", NOW + timedelta(minutes=1))

        drops = db.query(Drop).all()
        assert [d.id for d in drops] == [first.id]
        assert drops[0].text == "First writer"
        assert db.query(Message).count() == 1

    def test_other_integrity_errors_propagate(self, db, user, questions):
        """Only the same-day duplicate is translated; other violations surface."""
        questions[0].text = None
        with pytest.raises(IntegrityError):
            _insert_drop(db, user.id, questions[0], "Answer", NOW)
        db.rollback()


class TestGetOwnedDrop:
    """Tests for owner-only drop access."""

    def test_owner_can_read(self, db, user, questions):
        drop = record_answer(db, user.id, questions[0].id, "Mine", NOW)
        assert get_owned_drop(db, user.id, drop.id).id == drop.id

    def test_other_user_denied(self, db, user, other_user, questions):
        drop = record_answer(db, user.id, questions[0].id, "Mine", NOW)
        with pytest.raises(AccessDeniedError):
            get_owned_drop(db, other_user.id, drop.id)

    def test_missing_drop(self, db, user):
        with pytest.raises(NotFoundError):
            get_owned_drop(db, user.id, 12345)


class TestEntryStore:
    """Tests for the per-request read surface."""

    def _record_days(self, db, user, questions, days):
        """Record one drop per day offset, in the given order."""
        drops = {}
        for i, offset in enumerate(days):
            drops[offset] = record_answer(
                db, user.id, questions[i].id, f"Answer for day {offset}",
                NOW + timedelta(days=offset),
            )
        return drops

    def test_empty_store(self, db, user):
        store = EntryStore(db, user.id)
        assert store.list_entries() == []
        assert store.recent_entries(3) == []
        assert store.latest_entry_id() is None

    def test_list_newest_first(self, db, user, questions):
        drops = self._record_days(db, user, questions, [1, 3, 2])
        ids = [d.id for d in EntryStore(db, user.id).list_entries()]
        assert ids == [drops[3].id, drops[2].id, drops[1].id]

    def test_latest_entry_id(self, db, user, questions):
        """Insert order day1, day3, day2; latest is day3."""
        drops = self._record_days(db, user, questions, [1, 3, 2])
        assert EntryStore(db, user.id).latest_entry_id() == drops[3].id

    def test_recent_entries_is_prefix_of_list(self, db, user, questions):
        self._record_days(db, user, questions, [1, 2, 3, 4])
        store = EntryStore(db, user.id)
        assert store.recent_entries(2) == store.list_entries()[:2]
        assert store.recent_entries(10) == store.list_entries()
        assert store.recent_entries(0) == []

    def test_only_own_entries(self, db, user, other_user, questions):
        record_answer(db, other_user.id, questions[0].id, "Theirs", NOW)
        mine = record_answer(db, user.id, questions[0].id, "Mine", NOW)
        assert [d.id for d in EntryStore(db, user.id).list_entries()] == [mine.id]

    def test_get_entry_round_trip(self, db, user, questions):
        store = EntryStore(db, user.id)
        created = store.record_answer(questions[4].id, "Round trip", NOW)

        fetched = store.get_entry(created.id)
        assert fetched.question_id == questions[4].id
        assert fetched.question_text == questions[4].text
        assert fetched.text == "Round trip"

    def test_get_entry_scoped_to_user(self, db, user, other_user, questions):
        theirs = record_answer(db, other_user.id, questions[0].id, "Theirs", NOW)
        assert EntryStore(db, user.id).get_entry(theirs.id) is None
        assert EntryStore(db, user.id).get_entry(9999) is None

    def test_list_is_memoized_until_invalidated(self, db, user, questions):
        store = EntryStore(db, user.id)
        assert store.list_entries() == []

        record_answer(db, user.id, questions[0].id, "Written elsewhere", NOW)
        assert store.list_entries() == []

        store.invalidate()
        assert len(store.list_entries()) == 1

    def test_record_through_store_refreshes_list(self, db, user, questions):
        store = EntryStore(db, user.id)
        assert store.list_entries() == []

        drop = store.record_answer(questions[0].id, "Fresh", NOW)
        assert [d.id for d in store.list_entries()] == [drop.id]

    def test_failed_record_still_invalidates(self, db, user, questions):
        store = EntryStore(db, user.id)
        store.list_entries()
        record_answer(db, user.id, questions[0].id, "Written elsewhere", NOW)

        with pytest.raises(ValidationError):
            store.record_answer(questions[1].id, "   ", NOW)
        assert len(store.list_entries()) == 1

    def test_has_answered_today(self, db, user, questions):
        store = EntryStore(db, user.id)
        question = get_daily_question(db, NOW)
        assert store.has_answered_today(question.text, NOW) is False

        store.submit_daily_answer("Today's answer", NOW)
        assert store.has_answered_today(question.text, NOW) is True
        assert store.has_answered_today(question.text, NOW + timedelta(days=1)) is False
