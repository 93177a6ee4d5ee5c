"""Tests for the reading event orchestrator."""
from datetime import timedelta

import pytest

from reading_tracker.exceptions import NotFoundError, StorageError, ValidationError
from reading_tracker.models import ReadingProgress, ReadingStreak, UserBook
from reading_tracker.services.progress_store import ProgressStore
from reading_tracker.services.reading_service import ReadingService
from reading_tracker.utils.cache import CacheService
from tests.conftest import FIXED_NOW, FakeClock


def pages_on(db, user_id, day):
    # Ledger upserts bypass the identity map
    db.expire_all()
    row = db.query(ReadingStreak).filter_by(user_id=user_id, date=day).first()
    return row.pages_read if row else None


class TestRecordProgress:

    def test_first_event_over_threshold_completes_book(self, db, user, book, readings):
        result = readings.record_progress(db, user.id, book.id, 45, 50)

        assert result["progress_percent"] == 90.0
        assert result["completed_now"] is True

        progress = result["progress"]
        assert progress.is_completed is True
        assert progress.completed_at == FIXED_NOW
        assert progress.last_read_at == FIXED_NOW

        db.refresh(user)
        assert user.books_read == 1
        assert db.query(UserBook).filter_by(user_id=user.id, book_id=book.id).count() == 1

    def test_follow_up_after_completion(self, db, user, book, readings, clock):
        readings.record_progress(db, user.id, book.id, 45, 50)
        clock.advance(hours=2)

        result = readings.record_progress(db, user.id, book.id, 50, 50)

        assert result["progress_percent"] == 100.0
        assert result["completed_now"] is False
        assert result["progress"].is_completed is True
        assert result["progress"].completed_at == FIXED_NOW
        assert result["progress"].last_read_at == FIXED_NOW + timedelta(hours=2)

        db.refresh(user)
        assert user.books_read == 1

    def test_below_threshold_leaves_completed_at_empty(self, db, user, book, readings):
        result = readings.record_progress(db, user.id, book.id, 10, 50)

        assert result["progress_percent"] == 20.0
        assert result["completed_now"] is False
        assert result["progress"].is_completed is False
        assert result["progress"].completed_at is None

    def test_crossing_threshold_later_stamps_that_time(self, db, user, book, readings, clock):
        readings.record_progress(db, user.id, book.id, 10, 50)
        clock.advance(days=3)

        result = readings.record_progress(db, user.id, book.id, 48, 50)

        assert result["completed_now"] is True
        assert result["progress"].completed_at == FIXED_NOW + timedelta(days=3)

    def test_completion_never_reverts(self, db, user, book, readings):
        readings.record_progress(db, user.id, book.id, 50, 50)

        result = readings.record_progress(db, user.id, book.id, 10, 50)

        assert result["progress_percent"] == 20.0
        assert result["completed_now"] is False
        assert result["progress"].is_completed is True
        assert result["progress"].completed_at == FIXED_NOW

    def test_one_row_per_user_and_book(self, db, user, book, readings):
        readings.record_progress(db, user.id, book.id, 5, 50)
        readings.record_progress(db, user.id, book.id, 15, 50)

        rows = db.query(ReadingProgress).filter_by(user_id=user.id, book_id=book.id).all()
        assert len(rows) == 1
        assert rows[0].current_page == 15

    def test_page_past_total_is_stored_as_is(self, db, user, book, readings):
        result = readings.record_progress(db, user.id, book.id, 60, 50)

        assert result["progress"].current_page == 60
        assert result["progress_percent"] == 120.0


class TestStreakCredit:

    def test_same_day_deltas_accumulate(self, db, user, book, readings):
        readings.record_progress(db, user.id, book.id, 10, 100)
        readings.record_progress(db, user.id, book.id, 25, 100)

        assert pages_on(db, user.id, FIXED_NOW.date()) == 25

    def test_first_event_credits_at_least_one_page(self, db, user, book, readings):
        readings.record_progress(db, user.id, book.id, 0, 100)
        assert pages_on(db, user.id, FIXED_NOW.date()) == 1

        readings.record_progress(db, user.id, book.id, 5, 100)
        assert pages_on(db, user.id, FIXED_NOW.date()) == 6

    def test_moving_backwards_never_decrements(self, db, user, book, readings):
        readings.record_progress(db, user.id, book.id, 30, 100)
        readings.record_progress(db, user.id, book.id, 20, 100)

        assert pages_on(db, user.id, FIXED_NOW.date()) == 30

    def test_first_event_of_a_new_day_with_no_movement(self, db, user, book, readings, clock):
        readings.record_progress(db, user.id, book.id, 30, 100)
        clock.advance(days=1)

        readings.record_progress(db, user.id, book.id, 30, 100)

        assert pages_on(db, user.id, FIXED_NOW.date()) == 30
        assert pages_on(db, user.id, FIXED_NOW.date() + timedelta(days=1)) == 1

    def test_deltas_from_different_books_share_the_day(self, db, user, book, other_book, readings):
        readings.record_progress(db, user.id, book.id, 10, 50)
        readings.record_progress(db, user.id, other_book.id, 7, 100)

        assert pages_on(db, user.id, FIXED_NOW.date()) == 17


class TestValidationAndFailures:

    @pytest.mark.parametrize("current_page,total_pages", [
        (10, 0),
        (10, -5),
        (-1, 50),
        ("10", 50),
        (10.5, 50),
        (True, 50),
    ])
    def test_invalid_pages_are_rejected_before_writing(self, db, user, book, readings, current_page, total_pages):
        with pytest.raises(ValidationError):
            readings.record_progress(db, user.id, book.id, current_page, total_pages)

        assert db.query(ReadingProgress).count() == 0
        assert db.query(ReadingStreak).count() == 0

    @pytest.mark.parametrize("user_id,book_id", [("", "book-1"), ("user-1", None), ("  ", "book-1")])
    def test_missing_ids_are_rejected(self, db, readings, user_id, book_id):
        with pytest.raises(ValidationError):
            readings.record_progress(db, user_id, book_id, 1, 50)

    def test_completion_failure_rolls_back_whole_event(self, db, book, readings):
        # No users row, so the booksRead increment fails
        with pytest.raises(StorageError, match="Failed to update reading progress"):
            readings.record_progress(db, "ghost", book.id, 45, 50)

        assert db.query(ReadingProgress).count() == 0
        assert db.query(ReadingStreak).count() == 0
        assert db.query(UserBook).count() == 0


class TestTrackOpen:

    def test_creates_day_with_one_page(self, db, user, book, readings):
        result = readings.track_open(db, user.id, book.id)

        assert result == {"tracked": True, "date": FIXED_NOW.date()}
        assert pages_on(db, user.id, FIXED_NOW.date()) == 1

    def test_existing_day_is_left_alone(self, db, user, book, readings):
        readings.record_progress(db, user.id, book.id, 12, 50)
        readings.track_open(db, user.id, book.id)
        readings.track_open(db, user.id, book.id)

        assert pages_on(db, user.id, FIXED_NOW.date()) == 12

    def test_progress_after_open_adds_the_delta(self, db, user, book, readings):
        readings.track_open(db, user.id, book.id)
        readings.record_progress(db, user.id, book.id, 10, 50)

        assert pages_on(db, user.id, FIXED_NOW.date()) == 11


class TestMarkBookReadBySlug:

    def test_marks_read_without_threshold(self, db, user, book, readings):
        result = readings.mark_book_read_by_slug(db, user.id, "dune", 3)

        assert result == {"book_id": book.id, "slug": "dune", "page": 3, "completed_now": True}
        db.refresh(user)
        assert user.books_read == 1
        assert db.query(ReadingProgress).count() == 0

    def test_second_call_is_idempotent(self, db, user, book, readings):
        readings.mark_book_read_by_slug(db, user.id, "dune", 3)
        result = readings.mark_book_read_by_slug(db, user.id, "dune", 10)

        assert result["completed_now"] is False
        db.refresh(user)
        assert user.books_read == 1

    def test_progress_completion_after_slug_mark_does_not_double_count(self, db, user, book, readings):
        readings.mark_book_read_by_slug(db, user.id, "dune", 0)
        result = readings.record_progress(db, user.id, book.id, 50, 50)

        assert result["completed_now"] is True
        db.refresh(user)
        assert user.books_read == 1

    def test_unknown_slug(self, db, user, readings):
        with pytest.raises(NotFoundError):
            readings.mark_book_read_by_slug(db, user.id, "missing", 1)


class RacingProgressStore(ProgressStore):
    """Runs `rival` once, right after the first lookup and before the write"""

    def __init__(self, rival):
        self.rival = rival

    def find(self, db, user_id, book_id):
        existing = super().find(db, user_id, book_id)
        if self.rival is not None:
            rival, self.rival = self.rival, None
            rival()
        return existing


class TestConcurrentEvents:

    def test_row_created_between_lookup_and_write_is_updated(
        self, db, session_factory, user, book, clock
    ):
        def rival():
            other = session_factory()
            try:
                ReadingService(cache=CacheService(), clock=clock).record_progress(
                    other, user.id, book.id, 10, 50
                )
            finally:
                other.close()

        service = ReadingService(store=RacingProgressStore(rival), cache=CacheService(), clock=clock)

        result = service.record_progress(db, user.id, book.id, 20, 50)

        assert result["progress"].current_page == 20
        assert result["progress_percent"] == 40.0
        db.expire_all()
        rows = db.query(ReadingProgress).filter_by(user_id=user.id, book_id=book.id).all()
        assert len(rows) == 1
        assert rows[0].current_page == 20

    def test_racing_write_keeps_first_completion_time(self, db, session_factory, user, book, clock):
        def rival():
            other = session_factory()
            try:
                ReadingService(cache=CacheService(), clock=clock).record_progress(
                    other, user.id, book.id, 50, 50
                )
            finally:
                other.close()

        clock_later = FakeClock(FIXED_NOW + timedelta(minutes=5))
        service = ReadingService(store=RacingProgressStore(rival), cache=CacheService(), clock=clock_later)

        result = service.record_progress(db, user.id, book.id, 10, 50)

        progress = result["progress"]
        assert progress.current_page == 10
        assert progress.is_completed is True
        assert progress.completed_at == FIXED_NOW
        assert progress.last_read_at == FIXED_NOW + timedelta(minutes=5)

    def test_orm_fallback_without_native_upsert(self, db, user, book, readings, monkeypatch):
        monkeypatch.setattr("reading_tracker.services.progress_store.dialect_insert", lambda db, model: None)

        readings.record_progress(db, user.id, book.id, 10, 50)
        result = readings.record_progress(db, user.id, book.id, 45, 50)

        assert result["completed_now"] is True
        assert result["progress"].completed_at == FIXED_NOW
        assert db.query(ReadingProgress).count() == 1
