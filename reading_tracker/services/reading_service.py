"""
Reading service
Single entry point for reading events: progress, streak credit and completion
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reading_tracker.exceptions import AppError, StorageError, ValidationError
from reading_tracker.services.catalog_service import catalog_service
from reading_tracker.services.completion_service import completion_service
from reading_tracker.services.progress_store import progress_store
from reading_tracker.services.streak_ledger import streak_ledger
from reading_tracker.utils.cache import cache_service
from reading_tracker.utils.clock import local_now

logger = logging.getLogger(__name__)


def _require_id(name: str, value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required")


def _require_int(name: str, value: Any, minimum: int) -> None:
    # bool is an int subclass but never a page number
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    if value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}")


class ReadingService:
    """
    Orchestrates one reading event against the progress store, the streak
    ledger and the completion service inside a single transaction.
    """

    def __init__(
        self,
        store=progress_store,
        ledger=streak_ledger,
        completion=completion_service,
        catalog=catalog_service,
        cache=cache_service,
        clock: Callable[[], datetime] = local_now
    ):
        self.store = store
        self.ledger = ledger
        self.completion = completion
        self.catalog = catalog
        self.cache = cache
        self.clock = clock

    def record_progress(
        self,
        db: Session,
        user_id: str,
        book_id: str,
        current_page: int,
        total_pages: int
    ) -> Dict[str, Any]:
        """
        Record that a user read up to `current_page` of a book

        Args:
            db: Database session
            user_id: Authenticated user id
            book_id: Book id
            current_page: Page reached, may exceed total_pages
            total_pages: Total pages, must be positive

        Returns:
            Dictionary with the progress row, completed_now and progress_percent

        Raises:
            ValidationError: invalid arguments, nothing is written
            StorageError: any storage failure, the whole event is rolled back
        """
        _require_id("user_id", user_id)
        _require_id("book_id", book_id)
        _require_int("current_page", current_page, 0)
        _require_int("total_pages", total_pages, 1)

        now = self.clock()
        is_completed, progress_percent = self.completion.calculate_completion(
            current_page, total_pages
        )

        try:
            existing = self.store.find(db, user_id, book_id)
            was_completed = existing.is_completed if existing else False
            previous_page = existing.current_page if existing else 0
            completed_now = is_completed and not was_completed

            progress = self.store.save(
                db,
                existing,
                user_id=user_id,
                book_id=book_id,
                current_page=current_page,
                total_pages=total_pages,
                progress_percent=progress_percent,
                is_completed=is_completed,
                now=now
            )

            self.ledger.add_pages(db, user_id, now.date(), current_page - previous_page)

            if completed_now:
                self.completion.mark_completed(db, user_id, book_id)

            db.commit()
        except (SQLAlchemyError, AppError) as e:
            db.rollback()
            logger.error(f"Error updating reading progress: {str(e)}", exc_info=True)
            raise StorageError("Failed to update reading progress") from e

        self.cache.invalidate_user(user_id)

        logger.info(
            f"Progress updated: user={user_id}, book={book_id}, "
            f"page={current_page}/{total_pages}, percent={progress_percent:.2f}, "
            f"completed_now={completed_now}"
        )

        return {
            "progress": progress,
            "completed_now": completed_now,
            "progress_percent": progress_percent,
        }

    def track_open(self, db: Session, user_id: str, book_id: str) -> Dict[str, Any]:
        """Count today as a reading day without crediting extra pages"""
        _require_id("user_id", user_id)
        _require_id("book_id", book_id)

        today = self.clock().date()

        try:
            self.ledger.touch_day(db, user_id, today)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error tracking book open: {str(e)}")
            raise StorageError("Failed to track book open") from e

        self.cache.invalidate_user(user_id)
        logger.info(f"Book opened: user={user_id}, book={book_id}, day={today}")

        return {"tracked": True, "date": today}

    def mark_book_read_by_slug(self, db: Session, user_id: str, slug: str, page: int) -> Dict[str, Any]:
        """
        Mark a book as read by its slug, without any percent threshold

        Kept apart from record_progress: it records the finished-book
        relation directly and leaves the progress row untouched.
        """
        _require_id("user_id", user_id)
        _require_id("slug", slug)
        _require_int("page", page, 0)

        book = self.catalog.get_book_by_slug(db, slug)

        try:
            completed_now = self.completion.mark_completed(db, user_id, book.id)
            db.commit()
        except (SQLAlchemyError, StorageError) as e:
            db.rollback()
            logger.error(f"Error marking book read: {str(e)}")
            raise StorageError("Failed to mark book as read") from e

        logger.info(f"Book marked read by slug: user={user_id}, slug={slug}, page={page}")

        return {
            "book_id": book.id,
            "slug": book.slug,
            "page": page,
            "completed_now": completed_now,
        }


# Global instance
reading_service = ReadingService()
