"""
Book completion service
Percent-threshold detection and the one-time "book finished" side effect
"""
import logging
from typing import Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from reading_tracker.config import settings
from reading_tracker.database import dialect_insert
from reading_tracker.exceptions import StorageError
from reading_tracker.models import User, UserBook

logger = logging.getLogger(__name__)


class CompletionService:
    """
    Service for detecting and recording book completion

    Algorithm: progress_percent = current_page / total_pages * 100
    Threshold: progress_percent >= 90 = completed

    Recording a completion inserts a (book, user) row into user_books and
    bumps users.books_read. Both happen at most once per pair, no matter how
    many times the completion path is triggered.
    """

    def __init__(self, threshold: float = None):
        self.threshold = settings.COMPLETION_THRESHOLD_PERCENT if threshold is None else threshold

    def calculate_completion(self, current_page: int, total_pages: int) -> Tuple[bool, float]:
        """
        Calculate completion status for a page position

        Args:
            current_page: Page the reader reached (not clamped to total_pages)
            total_pages: Total page count, must be positive

        Returns:
            Tuple of (is_completed, progress_percent)
        """
        progress_percent = current_page * 100 / total_pages
        is_completed = progress_percent >= self.threshold

        return is_completed, progress_percent

    def is_marked(self, db: Session, user_id: str, book_id: str) -> bool:
        return db.query(UserBook).filter(
            UserBook.book_id == book_id,
            UserBook.user_id == user_id
        ).first() is not None

    def mark_completed(self, db: Session, user_id: str, book_id: str) -> bool:
        """
        Record that a user finished a book

        Does not commit; the caller owns the transaction.

        Returns:
            True if this call created the relation and bumped the counter,
            False if the book was already marked as finished

        Raises:
            StorageError: the user has no counter row to increment
        """
        if self.is_marked(db, user_id, book_id):
            logger.info(f"Completion already recorded: user={user_id}, book={book_id}")
            return False

        stmt = dialect_insert(db, UserBook)
        if stmt is not None:
            # A concurrent completion may land between the check and the insert
            result = db.connection().execute(
                stmt.values(book_id=book_id, user_id=user_id)
                .on_conflict_do_nothing(index_elements=["book_id", "user_id"])
            )
            if result.rowcount != 1:
                logger.info(f"Completion raced and was already recorded: user={user_id}, book={book_id}")
                return False
        else:
            db.add(UserBook(book_id=book_id, user_id=user_id))
            db.flush()

        result = db.execute(
            update(User)
            .where(User.id == user_id)
            .values(books_read=User.books_read + 1)
        )
        if result.rowcount != 1:
            raise StorageError(f"No booksRead counter for user {user_id}")

        logger.info(f"Book completed: user={user_id}, book={book_id}")

        return True


# Global instance
completion_service = CompletionService()
