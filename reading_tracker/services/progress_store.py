"""
Progress store - per (user, book) reading progress and its display listings
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reading_tracker.config import settings
from reading_tracker.database import dialect_insert
from reading_tracker.models import Book, ReadingProgress, UserBook

logger = logging.getLogger(__name__)


def book_summary(book: Book) -> Dict[str, Any]:
    """Catalog fields shown next to progress entries"""
    return {
        "id": book.id,
        "title": book.title,
        "slug": book.slug,
        "author": book.author,
        "cover_image": book.cover_image,
        "category": book.category,
        "page_count": book.page_count,
    }


class ProgressStore:
    """
    Storage and read side for ReadingProgress

    Read methods are display-only paths: on a storage failure they log and
    return an empty result instead of raising.
    """

    def find(self, db: Session, user_id: str, book_id: str) -> Optional[ReadingProgress]:
        return db.query(ReadingProgress).filter(
            ReadingProgress.user_id == user_id,
            ReadingProgress.book_id == book_id
        ).first()

    def save(
        self,
        db: Session,
        existing: Optional[ReadingProgress],
        user_id: str,
        book_id: str,
        current_page: int,
        total_pages: int,
        progress_percent: float,
        is_completed: bool,
        now: datetime
    ) -> ReadingProgress:
        """
        Create or update the progress row

        completed_at is stamped only on the first transition into completed;
        is_completed never goes back to False. On PostgreSQL and SQLite the
        write is a single insert-or-update on (user_id, book_id), so a row
        created by a concurrent event after `existing` was read is updated
        instead of colliding with it.
        """
        stmt = dialect_insert(db, ReadingProgress)
        if stmt is not None:
            stmt = stmt.values(
                user_id=user_id,
                book_id=book_id,
                current_page=current_page,
                total_pages=total_pages,
                progress_percent=progress_percent,
                is_completed=is_completed,
                completed_at=now if is_completed else None,
                last_read_at=now
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "book_id"],
                set_={
                    "current_page": stmt.excluded.current_page,
                    "total_pages": stmt.excluded.total_pages,
                    "progress_percent": stmt.excluded.progress_percent,
                    "is_completed": or_(ReadingProgress.is_completed, stmt.excluded.is_completed),
                    "completed_at": func.coalesce(ReadingProgress.completed_at, stmt.excluded.completed_at),
                    "last_read_at": stmt.excluded.last_read_at,
                },
            )
            db.connection().execute(stmt)

            return db.query(ReadingProgress).filter(
                ReadingProgress.user_id == user_id,
                ReadingProgress.book_id == book_id
            ).populate_existing().one()

        if existing is None:
            record = ReadingProgress(
                user_id=user_id,
                book_id=book_id,
                current_page=current_page,
                total_pages=total_pages,
                progress_percent=progress_percent,
                is_completed=is_completed,
                completed_at=now if is_completed else None,
                last_read_at=now
            )
            db.add(record)
        else:
            record = existing
            if is_completed and not record.is_completed:
                record.completed_at = now
            record.is_completed = record.is_completed or is_completed
            record.current_page = current_page
            record.total_pages = total_pages
            record.progress_percent = progress_percent
            record.last_read_at = now

        db.flush()
        return record

    def get_progress(self, db: Session, user_id: str, book_id: str) -> Optional[ReadingProgress]:
        """Progress for one book, with its catalog entry joined"""
        try:
            return self.find(db, user_id, book_id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting book progress: {str(e)}")
            return None

    def list_progress(self, db: Session, user_id: str) -> List[ReadingProgress]:
        """All progress rows for a user, most recently read first"""
        try:
            return db.query(ReadingProgress).filter(
                ReadingProgress.user_id == user_id
            ).order_by(ReadingProgress.last_read_at.desc()).all()
        except SQLAlchemyError as e:
            logger.error(f"Error getting user reading progress: {str(e)}")
            return []

    def list_continue_reading(self, db: Session, user_id: str, limit: int = None) -> List[Dict[str, Any]]:
        """
        Books in progress and below the completion threshold

        Each entry is the book summary flattened together with its progress
        fields; `id` is always the book id.
        """
        limit = limit or settings.CONTINUE_READING_LIMIT

        try:
            records = db.query(ReadingProgress).filter(
                ReadingProgress.user_id == user_id,
                ReadingProgress.is_completed.is_(False),
                ReadingProgress.progress_percent < settings.COMPLETION_THRESHOLD_PERCENT
            ).order_by(ReadingProgress.last_read_at.desc()).limit(limit).all()
        except SQLAlchemyError as e:
            logger.error(f"Error getting continue reading: {str(e)}")
            return []

        return [
            {
                **book_summary(record.book),
                "progress_id": record.id,
                "current_page": record.current_page,
                "total_pages": record.total_pages,
                "progress_percent": record.progress_percent,
                "last_read_at": record.last_read_at,
            }
            for record in records
            if record.book is not None
        ]

    def list_completed(self, db: Session, user_id: str) -> List[Dict[str, Any]]:
        """
        Finished books, newest completion first

        Books marked finished without a progress row (the slug path) have no
        completion date, count as 100% and sort last.
        """
        try:
            user_books = db.query(UserBook).filter(UserBook.user_id == user_id).all()
            book_ids = [ub.book_id for ub in user_books]
            progress_by_book = {
                p.book_id: p
                for p in db.query(ReadingProgress).filter(
                    ReadingProgress.user_id == user_id,
                    ReadingProgress.book_id.in_(book_ids)
                ).all()
            } if book_ids else {}
        except SQLAlchemyError as e:
            logger.error(f"Error getting completed books: {str(e)}")
            return []

        completed = []
        for ub in user_books:
            if ub.book is None:
                continue
            progress = progress_by_book.get(ub.book_id)
            completed.append({
                **book_summary(ub.book),
                "completed_at": progress.completed_at if progress else None,
                "progress_percent": progress.progress_percent if progress else 100.0,
            })

        dated = [c for c in completed if c["completed_at"] is not None]
        undated = [c for c in completed if c["completed_at"] is None]
        dated.sort(key=lambda c: c["completed_at"], reverse=True)

        return dated + undated


# Global instance
progress_store = ProgressStore()
