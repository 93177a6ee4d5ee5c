"""
Streak ledger - durable per-day reading activity

All writes are additive: a day's pages_read is created with at least one
page and only ever incremented afterwards.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from reading_tracker.database import dialect_insert
from reading_tracker.models import ReadingStreak

logger = logging.getLogger(__name__)


class StreakLedger:
    """Storage operations for ReadingStreak rows"""

    def add_pages(self, db: Session, user_id: str, day: date, delta: int) -> None:
        """
        Credit a page delta to the user's row for `day`

        A new row starts at max(1, delta) so the first event of a day always
        counts; an existing row grows by max(0, delta) and never shrinks when
        the reader moves backwards.
        """
        initial = max(1, delta)
        increment = max(0, delta)

        stmt = dialect_insert(db, ReadingStreak)
        if stmt is not None:
            stmt = stmt.values(user_id=user_id, date=day, pages_read=initial)
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "date"],
                set_={"pages_read": ReadingStreak.pages_read + increment},
            )
            db.connection().execute(stmt)
        else:
            row = self.get_day(db, user_id, day)
            if row is None:
                db.add(ReadingStreak(user_id=user_id, date=day, pages_read=initial))
            else:
                row.pages_read = row.pages_read + increment
            db.flush()

        logger.debug(f"Streak credit: user={user_id}, day={day}, delta={delta}")

    def touch_day(self, db: Session, user_id: str, day: date) -> None:
        """Create the day's row with one page if missing; leave an existing row alone"""
        stmt = dialect_insert(db, ReadingStreak)
        if stmt is not None:
            stmt = stmt.values(user_id=user_id, date=day, pages_read=1)
            db.connection().execute(stmt.on_conflict_do_nothing(index_elements=["user_id", "date"]))
            return

        if self.get_day(db, user_id, day) is None:
            db.add(ReadingStreak(user_id=user_id, date=day, pages_read=1))
            db.flush()

    def get_day(self, db: Session, user_id: str, day: date) -> Optional[ReadingStreak]:
        return db.query(ReadingStreak).filter(
            ReadingStreak.user_id == user_id,
            ReadingStreak.date == day
        ).first()

    def active_days(self, db: Session, user_id: str, until: date) -> List[date]:
        """Dates up to and including `until` with at least one page read, newest first"""
        rows = db.query(ReadingStreak.date).filter(
            ReadingStreak.user_id == user_id,
            ReadingStreak.date <= until,
            ReadingStreak.pages_read > 0
        ).order_by(ReadingStreak.date.desc()).all()
        return [row[0] for row in rows]

    def total_pages(self, db: Session, user_id: str) -> int:
        total = db.query(func.coalesce(func.sum(ReadingStreak.pages_read), 0)).filter(
            ReadingStreak.user_id == user_id
        ).scalar()
        return int(total or 0)

    def days_between(self, db: Session, user_id: str, start: date, end: date) -> List[ReadingStreak]:
        """Rows with start <= date <= end, ascending"""
        return db.query(ReadingStreak).filter(
            ReadingStreak.user_id == user_id,
            ReadingStreak.date >= start,
            ReadingStreak.date <= end
        ).order_by(ReadingStreak.date.asc()).all()

    def count_before(self, db: Session, user_id: str, cutoff: date) -> int:
        return db.query(func.count(ReadingStreak.id)).filter(
            ReadingStreak.user_id == user_id,
            ReadingStreak.date < cutoff
        ).scalar() or 0

    def delete_before(self, db: Session, user_id: str, cutoff: date) -> int:
        """Delete-by-predicate of every row strictly older than `cutoff`"""
        return db.query(ReadingStreak).filter(
            ReadingStreak.user_id == user_id,
            ReadingStreak.date < cutoff
        ).delete(synchronize_session=False)

    def users_with_rows(self, db: Session) -> List[str]:
        rows = db.query(ReadingStreak.user_id).distinct().order_by(ReadingStreak.user_id).all()
        return [row[0] for row in rows]


# Global instance
streak_ledger = StreakLedger()
