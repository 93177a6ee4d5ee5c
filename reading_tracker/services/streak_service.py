"""
Streak query service - current streak, heatmaps and retention pruning
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reading_tracker.config import settings
from reading_tracker.exceptions import StorageError, ValidationError
from reading_tracker.services.streak_ledger import streak_ledger
from reading_tracker.utils.cache import cache_service
from reading_tracker.utils.clock import local_now

logger = logging.getLogger(__name__)


class StreakService:
    """
    Derives engagement views from the streak ledger

    Reads never mutate the ledger. Pruning is the only write and only
    touches rows strictly outside the retention window.
    """

    def __init__(self, ledger=streak_ledger, cache=cache_service, clock: Callable[[], datetime] = local_now):
        self.ledger = ledger
        self.cache = cache
        self.clock = clock

    def today(self) -> date:
        return self.clock().date()

    def current_streak(self, db: Session, user_id: str) -> Dict[str, Any]:
        """
        Consecutive active days ending today

        Returns:
            current_streak, total_pages_read over every stored day, and
            last_read_date, which is today whenever the streak is non-zero
        """
        today = self.today()
        cache_key = self.cache.streak_key(user_id, today)

        cached = self.cache.get(cache_key)
        if cached is not None:
            last_read = cached["last_read_date"]
            cached["last_read_date"] = date.fromisoformat(last_read) if last_read else None
            return cached

        try:
            active = set(self.ledger.active_days(db, user_id, until=today))
            total_pages_read = self.ledger.total_pages(db, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Error calculating reading streak: {str(e)}")
            return {"current_streak": 0, "total_pages_read": 0, "last_read_date": None}

        current_streak = 0
        check_date = today
        while check_date in active:
            current_streak += 1
            check_date -= timedelta(days=1)

        result = {
            "current_streak": current_streak,
            "total_pages_read": total_pages_read,
            "last_read_date": today if current_streak > 0 else None,
        }

        self.cache.set(cache_key, {
            **result,
            "last_read_date": result["last_read_date"].isoformat() if result["last_read_date"] else None,
        })

        return result

    def heatmap(self, db: Session, user_id: str, year: int) -> List[Dict[str, Any]]:
        """
        Sparse per-day activity for Jan 1 - Dec 31 of `year`, ascending

        Days without a ledger row are absent rather than zero-filled.
        """
        if not 1 <= year <= 9999:
            raise ValidationError("year must be between 1 and 9999")

        cache_key = self.cache.heatmap_key(user_id, year)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return [
                {"date": date.fromisoformat(entry["date"]), "pages_read": entry["pages_read"]}
                for entry in cached
            ]

        try:
            rows = self.ledger.days_between(db, user_id, date(year, 1, 1), date(year, 12, 31))
        except SQLAlchemyError as e:
            logger.error(f"Error getting reading heatmap: {str(e)}")
            return []

        heatmap = [{"date": row.date, "pages_read": row.pages_read} for row in rows]

        self.cache.set(cache_key, [
            {"date": entry["date"].isoformat(), "pages_read": entry["pages_read"]}
            for entry in heatmap
        ])

        return heatmap

    def prune_old_streaks(self, db: Session, user_id: str, retention_days: int = None) -> int:
        """
        Delete ledger rows dated before today - retention_days

        Returns:
            Number of rows deleted; a repeated run deletes nothing
        """
        if retention_days is None:
            retention_days = settings.STREAK_RETENTION_DAYS
        if retention_days < 0:
            raise ValidationError("retention_days must be >= 0")

        cutoff = self.today() - timedelta(days=retention_days)

        try:
            deleted = self.ledger.delete_before(db, user_id, cutoff)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting old streaks: {str(e)}")
            raise StorageError("Failed to delete old streaks") from e

        if deleted:
            self.cache.invalidate_user(user_id)

        logger.info(f"Pruned {deleted} streak rows for user {user_id} before {cutoff}")

        return deleted

    def prune_all_users(self, db: Session, retention_days: int = None, dry_run: bool = False) -> Dict[str, int]:
        """
        Run retention pruning for every user that has ledger rows

        With dry_run the rows are only counted.
        """
        if retention_days is None:
            retention_days = settings.STREAK_RETENTION_DAYS
        if retention_days < 0:
            raise ValidationError("retention_days must be >= 0")

        cutoff = self.today() - timedelta(days=retention_days)
        results = {}

        try:
            user_ids = self.ledger.users_with_rows(db)
        except SQLAlchemyError as e:
            raise StorageError("Failed to list streak users") from e

        for user_id in user_ids:
            if dry_run:
                try:
                    results[user_id] = self.ledger.count_before(db, user_id, cutoff)
                except SQLAlchemyError as e:
                    logger.error(f"Error counting old streaks: {str(e)}")
                    raise StorageError("Failed to count old streaks") from e
            else:
                results[user_id] = self.prune_old_streaks(db, user_id, retention_days)

        return results

    def check_streak_broken(self, db: Session, user_id: str) -> bool:
        """
        True if yesterday has no ledger row or zero pages

        Only reports; nothing is reset or repaired.
        """
        yesterday = self.today() - timedelta(days=1)

        try:
            row = self.ledger.get_day(db, user_id, yesterday)
        except SQLAlchemyError as e:
            logger.error(f"Error checking streak: {str(e)}")
            raise StorageError("Failed to check streak") from e

        return row is None or row.pages_read == 0


# Global instance
streak_service = StreakService()
