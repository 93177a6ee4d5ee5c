"""
Retention pruning for every user's reading streak days

Usage:
    python scripts/prune_streaks.py                      # default retention
    python scripts/prune_streaks.py --retention-days 30
    python scripts/prune_streaks.py --dry-run            # count only
"""
import argparse
import logging
import sys

from reading_tracker.config import settings
from reading_tracker.database import SessionLocal
from reading_tracker.exceptions import AppError
from reading_tracker.services.streak_service import streak_service

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("prune_streaks")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Delete reading streak days outside the retention window")
    parser.add_argument("--retention-days", type=int, default=settings.STREAK_RETENTION_DAYS)
    parser.add_argument("--dry-run", action="store_true", help="Count rows without deleting them")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        results = streak_service.prune_all_users(db, args.retention_days, dry_run=args.dry_run)
    except AppError as e:
        logger.error(f"Pruning failed: {e.message}")
        return 1
    finally:
        db.close()

    verb = "would delete" if args.dry_run else "deleted"
    for user_id, count in results.items():
        if count:
            logger.info(f"{user_id}: {verb} {count} rows")
    logger.info(f"{len(results)} users checked, {verb} {sum(results.values())} rows in total")

    return 0


if __name__ == "__main__":
    sys.exit(main())
