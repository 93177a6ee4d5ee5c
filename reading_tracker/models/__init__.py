"""
Database models package
"""
from reading_tracker.models.user import User
from reading_tracker.models.book import Book
from reading_tracker.models.reading_progress import ReadingProgress
from reading_tracker.models.reading_streak import ReadingStreak
from reading_tracker.models.user_book import UserBook

__all__ = ["User", "Book", "ReadingProgress", "ReadingStreak", "UserBook"]
