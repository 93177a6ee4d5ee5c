"""
Book catalog lookups
"""
from sqlalchemy.orm import Session

from reading_tracker.exceptions import NotFoundError
from reading_tracker.models import Book


class CatalogService:
    """Read-only access to the books table"""

    def get_book_by_slug(self, db: Session, slug: str) -> Book:
        book = db.query(Book).filter(Book.slug == slug).first()
        if not book:
            raise NotFoundError("Book not found")
        return book


# Global instance
catalog_service = CatalogService()
