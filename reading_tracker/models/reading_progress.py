"""
ReadingProgress model - one row per (user, book)
"""
from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime,
    ForeignKey, UniqueConstraint, Index, func
)
from sqlalchemy.orm import relationship
from reading_tracker.database import Base
import uuid


class ReadingProgress(Base):
    """
    Reading progress table - page position and completion state per book
    
    progress_percent is always derived from current_page / total_pages and
    is_completed never flips back to False once set.
    """
    __tablename__ = "reading_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="reading_progress_user_book_key"),
        Index("reading_progress_last_read_at_idx", "last_read_at"),
    )
    
    id = Column(String(191), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(191), ForeignKey("users.id"), nullable=False, index=True)
    book_id = Column(String(191), ForeignKey("books.id"), nullable=False)
    current_page = Column(Integer, nullable=False)
    total_pages = Column(Integer, nullable=False)
    progress_percent = Column(Float, nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)
    last_read_at = Column(DateTime, nullable=False, server_default=func.now())
    
    book = relationship("Book", lazy="joined")
    
    def __repr__(self):
        return (
            f"<ReadingProgress(user_id={self.user_id}, book_id={self.book_id}, "
            f"progress={self.progress_percent}%, completed={self.is_completed})>"
        )
