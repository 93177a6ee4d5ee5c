"""
Book model - catalog entry used for display joins
"""
from sqlalchemy import Column, String, Integer, DateTime, func
from reading_tracker.database import Base
import uuid


class Book(Base):
    """
    Books table - owned by the catalog, read-only from the reading engine
    """
    __tablename__ = "books"
    
    id = Column(String(191), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    author = Column(String(255), nullable=False)
    cover_image = Column(String(500))
    category = Column(String(100))
    page_count = Column(Integer)
    created_at = Column(DateTime, server_default=func.now())
    
    def __repr__(self):
        return f"<Book(id={self.id}, slug={self.slug})>"
