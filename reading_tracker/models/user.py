"""
User model - owner of the booksRead counter
"""
from sqlalchemy import Column, String, Integer, DateTime, func
from reading_tracker.database import Base
import uuid


class User(Base):
    """
    Users table - identity lives upstream, this row only carries counters
    """
    __tablename__ = "users"
    
    id = Column(String(191), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    books_read = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime, server_default=func.now())
    
    def __repr__(self):
        return f"<User(id={self.id}, books_read={self.books_read})>"
