"""
UserBook model - finished-book membership
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from reading_tracker.database import Base


class UserBook(Base):
    """
    User books table - a (book, user) pair exists once the user finished the book
    """
    __tablename__ = "user_books"
    
    book_id = Column(String(191), ForeignKey("books.id"), primary_key=True)
    user_id = Column(String(191), ForeignKey("users.id"), primary_key=True, index=True)
    created_at = Column(DateTime, server_default=func.now())
    
    book = relationship("Book", lazy="joined")
    
    def __repr__(self):
        return f"<UserBook(user_id={self.user_id}, book_id={self.book_id})>"
