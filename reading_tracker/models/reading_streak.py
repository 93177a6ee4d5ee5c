"""
ReadingStreak model - per-day activity ledger
"""
from sqlalchemy import Column, String, Integer, Date, DateTime, UniqueConstraint, func
from reading_tracker.database import Base
import uuid


class ReadingStreak(Base):
    """
    Reading streaks table - one row per (user, local calendar day)
    
    pages_read only ever grows; a day with pages_read > 0 is an active day.
    """
    __tablename__ = "reading_streaks"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="reading_streaks_user_date_key"),
    )
    
    id = Column(String(191), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(191), nullable=False, index=True)
    date = Column(Date, nullable=False)
    pages_read = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    
    def __repr__(self):
        return f"<ReadingStreak(user_id={self.user_id}, date={self.date}, pages={self.pages_read})>"
