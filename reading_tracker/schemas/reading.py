"""
Pydantic schemas for reading progress requests and responses
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime


class ProgressUpdate(BaseModel):
    """Schema for reporting a reading position"""
    book_id: str = Field(..., min_length=1, description="Book id")
    current_page: int = Field(..., ge=0, description="Page reached, may exceed total_pages")
    total_pages: int = Field(..., gt=0, description="Total pages in the book")


class BookSummary(BaseModel):
    """Catalog fields shown alongside progress"""
    id: str
    title: str
    slug: str
    author: str
    cover_image: Optional[str] = None
    category: Optional[str] = None
    page_count: Optional[int] = None
    
    class Config:
        from_attributes = True


class ProgressRecord(BaseModel):
    """Stored progress for one (user, book) pair"""
    id: str
    user_id: str
    book_id: str
    current_page: int
    total_pages: int
    progress_percent: float
    is_completed: bool
    completed_at: Optional[datetime] = None
    last_read_at: datetime
    
    class Config:
        from_attributes = True


class ProgressWithBook(ProgressRecord):
    """Progress joined with its catalog entry"""
    book: Optional[BookSummary] = None


class ProgressUpdateResponse(BaseModel):
    """Response for a progress update"""
    message: str
    completed_now: bool
    progress_percent: float
    progress: ProgressRecord


class ContinueReadingItem(BookSummary):
    """Book in progress, flattened with its progress fields"""
    progress_id: str
    current_page: int
    total_pages: int
    progress_percent: float
    last_read_at: datetime


class CompletedBook(BookSummary):
    """Finished book with its completion date when known"""
    completed_at: Optional[datetime] = None
    progress_percent: float = 100.0


class TrackOpenRequest(BaseModel):
    """Schema for registering that a book was opened"""
    book_id: str = Field(..., min_length=1)


class TrackOpenResponse(BaseModel):
    tracked: bool
    date: date


class SlugProgressUpdate(BaseModel):
    """Schema for marking a book read by slug"""
    slug: str = Field(..., min_length=1)
    page: int = Field(0, ge=0)


class SlugProgressResponse(BaseModel):
    """Response for the slug-based mark-read path"""
    message: str
    book_id: str
    slug: str
    page: int
    completed_now: bool
