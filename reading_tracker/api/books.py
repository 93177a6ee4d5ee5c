"""
Book-level reading endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from reading_tracker.api.deps import get_current_user_id
from reading_tracker.database import get_db
from reading_tracker.schemas.reading import SlugProgressUpdate, SlugProgressResponse
from reading_tracker.services.reading_service import reading_service

router = APIRouter(prefix="/api/books", tags=["books"])
logger = logging.getLogger(__name__)


@router.put("/progress", response_model=SlugProgressResponse)
async def mark_book_read(
    update: SlugProgressUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Mark a book as read by slug
    
    Unlike PUT /api/reading/progress there is no percent threshold: the
    book is recorded as finished on the first call.
    """
    result = reading_service.mark_book_read_by_slug(db, user_id, update.slug, update.page)
    
    return SlugProgressResponse(message="Progress updated", **result)
