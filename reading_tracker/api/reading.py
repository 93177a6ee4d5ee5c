"""
Reading progress and streak API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Path
from sqlalchemy.orm import Session
from typing import List
import logging

from reading_tracker.api.deps import get_current_user_id
from reading_tracker.config import settings
from reading_tracker.database import get_db
from reading_tracker.schemas.reading import (
    ProgressUpdate, ProgressUpdateResponse, ProgressRecord, ProgressWithBook,
    ContinueReadingItem, CompletedBook, TrackOpenRequest, TrackOpenResponse
)
from reading_tracker.schemas.streak import (
    StreakSummary, HeatmapEntry, PruneResponse, StreakBrokenResponse
)
from reading_tracker.services.progress_store import progress_store
from reading_tracker.services.reading_service import reading_service
from reading_tracker.services.streak_service import streak_service

router = APIRouter(prefix="/api/reading", tags=["reading"])
logger = logging.getLogger(__name__)


@router.put("/progress", response_model=ProgressUpdateResponse)
async def update_progress(
    update: ProgressUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Record the page a user reached in a book
    
    - Updates the stored progress and percent
    - Credits today's streak with the page delta
    - Marks the book finished once, at >= 90%
    """
    result = reading_service.record_progress(
        db, user_id, update.book_id, update.current_page, update.total_pages
    )
    
    return ProgressUpdateResponse(
        message=(
            "Congratulations! Book completed!"
            if result["completed_now"]
            else "Progress updated successfully"
        ),
        completed_now=result["completed_now"],
        progress_percent=result["progress_percent"],
        progress=ProgressRecord.model_validate(result["progress"])
    )


@router.get("/progress", response_model=List[ProgressWithBook])
async def list_progress(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """All reading progress for the user, most recently read first"""
    return progress_store.list_progress(db, user_id)


@router.get("/progress/{book_id}", response_model=ProgressWithBook)
async def get_book_progress(
    book_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Reading progress for one book"""
    progress = progress_store.get_progress(db, user_id, book_id)
    
    if progress is None:
        raise HTTPException(status_code=404, detail="Reading progress not found")
    
    return progress


@router.get("/continue", response_model=List[ContinueReadingItem])
async def continue_reading(
    limit: int = Query(settings.CONTINUE_READING_LIMIT, ge=1, le=50),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Books started but not yet completed"""
    return progress_store.list_continue_reading(db, user_id, limit)


@router.get("/completed", response_model=List[CompletedBook])
async def completed_books(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Books the user finished, newest first"""
    return progress_store.list_completed(db, user_id)


@router.get("/streak", response_model=StreakSummary)
async def get_streak(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Current reading streak and total pages read"""
    return streak_service.current_streak(db, user_id)


@router.get("/heatmap/{year}", response_model=List[HeatmapEntry])
async def get_heatmap(
    year: int = Path(..., ge=1, le=9999),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Per-day pages read for a calendar year; days without reading are omitted"""
    return streak_service.heatmap(db, user_id, year)


@router.post("/track-open", response_model=TrackOpenResponse)
async def track_open(
    request: TrackOpenRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Count today as a reading day when a book is opened"""
    return reading_service.track_open(db, user_id, request.book_id)


@router.delete("/streak/old", response_model=PruneResponse)
async def delete_old_streaks(
    retention_days: int = Query(settings.STREAK_RETENTION_DAYS, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete streak days older than the retention window"""
    deleted = streak_service.prune_old_streaks(db, user_id, retention_days)
    
    return PruneResponse(deleted=deleted, retention_days=retention_days)


@router.get("/streak/broken", response_model=StreakBrokenResponse)
async def streak_broken(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Whether yesterday had no reading activity"""
    return StreakBrokenResponse(broken=streak_service.check_streak_broken(db, user_id))
