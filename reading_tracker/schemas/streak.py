"""
Pydantic schemas for streak endpoints
"""
from pydantic import BaseModel
from typing import Optional
from datetime import date


class StreakSummary(BaseModel):
    """Current streak and lifetime pages"""
    current_streak: int
    total_pages_read: int
    last_read_date: Optional[date] = None


class HeatmapEntry(BaseModel):
    """Pages read on one day"""
    date: date
    pages_read: int


class PruneResponse(BaseModel):
    """Result of retention pruning"""
    deleted: int
    retention_days: int


class StreakBrokenResponse(BaseModel):
    broken: bool
