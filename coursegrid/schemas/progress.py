"""
Progress schemas for CourseGrid.

Defines the derived item status and the persisted completion blob.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class ItemStatus(str, Enum):
    COMPLETED = "completed"
    LOCKED = "locked"        # at least one prerequisite incomplete
    AVAILABLE = "available"  # all prerequisites complete, item itself not


class CompletionSnapshot(BaseModel):
    """Completion set as stored in the key-value store."""
    completed: list[str] = []
    saved_at: Optional[datetime] = None


class TermProgress(BaseModel):
    term: Optional[int] = None  # None groups items without a term
    completed: int = 0
    total: int = 0


class ProgressSummary(BaseModel):
    total_items: int
    completed: int
    available: int
    locked: int
    completion_percent: float = Field(..., ge=0, le=100)
    terms: list[TermProgress] = []
