"""
CourseGrid Schemas - Pydantic models for the curriculum grid.

This module exports all schema classes for:
- Curriculum: items and their prerequisite lists
- Progress: derived item status and persisted completion state
"""

# Curriculum schemas
from .curriculum import (
    CurriculumItem,
    Curriculum,
    split_prerequisites,
)

# Progress schemas
from .progress import (
    ItemStatus,
    CompletionSnapshot,
    TermProgress,
    ProgressSummary,
)

__all__ = [
    # Curriculum
    "CurriculumItem",
    "Curriculum",
    "split_prerequisites",
    # Progress
    "ItemStatus",
    "CompletionSnapshot",
    "TermProgress",
    "ProgressSummary",
]
