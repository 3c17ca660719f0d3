"""
Curriculum schemas for CourseGrid.

Defines Pydantic models for the static prerequisite grid:
- Curriculum items (courses) with ordered prerequisite lists
- The curriculum document as read from YAML/JSON
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional


def split_prerequisites(value) -> list[str]:
    """
    Normalize a prerequisite declaration into a list of item IDs.

    Accepts either a list of IDs or the comma-separated form used by the
    grid markup ("mat101,fis101"). Blank entries are dropped, order is kept.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


# -----------------------------------------------------------------------------
# Items
# -----------------------------------------------------------------------------

class CurriculumItem(BaseModel):
    """A single course in the grid."""
    id: str = Field(..., min_length=1)
    name: str
    prerequisites: list[str] = []  # item IDs, declared order preserved
    term: Optional[int] = Field(default=None, ge=1)  # grid column (semester)

    model_config = {"frozen": True}

    @field_validator('id')
    @classmethod
    def id_not_blank(cls, v):
        v = v.strip()
        if not v or "," in v:
            raise ValueError('Item id must be non-empty and contain no commas')
        return v

    @field_validator('prerequisites', mode='before')
    @classmethod
    def normalize_prerequisites(cls, v):
        return split_prerequisites(v)

    @model_validator(mode='after')
    def not_self_prerequisite(self):
        if self.id in self.prerequisites:
            raise ValueError(f'Item {self.id} lists itself as a prerequisite')
        return self


# -----------------------------------------------------------------------------
# Curriculum document
# -----------------------------------------------------------------------------

class Curriculum(BaseModel):
    """Curriculum file contents: a title plus items in display order."""
    title: str = "Curriculum"
    items: list[CurriculumItem]

    @model_validator(mode='after')
    def unique_ids(self):
        seen = set()
        duplicates = []
        for item in self.items:
            if item.id in seen:
                duplicates.append(item.id)
            seen.add(item.id)
        if duplicates:
            raise ValueError(f'Duplicate item ids: {", ".join(duplicates)}')
        return self
