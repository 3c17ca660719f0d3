"""
CourseGrid Viewer - Rendering components for the curriculum grid.

This module provides:
- Grid rendering with completed / locked / available styling
- Missing-prerequisite explanation for locked courses
"""

from .grid import (
    get_grid_css,
    get_status_indicator,
    term_label,
    render_item,
    render_grid,
    render_progress_header,
    STATUS_INDICATORS,
    STATUS_CLASSES,
)

from .requirements import (
    get_requirements_css,
    display_name,
    render_missing_list,
    render_requirements,
    UNKNOWN_ITEM_LABEL,
)

__all__ = [
    # Grid
    "get_grid_css",
    "get_status_indicator",
    "term_label",
    "render_item",
    "render_grid",
    "render_progress_header",
    "STATUS_INDICATORS",
    "STATUS_CLASSES",
    # Requirements
    "get_requirements_css",
    "display_name",
    "render_missing_list",
    "render_requirements",
    "UNKNOWN_ITEM_LABEL",
]
