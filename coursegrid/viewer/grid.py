"""
Grid renderer - Curriculum grid and item status display.

Provides:
- CSS for completed / locked / available items
- Term columns with item nodes
- Status indicators and progress header
"""

import html
from typing import Optional

from coursegrid.schemas import CurriculumItem, ItemStatus, ProgressSummary
from coursegrid.grid import CurriculumGraph


STATUS_INDICATORS = {
    ItemStatus.COMPLETED: "✓",
    ItemStatus.AVAILABLE: "○",
    ItemStatus.LOCKED: "◌",
}

STATUS_CLASSES = {
    ItemStatus.COMPLETED: "course completed",
    ItemStatus.AVAILABLE: "course",
    ItemStatus.LOCKED: "course locked",
}


def get_grid_css() -> str:
    """Get CSS styles for the curriculum grid."""
    return """
    <style>
    .grid {
        display: flex;
        gap: 1em;
        overflow-x: auto;
        padding: 1em 0;
    }
    .term-column {
        min-width: 160px;
        display: flex;
        flex-direction: column;
        gap: 0.6em;
    }
    .term-header {
        font-weight: 600;
        color: #1565C0;
        text-align: center;
        padding-bottom: 0.3em;
        border-bottom: 2px solid #e3f2fd;
    }
    .course {
        background: white;
        border: 1px solid #e0e0e0;
        border-radius: 8px;
        padding: 0.7em;
        font-size: 0.9em;
        cursor: pointer;
        transition: all 0.2s;
    }
    .course:hover {
        border-color: #1976D2;
    }
    .course.completed {
        background: #e8f5e9;
        border-color: #388E3C;
        color: #388E3C;
        text-decoration: line-through;
    }
    .course.locked {
        background: #f5f5f5;
        color: #999;
        cursor: not-allowed;
    }
    .course-id {
        font-size: 0.75em;
        color: #888;
    }
    .progress-header {
        font-size: 0.95em;
        color: #333;
        margin-bottom: 0.5em;
    }
    </style>
    """


def get_status_indicator(status: ItemStatus) -> str:
    """✓ completed, ○ available, ◌ locked."""
    return STATUS_INDICATORS[status]


def term_label(term: Optional[int]) -> str:
    return f"Term {term}" if term is not None else "Other"


def render_item(item: CurriculumItem, status: ItemStatus) -> str:
    """
    Render one grid node.

    Prerequisites are exposed as a comma-separated data attribute.
    """
    prerequisites = ",".join(item.prerequisites)
    return (
        f'<div class="{STATUS_CLASSES[status]}" id="{html.escape(item.id)}" '
        f'data-name="{html.escape(item.name)}" '
        f'data-prerequisites="{html.escape(prerequisites)}" '
        f'data-status="{status.value}">'
        f'{get_status_indicator(status)} {html.escape(item.name)}'
        f'<div class="course-id">{html.escape(item.id)}</div>'
        f'</div>'
    )


def render_grid(graph: CurriculumGraph, statuses: dict[str, ItemStatus]) -> str:
    """
    Render the full grid, one column per term.

    Args:
        graph: Curriculum graph
        statuses: Derived status per item ID (missing IDs render as locked)

    Returns:
        HTML string for the grid
    """
    parts = [get_grid_css(), '<div class="grid">']
    for term in graph.terms():
        parts.append('<div class="term-column">')
        parts.append(f'<div class="term-header">{term_label(term)}</div>')
        for item in graph.items_for_term(term):
            parts.append(render_item(item, statuses.get(item.id, ItemStatus.LOCKED)))
        parts.append('</div>')
    parts.append('</div>')
    return ''.join(parts)


def render_progress_header(summary: ProgressSummary) -> str:
    return (
        f'<div class="progress-header"><b>Progress:</b> '
        f'{summary.completed}/{summary.total_items} courses '
        f'({summary.completion_percent}%) | {summary.available} available | '
        f'{summary.locked} locked</div>'
    )
