"""
Requirements renderer - Missing-prerequisite list for locked courses.

Unknown prerequisite IDs are shown with a placeholder label.
"""

import html

from coursegrid.grid import MissingPrerequisite


UNKNOWN_ITEM_LABEL = "Unknown course"


def display_name(missing: MissingPrerequisite) -> str:
    """Name to show for a missing prerequisite, falling back to the placeholder."""
    return missing.name if missing.name is not None else UNKNOWN_ITEM_LABEL


def get_requirements_css() -> str:
    """Get CSS styles for the requirements list."""
    return """
    <style>
    .requirements-box {
        background: #fff3e0;
        border-left: 4px solid #e65100;
        border-radius: 8px;
        padding: 1em 1.2em;
    }
    .requirements-title {
        font-weight: 600;
        color: #e65100;
        margin-bottom: 0.5em;
    }
    .requirements-list {
        margin: 0;
        padding-left: 1.2em;
    }
    .requirements-list li.unknown {
        color: #999;
        font-style: italic;
    }
    </style>
    """


def render_missing_list(missing: list[MissingPrerequisite]) -> str:
    """
    Render the list of missing prerequisites.

    Args:
        missing: Unmet prerequisites in declared order

    Returns:
        HTML <ul> with one entry per prerequisite
    """
    parts = ['<ul class="requirements-list">']
    for entry in missing:
        css_class = ' class="unknown"' if entry.name is None else ''
        parts.append(f'<li{css_class}>{html.escape(display_name(entry))}</li>')
    parts.append('</ul>')
    return ''.join(parts)


def render_requirements(item_name: str, missing: list[MissingPrerequisite]) -> str:
    """Render the full explanation box for a locked course."""
    parts = [get_requirements_css(), '<div class="requirements-box">']
    parts.append(
        f'<div class="requirements-title">To take {html.escape(item_name)} you still need:</div>'
    )
    parts.append(render_missing_list(missing))
    parts.append('</div>')
    return ''.join(parts)
