"""
CourseGrid Grid - Runtime components for the prerequisite grid.

This module provides:
- CurriculumLoader: Load the item graph from YAML/JSON
- CurriculumGraph: Item index with reverse-dependency lookup
- CompletionStore: Persist completed item IDs
- PrerequisiteEngine: Status derivation, toggle and cascade retraction
"""

from .graph import (
    CurriculumGraph,
    GraphIssues,
)

from .loader import (
    CurriculumLoader,
    CurriculumError,
    parse_curriculum,
    build_graph,
    load_graph,
)

from .progress import (
    CompletionStore,
    decode_snapshot,
    DEFAULT_PROGRESS_DIR,
    DEFAULT_PROGRESS_DB,
    DEFAULT_STORAGE_KEY,
)

from .engine import (
    PrerequisiteEngine,
    CompletionBackend,
    MissingPrerequisite,
    ToggleResult,
    derive_status,
    cascade_retract,
    missing_prerequisites,
    close_downward,
)

__all__ = [
    # Graph
    "CurriculumGraph",
    "GraphIssues",
    # Loader
    "CurriculumLoader",
    "CurriculumError",
    "parse_curriculum",
    "build_graph",
    "load_graph",
    # Progress
    "CompletionStore",
    "decode_snapshot",
    "DEFAULT_PROGRESS_DIR",
    "DEFAULT_PROGRESS_DB",
    "DEFAULT_STORAGE_KEY",
    # Engine
    "PrerequisiteEngine",
    "CompletionBackend",
    "MissingPrerequisite",
    "ToggleResult",
    "derive_status",
    "cascade_retract",
    "missing_prerequisites",
    "close_downward",
]
