#!/usr/bin/env python3
"""
check_curriculum.py - Validate a curriculum file and print the grid state.

Checks:
- Schema (unique ids, no self-prerequisites)
- Dangling prerequisite references
- Prerequisite cycles

Then prints every course with its derived status for the stored progress.

Usage:
  python scripts/check_curriculum.py
  python scripts/check_curriculum.py --curriculum data/curriculum.yaml --progress-db /tmp/progress.db
  python scripts/check_curriculum.py --order
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from coursegrid.grid import (
    CompletionStore,
    CurriculumError,
    CurriculumGraph,
    CurriculumLoader,
    PrerequisiteEngine,
)
from coursegrid.utils import configure_logging, load_settings
from coursegrid.viewer import get_status_indicator, term_label, display_name

logger = logging.getLogger(__name__)


def print_grid(engine: PrerequisiteEngine):
    """Print courses grouped by term with status indicators."""
    statuses = engine.derive_all()
    for term in engine.graph.terms():
        print(f"\n{term_label(term)}")
        for item in engine.graph.items_for_term(term):
            status = statuses[item.id]
            line = f"  {get_status_indicator(status)} {item.id:<10} {item.name}"
            missing = engine.missing_prerequisites(item.id)
            if missing:
                line += f"  (needs: {', '.join(display_name(m) for m in missing)})"
            print(line)

    summary = engine.progress_summary()
    print(
        f"\nCompleted {summary.completed}/{summary.total_items} "
        f"({summary.completion_percent}%), {summary.available} available, {summary.locked} locked"
    )


def main(argv=None):
    settings = load_settings()

    parser = argparse.ArgumentParser(
        description="Validate a curriculum file and show derived course status",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--curriculum",
        type=Path,
        default=settings.curriculum_path,
        help="Path to curriculum YAML/JSON file"
    )
    parser.add_argument(
        "--progress-db",
        type=Path,
        default=settings.progress_db,
        help="Path to progress database"
    )
    parser.add_argument(
        "--key",
        default=settings.storage_key,
        help="Storage key of the completion set"
    )
    parser.add_argument(
        "--order",
        action="store_true",
        help="Also print a study order (prerequisites first)"
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level"
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    logger.info(f"Loading curriculum: {args.curriculum}")
    try:
        loader = CurriculumLoader(args.curriculum)
        curriculum = loader.load_curriculum()
    except (FileNotFoundError, CurriculumError) as e:
        logger.error(str(e))
        sys.exit(1)

    graph = CurriculumGraph(curriculum.items, title=curriculum.title)
    logger.info(f"Loaded {len(graph)} items")

    logger.info("Running integrity checks...")
    issues = graph.check()
    if issues.cycle:
        logger.error("Prerequisite cycle found, the grid cannot be used")
        sys.exit(1)
    if issues.ok:
        logger.info("  All integrity checks passed!")
    else:
        logger.warning(f"Found {len(issues.describe())} integrity issues")

    # Read-only: stored progress is never rewritten by a check
    engine = PrerequisiteEngine(graph, CompletionStore(args.progress_db, key=args.key))
    engine.initialize(persist_repairs=False)
    print_grid(engine)

    if args.order:
        print("\nStudy order:")
        for position, item_id in enumerate(graph.study_order(), 1):
            print(f"  {position:>3}. {item_id} {graph.name_of(item_id)}")


if __name__ == "__main__":
    main()
