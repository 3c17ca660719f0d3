"""
Runtime settings for CourseGrid.

Values come from environment variables, optionally loaded from a .env file
at the project root:

    COURSEGRID_CURRICULUM    curriculum file (default: data/curriculum.yaml)
    COURSEGRID_PROGRESS_DB   SQLite progress file (default: ~/.coursegrid/progress.db)
    COURSEGRID_STORAGE_KEY   key of the completion blob (default: completed_items)
    COURSEGRID_LOG_LEVEL     logging level name (default: INFO)

Relative paths are resolved against the project root.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from coursegrid.grid.progress import DEFAULT_PROGRESS_DB, DEFAULT_STORAGE_KEY


PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_CURRICULUM = PROJECT_ROOT / "data" / "curriculum.yaml"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""

    curriculum_path: Path = DEFAULT_CURRICULUM
    progress_db: Path = DEFAULT_PROGRESS_DB
    storage_key: str = DEFAULT_STORAGE_KEY
    log_level: str = "INFO"


def _resolve_path(value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else PROJECT_ROOT / path


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Build settings from the environment.

    Args:
        env_file: .env file to load first (default: PROJECT_ROOT/.env).
            Variables already set in the environment take precedence.
    """
    load_dotenv(env_file or PROJECT_ROOT / ".env")

    curriculum = os.environ.get("COURSEGRID_CURRICULUM")
    progress_db = os.environ.get("COURSEGRID_PROGRESS_DB")
    return Settings(
        curriculum_path=_resolve_path(curriculum) if curriculum else DEFAULT_CURRICULUM,
        progress_db=_resolve_path(progress_db) if progress_db else DEFAULT_PROGRESS_DB,
        storage_key=os.environ.get("COURSEGRID_STORAGE_KEY") or DEFAULT_STORAGE_KEY,
        log_level=(os.environ.get("COURSEGRID_LOG_LEVEL") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO"):
    """Set up root logging the same way for the app and the scripts."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
