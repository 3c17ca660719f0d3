"""
CurriculumLoader - Load the prerequisite grid from a YAML or JSON file.

The file holds a title and an ordered list of items:

    title: Ingenieria Civil
    items:
      - id: mat101
        name: Calculo I
        term: 1
      - id: mat102
        name: Calculo II
        prerequisites: [mat101]   # or "mat101,fis101"
        term: 2
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from coursegrid.schemas import Curriculum

from .graph import CurriculumGraph


logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = {".yaml", ".yml", ".json"}


class CurriculumError(ValueError):
    """Raised when a curriculum file cannot be turned into a usable graph."""


def parse_curriculum(data: Any) -> Curriculum:
    """Validate raw file contents against the Curriculum schema."""
    if isinstance(data, list):
        data = {"items": data}
    if not isinstance(data, dict):
        raise CurriculumError("Curriculum must be a mapping with an 'items' list")
    try:
        return Curriculum.model_validate(data)
    except ValidationError as e:
        raise CurriculumError(f"Invalid curriculum: {e}") from e


def build_graph(curriculum: Curriculum, check_cycles: bool = True) -> CurriculumGraph:
    """
    Build the graph and run integrity checks.

    Dangling prerequisite references are only logged; the affected items
    stay locked. Cycles raise CurriculumError unless check_cycles is False.
    """
    graph = CurriculumGraph(curriculum.items, title=curriculum.title)
    issues = graph.check()
    if check_cycles and issues.cycle:
        raise CurriculumError(
            f"Curriculum '{graph.title}' has a prerequisite cycle: "
            + "; ".join(line for line in issues.describe() if line.startswith("prerequisite cycle"))
        )
    return graph


class CurriculumLoader:
    """Read curriculum files from disk."""

    def __init__(self, path: str | Path):
        """
        Initialize loader with path to the curriculum file.

        Args:
            path: .yaml, .yml or .json file
        """
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Curriculum file not found: {path}")
        if self.path.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise CurriculumError(f"Unsupported curriculum format: {self.path.suffix}")

    def read(self) -> Any:
        """Return the raw parsed file contents."""
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                if self.path.suffix.lower() == ".json":
                    return json.load(f)
                return yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise CurriculumError(f"Could not parse {self.path}: {e}") from e

    def load_curriculum(self) -> Curriculum:
        return parse_curriculum(self.read())

    def load_graph(self, check_cycles: bool = True) -> CurriculumGraph:
        curriculum = self.load_curriculum()
        graph = build_graph(curriculum, check_cycles=check_cycles)
        logger.info(f"Loaded {len(graph)} items from {self.path}")
        return graph


def load_graph(path: str | Path, check_cycles: bool = True) -> CurriculumGraph:
    """Shortcut for CurriculumLoader(path).load_graph()."""
    return CurriculumLoader(path).load_graph(check_cycles=check_cycles)
