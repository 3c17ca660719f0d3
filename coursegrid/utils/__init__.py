"""CourseGrid utilities."""

from .config import Settings, load_settings, configure_logging

__all__ = ["Settings", "load_settings", "configure_logging"]
