"""CourseGrid - Track course completion over a prerequisite grid."""

__version__ = "0.1.0"
