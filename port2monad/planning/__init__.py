"""Migration planning."""

from .planner import MigrationPlanner, fallback_recommendation, normalize_recommendation

__all__ = ["MigrationPlanner", "fallback_recommendation", "normalize_recommendation"]
