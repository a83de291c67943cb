"""Persistence helpers for pipeline artifacts."""

from .pipeline_cache import PipelineCache, Stage

__all__ = ["PipelineCache", "Stage"]
