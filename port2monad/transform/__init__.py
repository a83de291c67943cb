"""Code transformation stage."""

from .diff import diff_preview, unified_diff
from .transformer import TransformerAgent, TransformOutcome, group_by_file

__all__ = ["TransformOutcome", "TransformerAgent", "diff_preview", "group_by_file", "unified_diff"]
