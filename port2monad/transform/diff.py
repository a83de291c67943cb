"""Unified diff helpers for transformed files."""

from __future__ import annotations

import difflib

DIFF_PREVIEW_LIMIT = 500


def unified_diff(original: str, transformed: str, file_path: str) -> str:
    """Return a unified diff of the two contents, empty when they are equal."""
    if original == transformed:
        return ""
    lines = difflib.unified_diff(
        original.splitlines(keepends=True),
        transformed.splitlines(keepends=True),
        fromfile=f"a/{file_path}",
        tofile=f"b/{file_path}",
    )
    return "".join(line if line.endswith("\n") else line + "\n" for line in lines)


def diff_preview(original: str, transformed: str, file_path: str, limit: int = DIFF_PREVIEW_LIMIT) -> str:
    return unified_diff(original, transformed, file_path)[:limit]


__all__ = ["DIFF_PREVIEW_LIMIT", "diff_preview", "unified_diff"]
