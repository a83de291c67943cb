"""Parsing of untrusted model output into `Valid` or `Malformed` results."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, TypeVar, Union

T = TypeVar("T")

_ARRAY = re.compile(r"\[[\s\S]*\]")
_OBJECT = re.compile(r"\{[\s\S]*\}")


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T


@dataclass(frozen=True)
class Malformed:
    raw: str
    reason: str


ParseResult = Union[Valid[T], Malformed]


def parse_json_array(raw: str) -> ParseResult[List[Any]]:
    """Extract the outermost JSON array embedded in ``raw``."""
    match = _ARRAY.search(raw or "")
    if not match:
        return Malformed(raw=raw, reason="No JSON array found in response")
    try:
        value = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        return Malformed(raw=raw, reason=f"Invalid JSON array: {exc.msg}")
    if not isinstance(value, list):
        return Malformed(raw=raw, reason="Response is not a JSON array")
    return Valid(value)


def parse_json_object(raw: str) -> ParseResult[Dict[str, Any]]:
    """Extract the outermost JSON object embedded in ``raw``."""
    match = _OBJECT.search(raw or "")
    if not match:
        return Malformed(raw=raw, reason="No JSON object found in response")
    try:
        value = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        return Malformed(raw=raw, reason=f"Invalid JSON object: {exc.msg}")
    if not isinstance(value, dict):
        return Malformed(raw=raw, reason="Response is not a JSON object")
    return Valid(value)


__all__ = ["Malformed", "ParseResult", "Valid", "parse_json_array", "parse_json_object"]
