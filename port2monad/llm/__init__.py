"""Model endpoint runner and output parsing."""

from .parsing import Malformed, Valid, parse_json_array, parse_json_object
from .runner import LLMRequest, LLMRunner

__all__ = ["LLMRequest", "LLMRunner", "Malformed", "Valid", "parse_json_array", "parse_json_object"]
