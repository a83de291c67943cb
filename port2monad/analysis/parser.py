"""Tree-sitter backed Solidity source parser."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from ..errors import SourceParseError
from ..logging import get_logger

try:  # pragma: no cover - optional dependency
    from tree_sitter import Parser
    from tree_sitter_language_pack import get_language

    TREE_SITTER_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    Parser = None  # type: ignore[assignment,misc]
    get_language = None  # type: ignore[assignment]
    TREE_SITTER_AVAILABLE = False


class SourceParser(Protocol):
    """Turns Solidity source bytes into a syntax tree.

    The returned object must expose ``root_node``; nodes expose ``type``,
    ``children``, ``child_by_field_name``, ``start_byte`` and ``end_byte``.
    """

    def parse(self, source: bytes) -> Any:  # pragma: no cover - protocol
        ...


class TreeSitterSolidityParser:
    """Parses Solidity with the tree-sitter grammar from the language pack."""

    language_name = "solidity"

    def __init__(self) -> None:
        self._parser: Optional[Parser] = None
        self.logger = get_logger("analysis.parser")

    @property
    def available(self) -> bool:
        return TREE_SITTER_AVAILABLE

    def parse(self, source: bytes) -> Any:
        parser = self._get_parser()
        try:
            tree = parser.parse(source)
        except (TypeError, ValueError) as exc:
            raise SourceParseError(f"Failed to parse source: {exc}") from exc
        if tree is None or tree.root_node is None:
            raise SourceParseError("Failed to parse AST")
        if tree.root_node.has_error:
            self.logger.debug("Syntax tree contains error nodes; extracting what parsed")
        return tree

    def _get_parser(self) -> Parser:
        if self._parser is not None:
            return self._parser
        if not TREE_SITTER_AVAILABLE:
            raise SourceParseError(
                "tree-sitter is required for Solidity analysis. "
                "Install it with `pip install tree-sitter tree-sitter-language-pack`."
            )
        try:
            language = get_language(self.language_name)
            parser = Parser(language)
        except Exception as exc:  # language pack errors such as DownloadError are not LookupErrors
            raise SourceParseError(f"Solidity grammar is unavailable: {exc}") from exc
        self._parser = parser
        return self._parser


__all__ = ["SourceParser", "TREE_SITTER_AVAILABLE", "TreeSitterSolidityParser"]
