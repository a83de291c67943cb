"""Solidity structural analysis."""

from .analyzer import SolidityAnalyzer
from .extractor import ContractExtractor, FileExtraction, UPGRADEABLE_PATTERNS
from .graph import build_dependency_graph, detect_upgradeable, infer_entry_points, is_only_inherited
from .parser import TREE_SITTER_AVAILABLE, SourceParser, TreeSitterSolidityParser

__all__ = [
    "ContractExtractor",
    "FileExtraction",
    "SolidityAnalyzer",
    "SourceParser",
    "TREE_SITTER_AVAILABLE",
    "TreeSitterSolidityParser",
    "UPGRADEABLE_PATTERNS",
    "build_dependency_graph",
    "detect_upgradeable",
    "infer_entry_points",
    "is_only_inherited",
]
