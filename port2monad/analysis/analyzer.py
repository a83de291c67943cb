"""Analysis stage: parse every Solidity file of a tree into an `AnalysisResult`."""

from __future__ import annotations

from typing import Awaitable, Callable, List, Optional

from ..errors import Port2MonadError, SourceParseError
from ..logging import get_logger
from ..models import AnalysisResult, AnalysisStats, ContractUnit, FileParseError, RepositoryTree
from .extractor import ContractExtractor
from .graph import build_dependency_graph, detect_upgradeable, infer_entry_points
from .parser import SourceParser, TreeSitterSolidityParser

ContentReader = Callable[[str], Awaitable[str]]


class SolidityAnalyzer:
    """Coordinates parsing, extraction and graph construction for a repository."""

    def __init__(
        self,
        parser: Optional[SourceParser] = None,
        extractor: Optional[ContractExtractor] = None,
    ) -> None:
        self.parser = parser or TreeSitterSolidityParser()
        self.extractor = extractor or ContractExtractor()
        self.logger = get_logger("analysis")

    async def analyze(self, tree: RepositoryTree, read_file: ContentReader) -> AnalysisResult:
        """Analyze ``tree``, fetching each Solidity file through ``read_file``.

        A file that cannot be fetched or parsed is recorded in
        ``parse_errors``; the remaining files are still analyzed.
        """
        files = tree.solidity_files()
        self.logger.info("Analyzing %d Solidity files in %s", len(files), tree.metadata.full_name)

        contracts: List[ContractUnit] = []
        parse_errors: List[FileParseError] = []
        for file in files:
            try:
                content = await read_file(file.path)
                contracts.extend(self.analyze_source(content, file.path))
            except Port2MonadError as exc:
                self.logger.error("Failed to parse %s: %s", file.path, exc.message)
                parse_errors.append(FileParseError(file_path=file.path, message=exc.message))

        result = self.assemble(contracts, parse_errors)
        result.repository = tree.metadata
        self.logger.info(
            "Analysis of %s found %d contracts (%d entry points)",
            tree.metadata.full_name,
            result.stats.total_contracts,
            len(result.entry_points),
        )
        return result

    def analyze_source(self, content: str, file_path: str) -> List[ContractUnit]:
        source = content.encode("utf-8")
        syntax_tree = self.parser.parse(source)
        root = getattr(syntax_tree, "root_node", None)
        if root is None:
            raise SourceParseError(f"Failed to parse AST for {file_path}")
        extraction = self.extractor.extract(root, source, file_path)
        return extraction.contracts

    @staticmethod
    def assemble(
        contracts: List[ContractUnit], parse_errors: Optional[List[FileParseError]] = None
    ) -> AnalysisResult:
        """Build graph, heuristics and stats over already extracted contracts."""
        errors = list(parse_errors or [])
        graph = build_dependency_graph(contracts)
        entry_points = infer_entry_points(contracts, graph)
        upgradeable = detect_upgradeable(contracts)
        stats = AnalysisStats(
            total_contracts=len(contracts),
            abstract_contracts=sum(1 for contract in contracts if contract.kind == "abstract"),
            interfaces=sum(1 for contract in contracts if contract.kind == "interface"),
            libraries=sum(1 for contract in contracts if contract.kind == "library"),
            total_functions=sum(len(contract.functions) for contract in contracts),
            parse_errors=len(errors),
        )
        return AnalysisResult(
            contracts=list(contracts),
            dependency_graph=graph,
            entry_points=list(entry_points.value),
            upgradeable=list(upgradeable.value),
            stats=stats,
            parse_errors=errors,
            heuristics=[entry_points, upgradeable],
        )


__all__ = ["ContentReader", "SolidityAnalyzer"]
