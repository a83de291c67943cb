"""Core data models shared across port2monad components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Generic, Iterator, List, Literal, Optional, Set, Tuple, TypeVar

T = TypeVar("T")

FileType = Literal["solidity", "typescript", "javascript", "config", "markdown", "other"]
ContractKind = Literal["contract", "abstract", "interface", "library"]
Visibility = Literal["public", "external", "internal", "private"]
Mutability = Literal["pure", "view", "payable", "nonpayable"]
EdgeKind = Literal["import", "inheritance"]
ConfidenceLevel = Literal["low", "medium", "high"]
CompilationStatus = Literal["success", "failed", "not-attempted"]

CONFIDENCE_LEVELS = ("low", "medium", "high")
CHANGE_CATEGORIES = (
    "gas-optimization",
    "monad-feature",
    "evm-compatibility",
    "performance",
    "architecture",
    "security-consideration",
)


class Serializable:
    """Mixin giving dataclasses a JSON-ready dict form."""

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_jsonable(item) for item in value)
    return value


# ----------------------------------------------------------------------
# Repository tree


@dataclass(frozen=True)
class RepositoryMetadata(Serializable):
    """Repository facts fetched once from the remote host."""

    owner: str
    name: str
    full_name: str
    url: str
    default_branch: str
    is_private: bool
    size: int
    description: Optional[str] = None


@dataclass
class RepositoryFile(Serializable):
    path: str
    name: str
    extension: str
    type: FileType
    size: int
    sha: Optional[str] = None


@dataclass
class RepositoryDirectory(Serializable):
    path: str
    name: str
    files: List[RepositoryFile] = field(default_factory=list)
    subdirectories: List["RepositoryDirectory"] = field(default_factory=list)

    def iter_files(self) -> Iterator[RepositoryFile]:
        """Yield files depth-first, directory files before subdirectories."""
        yield from self.files
        for subdirectory in self.subdirectories:
            yield from subdirectory.iter_files()


@dataclass
class TreeStats(Serializable):
    total_files: int = 0
    solidity_files: int = 0
    typescript_files: int = 0
    javascript_files: int = 0
    config_files: int = 0
    other_files: int = 0
    total_size: int = 0


@dataclass
class RepositoryTree(Serializable):
    """Ingested repository snapshot; read-only once produced."""

    metadata: RepositoryMetadata
    root: RepositoryDirectory
    stats: TreeStats
    fetched_at: str

    def iter_files(self) -> Iterator[RepositoryFile]:
        return self.root.iter_files()

    def solidity_files(self) -> List[RepositoryFile]:
        return [file for file in self.iter_files() if file.type == "solidity"]


@dataclass
class IngestResult(Serializable):
    owner: str
    name: str
    full_name: str
    stats: TreeStats
    preview: RepositoryDirectory
    max_depth: int


# ----------------------------------------------------------------------
# Structural model


@dataclass(frozen=True)
class FunctionSignature(Serializable):
    name: str
    visibility: Visibility
    mutability: Optional[Mutability]
    parameter_count: int
    return_count: int


@dataclass(frozen=True)
class StateVariable(Serializable):
    name: str
    type_name: str
    visibility: Visibility
    constant: bool = False
    immutable: bool = False


@dataclass(frozen=True)
class ContractUnit(Serializable):
    """A contract, abstract contract, interface or library declaration."""

    name: str
    kind: ContractKind
    file_path: str
    imports: tuple[str, ...] = ()
    inherits: tuple[str, ...] = ()
    functions: tuple[FunctionSignature, ...] = ()
    state_variables: tuple[StateVariable, ...] = ()
    uses_upgradeable_pattern: bool = False


@dataclass(frozen=True)
class DependencyEdge(Serializable):
    source: str
    target: str
    kind: EdgeKind


@dataclass
class DependencyGraph(Serializable):
    """Directed import/inheritance graph over contract names and import targets.

    Nodes never declared as contracts are unresolved external references.
    """

    nodes: List[str] = field(default_factory=list)
    edges: List[DependencyEdge] = field(default_factory=list)
    declared: Set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        self._node_set: Set[str] = set(self.nodes)
        self._edge_set: Set[DependencyEdge] = set()
        self._sources: Set[Tuple[str, EdgeKind]] = set()
        self._targets: Set[Tuple[str, EdgeKind]] = set()
        for edge in self.edges:
            self._index(edge)

    def add_node(self, name: str) -> None:
        if name not in self._node_set:
            self._node_set.add(name)
            self.nodes.append(name)

    def add_edge(self, source: str, target: str, kind: EdgeKind) -> bool:
        """Add an edge once per (source, target, kind); return True when new."""
        edge = DependencyEdge(source=source, target=target, kind=kind)
        if edge in self._edge_set:
            return False
        self.add_node(source)
        self.add_node(target)
        self._index(edge)
        self.edges.append(edge)
        return True

    def has_inbound(self, name: str, kind: EdgeKind) -> bool:
        return (name, kind) in self._targets

    def has_outbound(self, name: str, kind: EdgeKind) -> bool:
        return (name, kind) in self._sources

    def _index(self, edge: DependencyEdge) -> None:
        self._edge_set.add(edge)
        self._sources.add((edge.source, edge.kind))
        self._targets.add((edge.target, edge.kind))

    def external_nodes(self) -> List[str]:
        return [node for node in self.nodes if node not in self.declared]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": list(self.nodes),
            "edges": [edge.to_dict() for edge in self.edges],
            "declared": sorted(self.declared),
            "external": self.external_nodes(),
        }


@dataclass(frozen=True)
class Heuristic(Serializable, Generic[T]):
    """A best-effort inference carrying its own confidence and rationale."""

    name: str
    value: T
    confidence: ConfidenceLevel
    rationale: str


@dataclass
class AnalysisStats(Serializable):
    total_contracts: int = 0
    abstract_contracts: int = 0
    interfaces: int = 0
    libraries: int = 0
    total_functions: int = 0
    parse_errors: int = 0


@dataclass(frozen=True)
class FileParseError(Serializable):
    file_path: str
    message: str


@dataclass
class AnalysisResult(Serializable):
    contracts: List[ContractUnit]
    dependency_graph: DependencyGraph
    entry_points: List[str]
    upgradeable: List[str]
    stats: AnalysisStats
    parse_errors: List[FileParseError] = field(default_factory=list)
    heuristics: List[Heuristic[Any]] = field(default_factory=list)
    repository: Optional[RepositoryMetadata] = None

    def declared_names(self) -> Set[str]:
        return {contract.name for contract in self.contracts}

    def contract_files(self) -> Set[str]:
        return {contract.file_path for contract in self.contracts}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contracts": [contract.to_dict() for contract in self.contracts],
            "dependency_graph": self.dependency_graph.to_dict(),
            "entry_points": list(self.entry_points),
            "upgradeable": list(self.upgradeable),
            "stats": self.stats.to_dict(),
            "parse_errors": [error.to_dict() for error in self.parse_errors],
            "heuristics": [heuristic.to_dict() for heuristic in self.heuristics],
            "repository": self.repository.to_dict() if self.repository else None,
        }


# ----------------------------------------------------------------------
# Migration plan


@dataclass
class Recommendation(Serializable):
    file_path: str
    contract_name: str
    category: str
    description: str
    rationale: str
    confidence: ConfidenceLevel
    affected_contracts: List[str] = field(default_factory=list)
    references: List[str] = field(default_factory=list)


@dataclass
class PlanSummary(Serializable):
    total_files_analyzed: int = 0
    total_contracts_analyzed: int = 0
    total_recommendations: int = 0
    high_confidence_count: int = 0
    medium_confidence_count: int = 0
    low_confidence_count: int = 0


@dataclass
class MigrationPlan(Serializable):
    repository_name: str
    timestamp: str
    analysis_id: str
    monad_version: str
    recommendations: List[Recommendation]
    summary: PlanSummary
    assumptions: List[str] = field(default_factory=list)
    limitations: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)


# ----------------------------------------------------------------------
# Transformation


@dataclass
class AppliedChange(Serializable):
    change_index: int
    recommendation_id: str
    description: str
    original_code: Optional[str] = None
    transformed_code: Optional[str] = None
    line_start: Optional[int] = None
    line_end: Optional[int] = None
    recommendation_index: Optional[int] = None


@dataclass
class SkippedChange(Serializable):
    change_index: int
    recommendation_id: str
    description: str
    reason: str


@dataclass
class FileTransform(Serializable):
    """Outcome of transforming a single file."""

    file_path: str
    original_content: str
    transformed_content: str
    recommendations: List[Recommendation]
    applied_changes: List[AppliedChange] = field(default_factory=list)
    skipped_changes: List[SkippedChange] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    confidence_score: float = 0.0

    @property
    def has_changes(self) -> bool:
        return bool(self.applied_changes)


@dataclass
class FileTransformReport(Serializable):
    file_path: str
    success: bool
    applied_changes_count: int
    skipped_changes_count: int
    confidence_score: float
    warnings: List[str] = field(default_factory=list)
    diff_preview: str = ""


@dataclass
class ConsistencyReport(Serializable):
    checked: bool = False
    imports_valid: bool = True
    inheritance_valid: bool = True
    issues: List[str] = field(default_factory=list)


@dataclass
class TransformationSummary(Serializable):
    overall_confidence: float = 0.0
    recommendations: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class TransformError(Serializable):
    message: str
    file_path: Optional[str] = None


@dataclass
class TransformationReport(Serializable):
    repository_name: str
    timestamp: str
    transformation_id: str
    files_processed: int = 0
    files_modified: int = 0
    files_skipped: int = 0
    total_applied_changes: int = 0
    total_skipped_changes: int = 0
    file_reports: List[FileTransformReport] = field(default_factory=list)
    consistency: ConsistencyReport = field(default_factory=ConsistencyReport)
    summary: TransformationSummary = field(default_factory=TransformationSummary)
    errors: List[TransformError] = field(default_factory=list)
    strict: bool = False

    def modified_files(self) -> List[str]:
        return [report.file_path for report in self.file_reports if report.applied_changes_count > 0]

    def diffs(self) -> Dict[str, str]:
        return {report.file_path: report.diff_preview for report in self.file_reports if report.diff_preview}


# ----------------------------------------------------------------------
# Explanation and validation


@dataclass
class ValidationReport(Serializable):
    repository_name: str
    timestamp: str
    compilation_status: CompilationStatus
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    confidence_score: float = 0.0
    notes: List[str] = field(default_factory=list)


@dataclass
class ExplanationEntry(Serializable):
    file_path: str
    summary: str
    detailed_explanation: str
    related_diff: str = ""


@dataclass
class ExplanationReport(Serializable):
    repository_name: str
    timestamp: str
    entries: List[ExplanationEntry] = field(default_factory=list)


@dataclass
class ExplainValidateResult(Serializable):
    explanation: ExplanationReport
    explanation_markdown: str
    validation: ValidationReport


__all__ = [
    "AnalysisResult",
    "AnalysisStats",
    "AppliedChange",
    "CHANGE_CATEGORIES",
    "CONFIDENCE_LEVELS",
    "ConsistencyReport",
    "ContractUnit",
    "DependencyEdge",
    "DependencyGraph",
    "ExplainValidateResult",
    "ExplanationEntry",
    "ExplanationReport",
    "FileParseError",
    "FileTransform",
    "FileTransformReport",
    "FunctionSignature",
    "Heuristic",
    "IngestResult",
    "MigrationPlan",
    "PlanSummary",
    "Recommendation",
    "RepositoryDirectory",
    "RepositoryFile",
    "RepositoryMetadata",
    "RepositoryTree",
    "SkippedChange",
    "StateVariable",
    "TransformError",
    "TransformationReport",
    "TransformationSummary",
    "TreeStats",
    "ValidationReport",
]
