"""Dependency graph construction and deployment heuristics."""

from __future__ import annotations

from typing import Iterable, List

from ..models import ContractUnit, DependencyGraph, Heuristic


def build_dependency_graph(contracts: Iterable[ContractUnit]) -> DependencyGraph:
    """Build the import/inheritance graph in contract order.

    Every contract name becomes a node before its own edges are added, so a
    contract with no dependencies still appears. Targets that are never
    declared stay in the graph as external references.
    """
    graph = DependencyGraph()
    for contract in contracts:
        graph.declared.add(contract.name)
        graph.add_node(contract.name)
        for import_path in contract.imports:
            graph.add_edge(contract.name, import_path, "import")
        for parent in contract.inherits:
            graph.add_edge(contract.name, parent, "inheritance")
    return graph


def is_only_inherited(name: str, graph: DependencyGraph) -> bool:
    """True when ``name`` is inherited from but inherits from nothing itself."""
    return graph.has_inbound(name, "inheritance") and not graph.has_outbound(name, "inheritance")


def infer_entry_points(contracts: Iterable[ContractUnit], graph: DependencyGraph) -> Heuristic[List[str]]:
    names: List[str] = []
    for contract in contracts:
        if contract.kind != "contract" or is_only_inherited(contract.name, graph):
            continue
        if contract.name not in names:
            names.append(contract.name)
    return Heuristic(
        name="entry_points",
        value=names,
        confidence="medium",
        rationale=(
            "Concrete contracts, excluding base contracts that are inherited from "
            "but inherit from nothing themselves. Deployment scripts are not consulted."
        ),
    )


def detect_upgradeable(contracts: Iterable[ContractUnit]) -> Heuristic[List[str]]:
    names: List[str] = []
    for contract in contracts:
        if contract.uses_upgradeable_pattern and contract.name not in names:
            names.append(contract.name)
    return Heuristic(
        name="upgradeable_contracts",
        value=names,
        confidence="low",
        rationale="Substring match of the declaration text against known proxy and initializer patterns.",
    )


__all__ = ["build_dependency_graph", "detect_upgradeable", "infer_entry_points", "is_only_inherited"]
