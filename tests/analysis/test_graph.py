"""Tests for the dependency graph and deployment heuristics."""

from __future__ import annotations

from port2monad.analysis import build_dependency_graph, detect_upgradeable, infer_entry_points, is_only_inherited
from port2monad.models import ContractUnit, DependencyEdge, DependencyGraph


def _contract(name: str, *parents: str, kind: str = "contract", imports=(), upgradeable=False) -> ContractUnit:
    return ContractUnit(
        name=name,
        kind=kind,  # type: ignore[arg-type]
        file_path=f"contracts/{name}.sol",
        imports=tuple(imports),
        inherits=tuple(parents),
        uses_upgradeable_pattern=upgradeable,
    )


def test_sale_inheriting_token_is_the_only_entry_point() -> None:
    contracts = [_contract("Token"), _contract("Sale", "Token")]
    graph = build_dependency_graph(contracts)

    heuristic = infer_entry_points(contracts, graph)

    assert heuristic.value == ["Sale"]
    assert heuristic.confidence == "medium"
    assert is_only_inherited("Token", graph) is True
    assert is_only_inherited("Sale", graph) is False


def test_graph_nodes_are_unique_and_externals_are_kept() -> None:
    contracts = [
        _contract("Token", "ERC20", imports=["@openzeppelin/ERC20.sol"]),
        _contract("Sale", "Token", "Token", imports=["./Token.sol", "./Token.sol"]),
        _contract("Token", "ERC20", imports=["@openzeppelin/ERC20.sol"]),
    ]
    graph = build_dependency_graph(contracts)

    assert len(graph.nodes) == len(set(graph.nodes))
    assert graph.nodes == ["Token", "@openzeppelin/ERC20.sol", "ERC20", "Sale", "./Token.sol"]
    assert len(graph.edges) == 4
    assert graph.external_nodes() == ["@openzeppelin/ERC20.sol", "ERC20", "./Token.sol"]
    assert graph.to_dict()["declared"] == ["Sale", "Token"]


def test_contract_without_dependencies_is_still_a_node() -> None:
    graph = build_dependency_graph([_contract("Standalone")])

    assert graph.nodes == ["Standalone"]
    assert graph.edges == []


def test_entry_points_exclude_interfaces_libraries_and_abstracts() -> None:
    contracts = [
        _contract("IToken", kind="interface"),
        _contract("SafeMath", kind="library"),
        _contract("BaseVault", kind="abstract"),
        _contract("Vault", "BaseVault", "IToken"),
    ]
    graph = build_dependency_graph(contracts)

    assert infer_entry_points(contracts, graph).value == ["Vault"]


def test_base_that_also_inherits_stays_an_entry_point() -> None:
    contracts = [_contract("Ownable"), _contract("Token", "Ownable"), _contract("Sale", "Token")]
    graph = build_dependency_graph(contracts)

    assert infer_entry_points(contracts, graph).value == ["Token", "Sale"]


def test_upgradeable_detection_is_a_low_confidence_heuristic() -> None:
    contracts = [_contract("Proxy", upgradeable=True), _contract("Plain")]

    heuristic = detect_upgradeable(contracts)

    assert heuristic.value == ["Proxy"]
    assert heuristic.confidence == "low"
    assert heuristic.rationale


def test_edge_lookups_are_per_kind_and_include_constructor_edges() -> None:
    graph = DependencyGraph(edges=[DependencyEdge(source="Sale", target="Token", kind="inheritance")])
    graph.add_edge("Sale", "./Token.sol", "import")

    assert graph.has_inbound("Token", "inheritance")
    assert graph.has_outbound("Sale", "inheritance")
    assert not graph.has_inbound("Token", "import")
    assert not graph.has_outbound("Token", "inheritance")
    assert graph.add_edge("Sale", "Token", "inheritance") is False
