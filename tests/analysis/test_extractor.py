"""Tests for contract extraction from syntax trees."""

from __future__ import annotations

from tests._fixtures.syntax import SyntaxBuilder, simple_contract

from port2monad.analysis import ContractExtractor
from port2monad.models import FunctionSignature, StateVariable

VAULT_SOURCE = """pragma solidity ^0.8.20;
import "./Base.sol";
import {Ownable} from "@openzeppelin/contracts/access/Ownable.sol";
import "./Base.sol";

abstract contract Vault is Base, Ownable {
    uint256 public constant FEE = 30;
    address private immutable owner_;
    mapping(address => uint256) balances;

    function deposit(uint256 amount, address to) external payable returns (bool) {}
    function total() public view returns (uint256, uint256) {}
    function _hook() internal {}
    function initialize() public {}
}

interface IVault {}
library MathLib {}
"""


def _vault_tree():
    b = SyntaxBuilder(VAULT_SOURCE)
    first_import = b.node("import_directive", b.leaf("import", "import"), b.leaf("string", '"./Base.sol"'))
    second_import = b.node(
        "import_directive",
        b.leaf("import", "import"),
        b.leaf("string", '"@openzeppelin/contracts/access/Ownable.sol"'),
    )
    third_import = b.node("import_directive", b.leaf("import", "import"), b.leaf("string", '"./Base.sol"'))
    vault = b.node(
        "contract_declaration",
        b.leaf("abstract", "abstract"),
        b.leaf("contract", "contract"),
        b.leaf("identifier", "Vault", field="name"),
        b.node("inheritance_specifier", b.leaf("user_defined_type", "Base", field="ancestor")),
        b.node("inheritance_specifier", b.node("user_defined_type", b.leaf("identifier", "Ownable"))),
        b.node(
            "contract_body",
            b.leaf("{", "{"),
            b.node(
                "state_variable_declaration",
                b.leaf("type_name", "uint256", field="type"),
                b.leaf("visibility", "public"),
                b.leaf("constant", "constant"),
                b.leaf("identifier", "FEE", field="name"),
            ),
            b.node(
                "state_variable_declaration",
                b.leaf("type_name", "address", field="type"),
                b.leaf("visibility", "private"),
                b.leaf("immutable", "immutable"),
                b.leaf("identifier", "owner_", field="name"),
            ),
            b.node(
                "state_variable_declaration",
                b.node("type_name", b.leaf("mapping", "mapping(address => uint256)")),
                b.leaf("identifier", "balances"),
            ),
            b.node(
                "function_definition",
                b.leaf("function", "function"),
                b.leaf("identifier", "deposit", field="name"),
                b.leaf("parameter", "uint256 amount"),
                b.leaf("parameter", "address to"),
                b.leaf("visibility", "external"),
                b.leaf("state_mutability", "payable"),
                b.node("return_type_definition", b.leaf("parameter", "bool")),
                b.leaf("function_body", "{}"),
            ),
            b.node(
                "function_definition",
                b.leaf("function", "function"),
                b.leaf("identifier", "total", field="name"),
                b.leaf("visibility", "public"),
                b.leaf("state_mutability", "view"),
                b.node(
                    "return_type_definition",
                    b.leaf("parameter", "uint256"),
                    b.leaf("parameter", "uint256"),
                ),
                b.leaf("function_body", "{}"),
            ),
            b.node(
                "function_definition",
                b.leaf("function", "function"),
                b.leaf("identifier", "_hook", field="name"),
                b.leaf("visibility", "internal"),
                b.leaf("function_body", "{}"),
            ),
            b.node(
                "function_definition",
                b.leaf("function", "function"),
                b.leaf("identifier", "initialize", field="name"),
                b.leaf("visibility", "public"),
                b.leaf("function_body", "{}"),
            ),
            b.leaf("}", "}"),
        ),
    )
    interface = simple_contract(b, "IVault", keyword="interface")
    library = simple_contract(b, "MathLib", keyword="library")
    return b.tree(first_import, second_import, third_import, vault, interface, library)


def test_extractor_reads_declarations_in_source_order() -> None:
    tree = _vault_tree()
    result = ContractExtractor().extract(tree.root_node, VAULT_SOURCE.encode(), "src/Vault.sol")

    assert [(c.name, c.kind) for c in result.contracts] == [
        ("Vault", "abstract"),
        ("IVault", "interface"),
        ("MathLib", "library"),
    ]
    assert all(contract.file_path == "src/Vault.sol" for contract in result.contracts)
    assert result.warnings == []


def test_extractor_deduplicates_imports_and_inheritance() -> None:
    tree = _vault_tree()
    result = ContractExtractor().extract(tree.root_node, VAULT_SOURCE.encode(), "src/Vault.sol")
    vault = result.contracts[0]

    assert result.imports == ["./Base.sol", "@openzeppelin/contracts/access/Ownable.sol"]
    assert vault.imports == ("./Base.sol", "@openzeppelin/contracts/access/Ownable.sol")
    assert vault.inherits == ("Base", "Ownable")


def test_extractor_keeps_only_public_and_external_functions() -> None:
    tree = _vault_tree()
    vault = ContractExtractor().extract(tree.root_node, VAULT_SOURCE.encode(), "src/Vault.sol").contracts[0]

    assert vault.functions == (
        FunctionSignature("deposit", "external", "payable", 2, 1),
        FunctionSignature("total", "public", "view", 0, 2),
        FunctionSignature("initialize", "public", None, 0, 0),
    )
    assert vault.uses_upgradeable_pattern is True


def test_extractor_reads_state_variable_modifiers() -> None:
    tree = _vault_tree()
    vault = ContractExtractor().extract(tree.root_node, VAULT_SOURCE.encode(), "src/Vault.sol").contracts[0]

    assert vault.state_variables == (
        StateVariable("FEE", "uint256", "public", constant=True, immutable=False),
        StateVariable("owner_", "address", "private", constant=False, immutable=True),
        StateVariable("balances", "mapping(address => uint256)", "internal"),
    )


def test_extractor_is_idempotent() -> None:
    tree = _vault_tree()
    extractor = ContractExtractor()
    first = extractor.extract(tree.root_node, VAULT_SOURCE.encode(), "src/Vault.sol")
    second = extractor.extract(tree.root_node, VAULT_SOURCE.encode(), "src/Vault.sol")

    assert first == second


def test_extractor_skips_nameless_declarations_with_warning() -> None:
    source = "contract {}\ncontract Named {}\n"
    b = SyntaxBuilder(source)
    nameless = b.node("contract_declaration", b.leaf("contract", "contract"), b.leaf("contract_body", "{}"))
    named = simple_contract(b, "Named")

    result = ContractExtractor().extract(b.tree(nameless, named).root_node, source.encode(), "A.sol")

    assert [contract.name for contract in result.contracts] == ["Named"]
    assert len(result.warnings) == 1
    assert "A.sol" in result.warnings[0]
