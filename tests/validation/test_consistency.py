"""Tests for cross-file consistency checks."""

from __future__ import annotations

from tests._fixtures.models import make_analysis, make_contract

from port2monad.validation import ConsistencyValidator
from port2monad.validation.consistency import is_external_import, resolve_import, surviving_imports


def _analysis():
    return make_analysis(
        make_contract("Token", file_path="contracts/Token.sol"),
        make_contract("Sale", "Token", file_path="contracts/sale/Sale.sol", imports=["../Token.sol"]),
    )


def test_unresolvable_import_in_transformed_file_is_reported() -> None:
    content = 'import "./Missing.sol";\ncontract Token {}\n'

    report = ConsistencyValidator().check({"contracts/Token.sol": content}, _analysis())

    assert report.checked is True
    assert report.imports_valid is False
    assert report.issues == ["File contracts/Token.sol: Import not found: ./Missing.sol"]


def test_relative_and_external_imports_resolve() -> None:
    content = (
        'import "../Token.sol";\n'
        'import {Ownable} from "@openzeppelin/contracts/access/Ownable.sol";\n'
        'import "forge-std/Test.sol";\n'
        "contract Sale is Token {}\n"
    )

    report = ConsistencyValidator().check({"contracts/sale/Sale.sol": content}, _analysis())

    assert report.imports_valid is True
    assert report.inheritance_valid is True
    assert report.issues == []


def test_undeclared_parent_is_reported_but_interfaces_are_not() -> None:
    analysis = make_analysis(
        make_contract("Vault", "BaseVault", "IERC4626", "IVault"),
    )

    report = ConsistencyValidator().check({}, analysis)

    assert report.inheritance_valid is False
    assert report.issues == ["Contract Vault: Parent contract not found: BaseVault"]


def test_import_helpers() -> None:
    assert surviving_imports('import "./A.sol";\n  import {B} from "./B.sol";\nimport "./A.sol";') == [
        "./A.sol",
        "./B.sol",
    ]
    assert resolve_import("contracts/sale/Sale.sol", "../Token.sol") == "contracts/Token.sol"
    assert resolve_import("contracts/Sale.sol", "contracts/lib/Math.sol") == "contracts/lib/Math.sol"
    assert is_external_import("https://example.com/Lib.sol")
    assert not is_external_import("./Local.sol")
