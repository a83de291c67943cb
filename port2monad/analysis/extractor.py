"""Extract contract declarations from a Solidity syntax tree."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Optional

from ..logging import get_logger
from ..models import ContractKind, ContractUnit, FunctionSignature, StateVariable

UPGRADEABLE_PATTERNS = (
    "Initializable",
    "UUPSUpgradeable",
    "TransparentUpgradeableProxy",
    "BeaconProxy",
    "initialize(",
    "upgradeTo(",
)

_DECLARATION_KINDS = {
    "contract_declaration": "contract",
    "interface_declaration": "interface",
    "library_declaration": "library",
}
_QUOTED = re.compile(r"""["']([^"']+)["']""")
_EXPOSED_VISIBILITY = {"public", "external"}
_MUTABILITY = {"pure", "view", "payable", "nonpayable"}
_TYPE_NODES = ("type_name", "user_defined_type", "elementary_type_name")
_ANCESTOR_NODES = {"user_defined_type", "identifier"}


@dataclass
class FileExtraction:
    """Everything extracted from one source file."""

    imports: List[str] = field(default_factory=list)
    contracts: List[ContractUnit] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class ContractExtractor:
    """Builds `ContractUnit` records from a parsed syntax tree."""

    def __init__(self) -> None:
        self.logger = get_logger("analysis.extractor")

    def extract(self, root_node: Any, source: bytes, file_path: str) -> FileExtraction:
        result = FileExtraction(imports=self._extract_imports(root_node, source))
        for node in _find_all(root_node, _DECLARATION_KINDS):
            contract = self._extract_contract(node, source, file_path, result.imports)
            if contract is None:
                message = f"{file_path}: skipped {node.type} without a name"
                self.logger.warning(message)
                result.warnings.append(message)
                continue
            result.contracts.append(contract)
        return result

    def _extract_imports(self, root_node: Any, source: bytes) -> List[str]:
        imports: List[str] = []
        for node in _find_all(root_node, {"import_directive"}):
            match = _QUOTED.search(_text(node, source))
            if match and match.group(1) not in imports:
                imports.append(match.group(1))
        return imports

    def _extract_contract(
        self, node: Any, source: bytes, file_path: str, imports: List[str]
    ) -> Optional[ContractUnit]:
        name_node = node.child_by_field_name("name")
        name = _text(name_node, source).strip() if name_node is not None else ""
        if not name:
            return None

        text = _text(node, source)
        kind: ContractKind = _DECLARATION_KINDS[node.type]  # type: ignore[assignment]
        if kind == "contract" and _is_abstract(node, text):
            kind = "abstract"

        return ContractUnit(
            name=name,
            kind=kind,
            file_path=file_path,
            imports=tuple(imports),
            inherits=tuple(self._extract_inheritance(node, source)),
            functions=tuple(self._extract_functions(node, source)),
            state_variables=tuple(self._extract_state_variables(node, source)),
            uses_upgradeable_pattern=any(pattern in text for pattern in UPGRADEABLE_PATTERNS),
        )

    def _extract_inheritance(self, node: Any, source: bytes) -> List[str]:
        inherits: List[str] = []
        specifiers: List[Any] = []
        inheritance = node.child_by_field_name("inheritance")
        if inheritance is not None:
            specifiers.append(inheritance)
        specifiers.extend(child for child in node.children if child.type == "inheritance_specifier")

        for specifier in specifiers:
            ancestor = specifier.child_by_field_name("ancestor")
            if ancestor is None:
                ancestor = _find_first(specifier, _ANCESTOR_NODES)
            if ancestor is None:
                continue
            parent = _text(ancestor, source).strip()
            if parent and parent not in inherits:
                inherits.append(parent)
        return inherits

    def _extract_functions(self, node: Any, source: bytes) -> Iterator[FunctionSignature]:
        for function in _find_all(node, {"function_definition"}):
            name_node = function.child_by_field_name("name")
            if name_node is None:
                continue
            visibility = _child_text(function, "visibility", source) or "public"
            if visibility not in _EXPOSED_VISIBILITY:
                continue
            mutability = _child_text(function, "state_mutability", source)
            returns = _first_child(function, "return_type_definition")
            yield FunctionSignature(
                name=_text(name_node, source).strip(),
                visibility=visibility,  # type: ignore[arg-type]
                mutability=mutability if mutability in _MUTABILITY else None,  # type: ignore[arg-type]
                parameter_count=_count_children(function, "parameter"),
                return_count=_count_children(returns, "parameter") if returns is not None else 0,
            )

    def _extract_state_variables(self, node: Any, source: bytes) -> Iterator[StateVariable]:
        for declaration in _find_all(node, {"state_variable_declaration"}):
            name_node = declaration.child_by_field_name("name")
            if name_node is None:
                name_node = _first_child(declaration, "identifier")
            if name_node is None:
                continue
            type_node = declaration.child_by_field_name("type")
            if type_node is None:
                type_node = _find_first(declaration, _TYPE_NODES)
            visibility = _child_text(declaration, "visibility", source) or "internal"
            modifiers = {_text(child, source).strip() for child in declaration.children}
            modifiers.update(child.type for child in declaration.children)
            yield StateVariable(
                name=_text(name_node, source).strip(),
                type_name=_text(type_node, source).strip() if type_node is not None else "unknown",
                visibility=visibility if visibility in {"public", "private"} else "internal",  # type: ignore[arg-type]
                constant="constant" in modifiers,
                immutable="immutable" in modifiers,
            )


def _text(node: Any, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def _is_abstract(node: Any, text: str) -> bool:
    children = node.children
    if children and children[0].type == "abstract":
        return True
    return text.lstrip().startswith("abstract ")


def _find_all(node: Any, types: Iterable[str]) -> Iterator[Any]:
    """Pre-order walk yielding nodes whose type is in ``types``."""
    wanted = set(types)
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type in wanted:
            yield current
        stack.extend(reversed(current.children))


def _find_first(node: Any, types: Iterable[str]) -> Optional[Any]:
    return next(_find_all(node, types), None)


def _first_child(node: Any, node_type: str) -> Optional[Any]:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def _child_text(node: Any, node_type: str, source: bytes) -> Optional[str]:
    child = _first_child(node, node_type)
    return _text(child, source).strip() if child is not None else None


def _count_children(node: Any, node_type: str) -> int:
    return sum(1 for child in node.children if child.type == node_type)


__all__ = ["ContractExtractor", "FileExtraction", "UPGRADEABLE_PATTERNS"]
