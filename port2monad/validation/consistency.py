"""Cross-file consistency checks for transformed sources."""

from __future__ import annotations

import posixpath
import re
from typing import Iterable, List, Mapping

from ..logging import get_logger
from ..models import AnalysisResult, ConsistencyReport

_IMPORT_PATH = re.compile(r"""^\s*import\s+[^;]*?["']([^"']+)["']""", re.MULTILINE)
_URL_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_VENDOR_PREFIXES = ("hardhat/", "forge-std/", "ds-test/", "solmate/", "openzeppelin")
_INTERFACE_NAME = re.compile(r"^I[A-Z]")


def surviving_imports(content: str) -> List[str]:
    """Import paths present in ``content``, de-duplicated in source order."""
    imports: List[str] = []
    for match in _IMPORT_PATH.finditer(content):
        path = match.group(1)
        if path not in imports:
            imports.append(path)
    return imports


def is_external_import(path: str) -> bool:
    return "@" in path or bool(_URL_SCHEME.match(path)) or path.startswith(_VENDOR_PREFIXES)


def is_external_interface(name: str) -> bool:
    return name.startswith("IERC") or bool(_INTERFACE_NAME.match(name))


def resolve_import(from_file: str, import_path: str) -> str:
    """Resolve ``import_path`` to a repository-relative path.

    Only ``./`` and ``../`` imports are relative to the importing file;
    anything else is taken as already repository-relative.
    """
    if import_path.startswith(("./", "../")):
        base = posixpath.dirname(from_file)
        return posixpath.normpath(posixpath.join(base, import_path))
    return posixpath.normpath(import_path)


class ConsistencyValidator:
    """Checks that imports and inheritance references still resolve."""

    def __init__(self) -> None:
        self.logger = get_logger("validation.consistency")

    def check(self, files: Mapping[str, str], analysis: AnalysisResult) -> ConsistencyReport:
        """Validate ``files`` (path to transformed content) against ``analysis``."""
        report = ConsistencyReport(checked=True)
        known_files = analysis.contract_files()

        for file_path, content in files.items():
            for import_path in surviving_imports(content):
                if is_external_import(import_path):
                    continue
                if resolve_import(file_path, import_path) not in known_files:
                    report.issues.append(f"File {file_path}: Import not found: {import_path}")
                    report.imports_valid = False

        declared = analysis.declared_names()
        for contract in analysis.contracts:
            for parent in self._unresolved_parents(contract.inherits, declared):
                report.issues.append(f"Contract {contract.name}: Parent contract not found: {parent}")
                report.inheritance_valid = False

        if report.issues:
            self.logger.warning("Cross-file consistency issues detected: %d", len(report.issues))
        return report

    @staticmethod
    def _unresolved_parents(parents: Iterable[str], declared: set[str]) -> List[str]:
        return [
            parent
            for parent in parents
            if parent not in declared and "@" not in parent and not is_external_interface(parent)
        ]


__all__ = [
    "ConsistencyValidator",
    "is_external_import",
    "is_external_interface",
    "resolve_import",
    "surviving_imports",
]
