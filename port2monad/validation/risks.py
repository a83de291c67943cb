"""Static Monad risk checks over the structural model."""

from __future__ import annotations

from typing import List

from ..models import AnalysisResult, ContractUnit

_TIME_MARKERS = ("time", "block", "deadline")
_LARGE_CONTRACT_FUNCTIONS = 50
_MANY_IMPORTS = 5
_MANY_FUNCTIONS = 20
_MANY_STATE_VARIABLES = 20


def _uses_assembly(contract: ContractUnit) -> bool:
    return any("asm" in function.name.lower() for function in contract.functions)


def _time_dependent(contract: ContractUnit) -> bool:
    return any(
        marker in function.name.lower()
        for function in contract.functions
        for marker in _TIME_MARKERS
    )


def planning_risk_flags(analysis: AnalysisResult) -> List[str]:
    """Flags included in the planning context."""
    flags: List[str] = []
    if any(_uses_assembly(contract) for contract in analysis.contracts):
        flags.append("Assembly code detected - requires verification for bytecode compatibility")
    if analysis.upgradeable:
        flags.append(
            f"Proxy pattern detected ({len(analysis.upgradeable)} upgradeable contracts) - "
            "ensure implementation compatibility"
        )
    heavy_importers = sum(1 for contract in analysis.contracts if len(contract.imports) > _MANY_IMPORTS)
    if heavy_importers:
        flags.append(
            f"{heavy_importers} contracts with multiple external dependencies - verify all are available on Monad"
        )
    if analysis.parse_errors:
        flags.append(
            f"{len(analysis.parse_errors)} parse errors detected - some contracts could not be analyzed"
        )
    return flags


def monad_warnings(analysis: AnalysisResult) -> List[str]:
    """Warnings reported by validation; purely name and count based."""
    warnings: List[str] = []
    contracts = analysis.contracts

    assembly = [contract for contract in contracts if _uses_assembly(contract)]
    if assembly:
        warnings.append(
            f"Assembly code detected in {len(assembly)} contract(s). Verify Monad EVM compatibility."
        )
    if any(_time_dependent(contract) for contract in contracts):
        warnings.append(
            "Time/block-dependent logic found. Monad has shorter block times than Ethereum."
        )
    if any(len(contract.functions) > _LARGE_CONTRACT_FUNCTIONS for contract in contracts):
        warnings.append("Large contracts detected. Verify no unbounded loops over state mappings.")
    if analysis.upgradeable:
        warnings.append("UUPS/Proxy pattern detected. Ensure implementation contract validation on Monad.")

    for contract in contracts:
        if len(contract.imports) > _MANY_IMPORTS and len(contract.functions) > _MANY_FUNCTIONS:
            warnings.append(
                f"{contract.name}: Many external dependencies and many functions. Verify no call loops."
            )
            break
    if any(len(contract.state_variables) > _MANY_STATE_VARIABLES for contract in contracts):
        warnings.append(
            "Contracts with more than 20 state variables detected. "
            "Large storage layouts work on Monad but verify gas efficiency."
        )
    return warnings


__all__ = ["monad_warnings", "planning_risk_flags"]
