"""Migration planning: turn an analysis into a reviewed list of recommendations."""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional

from ..llm.parsing import Malformed, parse_json_array
from ..llm.runner import LLMRunner
from ..logging import get_logger
from ..models import (
    CHANGE_CATEGORIES,
    CONFIDENCE_LEVELS,
    AnalysisResult,
    MigrationPlan,
    PlanSummary,
    Recommendation,
    RepositoryMetadata,
)
from ..validation.risks import planning_risk_flags
from .prompts import MONAD_VERSION, PLANNER_SYSTEM_PROMPT, PLANNER_USER_PROMPT

DEFAULT_MAX_RECOMMENDATIONS = 200
_SUMMARY_LIMIT = 10

PLAN_NEXT_STEPS = (
    "Review recommendations and categorize by priority",
    "Create a deployment checklist based on high-confidence items",
    "Set up testnet environment on Monad",
    "Deploy and test each contract migration in isolation",
    "Perform load testing for parallelization scenarios",
    "Audit critical contracts pre-mainnet deployment",
)


class MigrationPlanner:
    """Builds a `MigrationPlan` from an `AnalysisResult` using a model runner."""

    def __init__(
        self,
        runner: LLMRunner,
        *,
        max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS,
        monad_version: str = MONAD_VERSION,
    ) -> None:
        self.runner = runner
        self.max_recommendations = max_recommendations
        self.monad_version = monad_version
        self.logger = get_logger("planning")

    async def plan(self, analysis: AnalysisResult, metadata: RepositoryMetadata) -> MigrationPlan:
        self.logger.info(
            "Planning migration for %s (%d contracts)",
            metadata.full_name,
            analysis.stats.total_contracts,
        )
        limitations = self.build_limitations(analysis)
        context = self.build_context(metadata, analysis)
        prompt = PLANNER_USER_PROMPT.format(context=context)

        loop = asyncio.get_running_loop()
        try:
            raw = await loop.run_in_executor(
                None, lambda: self.runner.run(prompt, system=PLANNER_SYSTEM_PROMPT)
            )
        except RuntimeError as exc:
            self.logger.warning("Recommendation generator failed for %s: %s", metadata.full_name, exc)
            recommendations = [fallback_recommendation(f"Recommendation generator failed: {exc}")]
            limitations.append("Recommendations could not be generated; the plan contains a placeholder entry")
        else:
            recommendations = self.parse_recommendations(raw)

        if len(recommendations) > self.max_recommendations:
            limitations.append(
                f"Plan truncated to {self.max_recommendations} of {len(recommendations)} recommendations"
            )
            recommendations = recommendations[: self.max_recommendations]

        plan = MigrationPlan(
            repository_name=metadata.full_name,
            timestamp=_utc_now(),
            analysis_id=f"{metadata.full_name}-{int(time.time() * 1000)}",
            monad_version=self.monad_version,
            recommendations=recommendations,
            summary=summarize(recommendations, analysis),
            assumptions=self.build_assumptions(analysis),
            limitations=limitations,
            next_steps=list(PLAN_NEXT_STEPS),
        )
        self.logger.info(
            "Migration plan for %s has %d recommendations",
            metadata.full_name,
            plan.summary.total_recommendations,
        )
        return plan

    def parse_recommendations(self, raw: str) -> List[Recommendation]:
        parsed = parse_json_array(raw)
        if isinstance(parsed, Malformed):
            self.logger.warning("Malformed recommendation output: %s", parsed.reason)
            return [fallback_recommendation()]
        recommendations: List[Recommendation] = []
        for item in parsed.value:
            recommendation = normalize_recommendation(item)
            if recommendation is None:
                self.logger.debug("Dropping recommendation without a file path: %r", item)
                continue
            recommendations.append(recommendation)
        return recommendations

    @staticmethod
    def build_context(metadata: RepositoryMetadata, analysis: AnalysisResult) -> str:
        lines: List[str] = [
            f"REPOSITORY: {metadata.full_name}",
            f"URL: {metadata.url}",
            f"DEFAULT BRANCH: {metadata.default_branch}",
            f"PRIVATE: {'yes' if metadata.is_private else 'no'}",
            f"DESCRIPTION: {metadata.description or 'none'}",
            "",
            "## Contract Summary",
        ]
        for contract in analysis.contracts:
            lines.extend(
                [
                    f"Contract: {contract.name}",
                    f"  Type: {contract.kind}",
                    f"  File: {contract.file_path}",
                    f"  Functions: {len(contract.functions)} public/external",
                    f"  State Variables: {len(contract.state_variables)}",
                    f"  Imports: {', '.join(contract.imports) or 'none'}",
                    f"  Inherits: {', '.join(contract.inherits) or 'none'}",
                    f"  Upgradeable Pattern: {'yes' if contract.uses_upgradeable_pattern else 'no'}",
                ]
            )

        imports = _unique(
            f"{contract.name} -> {target}" for contract in analysis.contracts for target in contract.imports
        )
        inheritance = _unique(
            f"{contract.name} extends {parent}" for contract in analysis.contracts for parent in contract.inherits
        )
        flags = planning_risk_flags(analysis)
        stats = analysis.stats
        lines.extend(
            [
                "",
                "## Dependency Graph",
                f"Imports (top {_SUMMARY_LIMIT}):",
                *(imports[:_SUMMARY_LIMIT] or ["None"]),
                f"Inheritance (top {_SUMMARY_LIMIT}):",
                *(inheritance[:_SUMMARY_LIMIT] or ["None"]),
                f"Cross-contract dependencies: {len(analysis.dependency_graph.edges)} edges",
                f"Unresolved external references: {len(analysis.dependency_graph.external_nodes())}",
                "",
                "## Risk Flags Detected",
                *([f"- {flag}" for flag in flags] or ["None identified"]),
                "",
                "## Analysis Stats",
                f"- Total Contracts: {stats.total_contracts}",
                f"- Abstract Contracts: {stats.abstract_contracts}",
                f"- Interfaces: {stats.interfaces}",
                f"- Libraries: {stats.libraries}",
                f"- Parse Errors: {stats.parse_errors}",
                "",
                "## Entry Points (heuristic: likely deployable)",
                *(analysis.entry_points or ["None identified"]),
                "",
                "## Upgradeable Contracts (heuristic)",
                *(analysis.upgradeable or ["None detected"]),
            ]
        )
        return "\n".join(lines)

    @staticmethod
    def build_assumptions(analysis: AnalysisResult) -> List[str]:
        assumptions = [
            "Monad maintains full EVM bytecode compatibility",
            "Solidity compiler versions used are compatible with EVM target",
            "External dependencies exist or will be deployed to Monad",
            "Block time and gas model assumptions match Ethereum",
            "No reliance on specific validator/miner behavior (MEV)",
        ]
        if analysis.parse_errors:
            assumptions.append(
                "Some contracts could not be fully analyzed due to parse errors - manual review recommended"
            )
        if analysis.upgradeable:
            assumptions.append("UUPS/proxy patterns are compatible with Monad as-is")
        return assumptions

    @staticmethod
    def build_limitations(analysis: AnalysisResult) -> List[str]:
        limitations = [
            "Structural analysis does not include runtime behavior or potential exploits",
            "Gas optimization suggestions are estimates - actual gas costs may vary",
            "Assembly code analysis is limited - manual review required",
            "External library compatibility cannot be fully determined from source analysis",
        ]
        if analysis.parse_errors:
            limitations.append(f"{len(analysis.parse_errors)} files could not be analyzed")
        return limitations


def fallback_recommendation(rationale: Optional[str] = None) -> Recommendation:
    """Single placeholder emitted when the generator output cannot be used."""
    return Recommendation(
        file_path="general",
        contract_name="General",
        category="architecture",
        description="Review the raw model response for detailed recommendations",
        rationale=rationale or "LLM analysis completed but response parsing requires verification",
        confidence="low",
    )


def normalize_recommendation(item: Any) -> Optional[Recommendation]:
    if not isinstance(item, dict):
        return None
    file_path = _text(item.get("filePath"))
    if not file_path:
        return None
    category = _text(item.get("changeCategory"))
    confidence = _text(item.get("confidenceLevel")).lower()
    return Recommendation(
        file_path=file_path,
        contract_name=_text(item.get("contractName")) or "Unknown",
        category=category if category in CHANGE_CATEGORIES else "architecture",
        description=_text(item.get("recommendedChange")),
        rationale=_text(item.get("rationale")),
        confidence=confidence if confidence in CONFIDENCE_LEVELS else "low",  # type: ignore[arg-type]
        affected_contracts=_text_list(item.get("affectedContracts")),
        references=_text_list(item.get("references")),
    )


def summarize(recommendations: List[Recommendation], analysis: AnalysisResult) -> PlanSummary:
    counts: Dict[str, int] = {level: 0 for level in CONFIDENCE_LEVELS}
    for recommendation in recommendations:
        counts[recommendation.confidence] += 1
    return PlanSummary(
        total_files_analyzed=len(analysis.contract_files()),
        total_contracts_analyzed=analysis.stats.total_contracts,
        total_recommendations=len(recommendations),
        high_confidence_count=counts["high"],
        medium_confidence_count=counts["medium"],
        low_confidence_count=counts["low"],
    )


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _unique(values: Any) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def _utc_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


__all__ = [
    "DEFAULT_MAX_RECOMMENDATIONS",
    "MigrationPlanner",
    "PLAN_NEXT_STEPS",
    "fallback_recommendation",
    "normalize_recommendation",
    "summarize",
]
