"""Transform stage: apply plan recommendations to each targeted file."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..llm.parsing import Malformed, parse_json_object
from ..llm.runner import LLMRunner
from ..logging import get_logger
from ..models import (
    AppliedChange,
    ContractUnit,
    FileTransform,
    MigrationPlan,
    Recommendation,
    SkippedChange,
    TransformError,
)
from ..planning.prompts import TRANSFORMER_SYSTEM_PROMPT, TRANSFORMER_USER_PROMPT

ContentReader = Callable[[str], Awaitable[str]]

STRICT_SKIP_REASON = "Skipped in strict mode: low confidence recommendation"
PARSE_FAILURE_REASON = "Failed to parse transformation response"
DEFAULT_SKIP_REASON = "Ambiguous or unsafe transformation"
MISSING_CODE_REASON = "Transformer reported changes without returning transformed code"
NOT_ADDRESSED_REASON = "Not addressed by the transformer"


@dataclass
class TransformOutcome:
    """Per-file transforms plus the files that could not be processed."""

    transforms: List[FileTransform] = field(default_factory=list)
    errors: List[TransformError] = field(default_factory=list)


def group_by_file(recommendations: List[Recommendation]) -> Dict[str, List[Recommendation]]:
    grouped: Dict[str, List[Recommendation]] = {}
    for recommendation in recommendations:
        grouped.setdefault(recommendation.file_path, []).append(recommendation)
    return grouped


class TransformerAgent:
    """Drives the code transformer once per file named by the plan."""

    def __init__(self, runner: LLMRunner, *, strict: bool = False) -> None:
        self.runner = runner
        self.strict = strict
        self.logger = get_logger("transform")

    async def transform(
        self,
        plan: MigrationPlan,
        contracts: List[ContractUnit],
        known_files: set[str],
        read_file: ContentReader,
    ) -> TransformOutcome:
        outcome = TransformOutcome()
        grouped = group_by_file(plan.recommendations)
        self.logger.info(
            "Transforming %d files for %s%s",
            len(grouped),
            plan.repository_name,
            " (strict)" if self.strict else "",
        )
        for file_path, recommendations in grouped.items():
            if file_path not in known_files:
                self.logger.warning("Skipping %s: not present in the repository tree", file_path)
                outcome.errors.append(
                    TransformError(message="File not found in repository tree", file_path=file_path)
                )
                continue
            try:
                transform = await self.transform_file(file_path, recommendations, contracts, read_file)
            except RuntimeError as exc:
                self.logger.error("Transformation of %s failed: %s", file_path, exc)
                outcome.errors.append(TransformError(message=str(exc), file_path=file_path))
                continue
            outcome.transforms.append(transform)
        return outcome

    async def transform_file(
        self,
        file_path: str,
        recommendations: List[Recommendation],
        contracts: List[ContractUnit],
        read_file: ContentReader,
    ) -> FileTransform:
        eligible: List[int] = []
        skipped: List[SkippedChange] = []
        for index, recommendation in enumerate(recommendations):
            if self.strict and recommendation.confidence == "low":
                skipped.append(_skip(file_path, index, recommendation, STRICT_SKIP_REASON))
            else:
                eligible.append(index)

        if not eligible:
            self.logger.info("No eligible recommendations for %s", file_path)
            return FileTransform(
                file_path=file_path,
                original_content="",
                transformed_content="",
                recommendations=recommendations,
                skipped_changes=skipped,
            )

        original = await read_file(file_path)
        prompt = self.build_prompt(file_path, original, recommendations, eligible, contracts)
        loop = asyncio.get_running_loop()
        raw = await loop.run_in_executor(
            None, lambda: self.runner.run(prompt, system=TRANSFORMER_SYSTEM_PROMPT)
        )

        transform = FileTransform(
            file_path=file_path,
            original_content=original,
            transformed_content=original,
            recommendations=recommendations,
            skipped_changes=skipped,
        )
        parsed = parse_json_object(raw)
        if isinstance(parsed, Malformed):
            self.logger.warning("Malformed transformer output for %s: %s", file_path, parsed.reason)
            transform.skipped_changes.extend(
                _skip(file_path, index, recommendations[index], PARSE_FAILURE_REASON) for index in eligible
            )
            transform.warnings.append(f"Transformation response could not be parsed: {parsed.reason}")
            return transform

        self._apply_payload(transform, parsed.value, eligible)
        self.logger.info(
            "Transformed %s: %d applied, %d skipped",
            file_path,
            len(transform.applied_changes),
            len(transform.skipped_changes),
        )
        return transform

    @staticmethod
    def build_prompt(
        file_path: str,
        source: str,
        recommendations: List[Recommendation],
        eligible: List[int],
        contracts: List[ContractUnit],
    ) -> str:
        lines: List[str] = []
        for position, index in enumerate(eligible):
            recommendation = recommendations[index]
            lines.append(f"{position}. [{recommendation.category}] {recommendation.description}")
            lines.append(f"   Rationale: {recommendation.rationale}")
        declared = [contract.name for contract in contracts if contract.file_path == file_path]
        header = f"Contracts: {', '.join(declared) or 'none'}\n"
        return header + TRANSFORMER_USER_PROMPT.format(
            file_path=file_path, recommendations="\n".join(lines), source=source
        )

    def _apply_payload(self, transform: FileTransform, payload: Dict[str, Any], eligible: List[int]) -> None:
        file_path = transform.file_path
        recommendations = transform.recommendations
        warnings = payload.get("warnings")
        if isinstance(warnings, list):
            transform.warnings.extend(str(item) for item in warnings if isinstance(item, str) and item)

        if str(payload.get("action") or "apply").lower() == "skip":
            reason = _text(payload.get("reason")) or DEFAULT_SKIP_REASON
            transform.skipped_changes.extend(
                _skip(file_path, index, recommendations[index], reason) for index in eligible
            )
            return

        code = payload.get("transformedCode")
        applied = [
            change
            for position, item in enumerate(_dicts(payload.get("appliedChanges")))
            if (change := _applied(file_path, position, item, eligible)) is not None
        ]
        if applied and not isinstance(code, str):
            transform.warnings.append(MISSING_CODE_REASON)
            transform.skipped_changes.extend(
                _skip(file_path, index, recommendations[index], MISSING_CODE_REASON) for index in eligible
            )
            return

        transform.applied_changes.extend(applied)
        applied_indices = {change.recommendation_index for change in applied}
        for item in _dicts(payload.get("skippedChanges")):
            index = _map_index(item.get("recommendationIndex"), eligible)
            if index is None or index in applied_indices:
                continue
            transform.skipped_changes.append(
                _skip(
                    file_path,
                    index,
                    recommendations[index],
                    _text(item.get("reason")) or DEFAULT_SKIP_REASON,
                    _text(item.get("description")),
                )
            )
        if not applied:
            accounted = {change.change_index for change in transform.skipped_changes}
            transform.skipped_changes.extend(
                _skip(file_path, index, recommendations[index], NOT_ADDRESSED_REASON)
                for index in eligible
                if index not in accounted
            )
        if applied:
            transform.transformed_content = code


def _applied(file_path: str, position: int, item: Dict[str, Any], eligible: List[int]) -> Optional[AppliedChange]:
    index = _map_index(item.get("recommendationIndex"), eligible)
    description = _text(item.get("description"))
    if not description and index is None:
        return None
    return AppliedChange(
        change_index=position,
        recommendation_id=f"{file_path}-{index if index is not None else position}",
        description=description,
        original_code=_optional_text(item.get("originalCode")),
        transformed_code=_optional_text(item.get("transformedCode")),
        line_start=_optional_int(item.get("lineStart")),
        line_end=_optional_int(item.get("lineEnd")),
        recommendation_index=index,
    )


def _skip(
    file_path: str,
    index: int,
    recommendation: Recommendation,
    reason: str,
    description: str = "",
) -> SkippedChange:
    return SkippedChange(
        change_index=index,
        recommendation_id=f"{file_path}-{index}",
        description=description or recommendation.description,
        reason=reason,
    )


def _map_index(value: Any, eligible: List[int]) -> Optional[int]:
    """Map an index into the prompt's recommendation list back to the file's list."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if 0 <= value < len(eligible):
        return eligible[value]
    return None


def _dicts(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _optional_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _optional_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


__all__ = [
    "PARSE_FAILURE_REASON",
    "STRICT_SKIP_REASON",
    "TransformOutcome",
    "TransformerAgent",
    "group_by_file",
]
