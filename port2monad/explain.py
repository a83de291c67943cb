"""Explanations of applied changes and their Markdown rendering."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, List

from jinja2 import Environment, FileSystemLoader

from .llm.parsing import Malformed, parse_json_object
from .llm.runner import LLMRunner
from .logging import get_logger
from .models import (
    ExplanationEntry,
    ExplanationReport,
    MigrationPlan,
    TransformationReport,
    ValidationReport,
)
from .planning.prompts import EXPLAINER_SYSTEM_PROMPT, EXPLAINER_USER_PROMPT

_PLAN_CONTEXT_LIMIT = 10
_TEMPLATES_DIR = Path(__file__).with_name("templates")


class ExplanationGenerator:
    """Asks the model to explain each modified file's diff."""

    def __init__(self, runner: LLMRunner) -> None:
        self.runner = runner
        self.logger = get_logger("explain")

    async def explain(self, report: TransformationReport, plan: MigrationPlan) -> ExplanationReport:
        explanation = ExplanationReport(repository_name=report.repository_name, timestamp=_utc_now())
        diffs = report.diffs()
        if not diffs:
            self.logger.info("No modified files to explain for %s", report.repository_name)
            return explanation

        prompt = EXPLAINER_USER_PROMPT.format(
            repository=report.repository_name,
            diffs="\n\n".join(f"## {path}\n```diff\n{diff}\n```" for path, diff in diffs.items()),
            recommendations="\n".join(
                f"- [{item.category}] {item.file_path}: {item.description}"
                for item in plan.recommendations[:_PLAN_CONTEXT_LIMIT]
            )
            or "none",
        )
        loop = asyncio.get_running_loop()
        raw = await loop.run_in_executor(
            None, lambda: self.runner.run(prompt, system=EXPLAINER_SYSTEM_PROMPT)
        )
        parsed = parse_json_object(raw)
        if isinstance(parsed, Malformed):
            self.logger.warning("Malformed explanation output: %s", parsed.reason)
            return explanation

        explanation.entries = _entries(parsed.value.get("explanations"), diffs)
        self.logger.info("Generated %d explanations for %s", len(explanation.entries), report.repository_name)
        return explanation


def _entries(items: Any, diffs: Dict[str, str]) -> List[ExplanationEntry]:
    entries: List[ExplanationEntry] = []
    if not isinstance(items, list):
        return entries
    for item in items:
        if not isinstance(item, dict):
            continue
        file_path = item.get("filePath")
        summary = item.get("summary")
        if not isinstance(file_path, str) or not isinstance(summary, str):
            continue
        detail = item.get("detailedExplanation")
        related = item.get("relatedDiff")
        entries.append(
            ExplanationEntry(
                file_path=file_path,
                summary=summary.strip(),
                detailed_explanation=detail.strip() if isinstance(detail, str) else "",
                related_diff=related if isinstance(related, str) and related else diffs.get(file_path, ""),
            )
        )
    return entries


def render_markdown(
    explanation: ExplanationReport,
    validation: ValidationReport,
    transformation: TransformationReport,
) -> str:
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    template = env.get_template("explanation.md.j2")
    return template.render(
        explanation=explanation, validation=validation, transformation=transformation
    ).strip() + "\n"


def _utc_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


__all__ = ["ExplanationGenerator", "render_markdown"]
