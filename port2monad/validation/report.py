"""Aggregation of per-file transform outcomes into reports."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Dict, Iterable, List, Optional

from ..models import (
    AnalysisResult,
    ConsistencyReport,
    FileTransform,
    FileTransformReport,
    TransformationReport,
    TransformationSummary,
    TransformError,
    ValidationReport,
)
from ..transform.diff import diff_preview
from .risks import monad_warnings

CONFIDENCE_WEIGHTS: Dict[str, float] = {"high": 0.9, "medium": 0.6, "low": 0.3}
LOW_CONFIDENCE_THRESHOLD = 0.7

TRANSFORM_NEXT_STEPS = (
    "Review transformed code in the diff previews",
    "Run test suite to verify functionality",
    "Check cross-file imports and references",
    "Deploy to Monad testnet",
    "Perform load testing for parallelization benefits",
    "Audit critical contracts pre-mainnet",
)


def file_confidence(transform: FileTransform) -> float:
    """Weighted confidence of the recommendations applied to one file."""
    applied = transform.applied_changes
    recommendations = transform.recommendations
    if not applied or not recommendations:
        return 0.0

    indices = {
        change.recommendation_index
        for change in applied
        if change.recommendation_index is not None
        and 0 <= change.recommendation_index < len(recommendations)
    }
    weighted = [recommendations[index] for index in sorted(indices)] if indices else recommendations
    average = sum(CONFIDENCE_WEIGHTS.get(item.confidence, 0.3) for item in weighted) / len(weighted)
    applied_count = len(indices) if indices else len(applied)
    application_rate = min(1.0, applied_count / len(recommendations))
    return round(average * application_rate, 2)


def overall_confidence(scores: Iterable[float]) -> float:
    values = list(scores)
    if not values:
        return 0.0
    return round(sum(values) / len(values), 2)


def validation_confidence(error_count: int, warning_count: int) -> float:
    if error_count == 0:
        return 0.95 if warning_count == 0 else 0.8
    if error_count <= 3:
        return 0.5
    return round(max(0.1, 0.5 - 0.1 * (error_count - 3)), 2)


def confidence_label(score: float) -> str:
    if score > 0.7:
        return "High"
    if score > 0.4:
        return "Medium"
    return "Low"


class ReportAggregator:
    """Builds transformation and validation reports from per-file outcomes."""

    def build_file_report(self, transform: FileTransform) -> FileTransformReport:
        return FileTransformReport(
            file_path=transform.file_path,
            success=True,
            applied_changes_count=len(transform.applied_changes),
            skipped_changes_count=len(transform.skipped_changes),
            confidence_score=transform.confidence_score,
            warnings=list(transform.warnings),
            diff_preview=diff_preview(
                transform.original_content, transform.transformed_content, transform.file_path
            ),
        )

    def build_transformation_report(
        self,
        *,
        repository_name: str,
        transformation_id: str,
        transforms: List[FileTransform],
        errors: List[TransformError],
        consistency: ConsistencyReport,
        strict: bool = False,
    ) -> TransformationReport:
        report = TransformationReport(
            repository_name=repository_name,
            timestamp=_utc_now(),
            transformation_id=transformation_id,
            consistency=consistency,
            errors=list(errors),
            strict=strict,
        )
        for transform in transforms:
            transform.confidence_score = file_confidence(transform)
            report.files_processed += 1
            if transform.has_changes:
                report.files_modified += 1
            else:
                report.files_skipped += 1
            report.total_applied_changes += len(transform.applied_changes)
            report.total_skipped_changes += len(transform.skipped_changes)
            report.file_reports.append(self.build_file_report(transform))

        failed_files = {error.file_path for error in errors if error.file_path}
        report.files_processed += len(failed_files)
        report.files_skipped += len(failed_files)

        overall = overall_confidence(
            file_report.confidence_score
            for file_report in report.file_reports
            if file_report.applied_changes_count > 0
        )
        report.summary = TransformationSummary(
            overall_confidence=overall,
            recommendations=self.summary_recommendations(report, overall),
            next_steps=list(TRANSFORM_NEXT_STEPS),
        )
        return report

    @staticmethod
    def summary_recommendations(report: TransformationReport, overall: float) -> List[str]:
        recommendations: List[str] = []
        if report.files_modified == 0:
            recommendations.append("No transformations applied - review migration plan")
        if overall < LOW_CONFIDENCE_THRESHOLD:
            recommendations.append("Low confidence in transformations - manual review recommended")
        if report.consistency.issues:
            recommendations.append(f"Fix {len(report.consistency.issues)} cross-file consistency issues")
        if report.errors:
            recommendations.append(f"Review {len(report.errors)} transformation errors")
        if not recommendations:
            recommendations.append("Transformations completed successfully - ready for testing")
        return recommendations

    def build_validation_report(
        self,
        report: TransformationReport,
        analysis: AnalysisResult,
    ) -> ValidationReport:
        errors = list(report.consistency.issues)
        warnings = monad_warnings(analysis)
        for file_report in report.file_reports:
            warnings.extend(f"{file_report.file_path}: {warning}" for warning in file_report.warnings)
        for error in report.errors:
            location = f"{error.file_path}: " if error.file_path else ""
            warnings.append(f"Transformation error: {location}{error.message}")

        notes: List[str] = ["Solidity compiler not available in this environment"]
        notes.append(f"Transformation confidence: {confidence_label(report.summary.overall_confidence)}")
        notes.append(f"{report.files_modified} files modified, {report.files_skipped} files skipped")
        if report.strict:
            notes.append("Strict mode: low-confidence recommendations were not applied")

        return ValidationReport(
            repository_name=report.repository_name,
            timestamp=_utc_now(),
            compilation_status="not-attempted",
            errors=errors,
            warnings=warnings,
            confidence_score=validation_confidence(len(errors), len(warnings)),
            notes=notes,
        )


def _utc_now(now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(UTC)
    return moment.isoformat().replace("+00:00", "Z")


__all__ = [
    "CONFIDENCE_WEIGHTS",
    "ReportAggregator",
    "TRANSFORM_NEXT_STEPS",
    "confidence_label",
    "file_confidence",
    "overall_confidence",
    "validation_confidence",
]
