"""Staged migration pipeline: ingest, analyze, plan, transform, explain/validate."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Optional

from .analysis import SolidityAnalyzer
from .config import PipelineConfig, Port2MonadConfig
from .errors import CacheStateError, InputError, RemoteRepositoryError
from .explain import ExplanationGenerator, render_markdown
from .github import GitHubClient
from .ingestion import RepositoryIngester, build_ingest_result, parse_repository_url, repository_key
from .llm import LLMRunner
from .logging import get_logger
from .models import (
    AnalysisResult,
    ExplainValidateResult,
    ExplanationReport,
    IngestResult,
    MigrationPlan,
    RepositoryTree,
    TransformationReport,
)
from .planning import MigrationPlanner
from .stores import PipelineCache, Stage
from .transform import TransformerAgent
from .validation import ConsistencyValidator, ReportAggregator


@dataclass(frozen=True)
class RepositoryTarget:
    """Cache key plus, when supplied, the URL that can rebuild the tree."""

    key: str
    url: Optional[str]


def resolve_target(repo_url: str | None = None, repo_id: str | None = None) -> RepositoryTarget:
    """Validate request identifiers before any cache access."""
    key = repository_key(repo_url, repo_id)
    if not repo_url:
        return RepositoryTarget(key=key, url=None)
    ref = parse_repository_url(repo_url)
    if ref.key != key:
        raise InputError(f"repoId {repo_id} does not match repoUrl {repo_url}")
    return RepositoryTarget(key=key, url=ref.url)


class MigrationPipeline:
    """Runs each stage through a shared `PipelineCache`.

    Every stage reads its predecessor through the cache, so a request for a
    late stage computes only what is missing. The cache instance is owned by
    the caller; the pipeline never creates a process-wide one.
    """

    def __init__(
        self,
        cache: PipelineCache | None = None,
        *,
        github: GitHubClient | None = None,
        runner: LLMRunner | None = None,
        analyzer: SolidityAnalyzer | None = None,
        consistency: ConsistencyValidator | None = None,
        aggregator: ReportAggregator | None = None,
        settings: PipelineConfig | None = None,
    ) -> None:
        self.settings = settings or PipelineConfig()
        self.cache = cache or PipelineCache(self.settings.cache_ttl_seconds)
        self.github = github or GitHubClient()
        self._runner = runner
        self.analyzer = analyzer or SolidityAnalyzer()
        self.consistency = consistency or ConsistencyValidator()
        self.aggregator = aggregator or ReportAggregator()
        self.ingester = RepositoryIngester(
            self.github, max_depth=self.settings.max_depth, max_files=self.settings.max_files
        )
        self.logger = get_logger("pipeline")

    @classmethod
    def from_config(cls, config: Port2MonadConfig, cache: PipelineCache | None = None) -> "MigrationPipeline":
        github = GitHubClient(
            config.github.token, api_url=config.github.api_url, timeout=config.github.timeout
        )
        llm = config.llm
        runner_kwargs: dict[str, object] = {}
        if llm.base_url:
            runner_kwargs["base_url"] = llm.base_url
        if llm.api_key:
            runner_kwargs["api_key"] = llm.api_key
        if llm.temperature is not None:
            runner_kwargs["temperature"] = llm.temperature
        if llm.max_tokens is not None:
            runner_kwargs["max_tokens"] = llm.max_tokens
        if llm.request_timeout is not None:
            runner_kwargs["request_timeout"] = llm.request_timeout
        runner = LLMRunner(llm.model, **runner_kwargs)  # type: ignore[arg-type]
        return cls(
            cache or PipelineCache(config.pipeline.cache_ttl_seconds),
            github=github,
            runner=runner,
            settings=config.pipeline,
        )

    @property
    def runner(self) -> LLMRunner:
        if self._runner is None:
            self._runner = LLMRunner()
        return self._runner

    # ------------------------------------------------------------------
    # Stages

    async def ingest(self, repo_url: str, *, refresh: bool = False) -> IngestResult:
        target = resolve_target(repo_url=repo_url)
        if refresh:
            self.cache.invalidate(target.key, Stage.TREE)
        tree = await self._tree(target)
        return build_ingest_result(tree)

    async def analyze(self, repo_url: str | None = None, repo_id: str | None = None) -> AnalysisResult:
        return await self._analysis(resolve_target(repo_url, repo_id))

    async def plan(self, repo_url: str | None = None, repo_id: str | None = None) -> MigrationPlan:
        return await self._plan(resolve_target(repo_url, repo_id))

    async def transform(
        self,
        repo_url: str | None = None,
        repo_id: str | None = None,
        *,
        strict: bool | None = None,
    ) -> TransformationReport:
        target = resolve_target(repo_url, repo_id)
        effective = self.settings.strict if strict is None else strict
        while True:
            cached = self.cache.get(target.key, Stage.TRANSFORM)
            if cached is not None and cached.strict != effective:
                self.logger.info("Recomputing transform for %s with strict=%s", target.key, effective)
                self.cache.invalidate(target.key, Stage.TRANSFORM)
            report = await self._transform(target, effective)
            # A concurrent request in the other mode may own the in-flight computation.
            if report.strict == effective:
                return report

    async def explain_validate(
        self, repo_url: str | None = None, repo_id: str | None = None
    ) -> ExplainValidateResult:
        target = resolve_target(repo_url, repo_id)
        # Refreshing an expired upstream stage discards the transform built from it.
        analysis = await self._analysis(target)
        plan = await self._plan(target)
        report = self.cache.get(target.key, Stage.TRANSFORM)
        if report is None:
            report = await self._transform(target, self.settings.strict)

        validation = self.aggregator.build_validation_report(report, analysis)
        generator = ExplanationGenerator(self.runner)
        try:
            explanation = await generator.explain(report, plan)
        except RuntimeError as exc:
            self.logger.warning("Explanation generator failed for %s: %s", target.key, exc)
            explanation = ExplanationReport(repository_name=report.repository_name, timestamp=validation.timestamp)
            validation.notes.append(f"Explanations unavailable: {exc}")

        return ExplainValidateResult(
            explanation=explanation,
            explanation_markdown=render_markdown(explanation, validation, report),
            validation=validation,
        )

    def close(self) -> None:
        self.cache.clear()

    # ------------------------------------------------------------------
    # Cached stage computations

    async def _tree(self, target: RepositoryTarget) -> RepositoryTree:
        async def compute() -> RepositoryTree:
            if target.url is None:
                raise CacheStateError(
                    f"Repository {target.key} has not been ingested; provide repoUrl or call ingest first"
                )
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, self.ingester.ingest, target.url)

        return await self.cache.get_or_compute(target.key, Stage.TREE, compute)

    async def _analysis(self, target: RepositoryTarget) -> AnalysisResult:
        async def compute() -> AnalysisResult:
            tree = await self._tree(target)
            return await self.analyzer.analyze(tree, self._reader(tree))

        return await self.cache.get_or_compute(target.key, Stage.ANALYSIS, compute)

    async def _plan(self, target: RepositoryTarget) -> MigrationPlan:
        async def compute() -> MigrationPlan:
            tree = await self._tree(target)
            analysis = await self._analysis(target)
            planner = MigrationPlanner(self.runner, max_recommendations=self.settings.max_recommendations)
            return await planner.plan(analysis, tree.metadata)

        return await self.cache.get_or_compute(target.key, Stage.PLAN, compute)

    async def _transform(self, target: RepositoryTarget, strict: bool) -> TransformationReport:
        async def compute() -> TransformationReport:
            tree = await self._tree(target)
            analysis = await self._analysis(target)
            plan = await self._plan(target)
            agent = TransformerAgent(self.runner, strict=strict)
            outcome = await agent.transform(
                plan,
                analysis.contracts,
                {file.path for file in tree.iter_files()},
                self._reader(tree),
            )
            consistency = self.consistency.check(
                {item.file_path: item.transformed_content for item in outcome.transforms if item.has_changes},
                analysis,
            )
            return self.aggregator.build_transformation_report(
                repository_name=tree.metadata.full_name,
                transformation_id=f"{tree.metadata.full_name}-{int(time.time() * 1000)}",
                transforms=outcome.transforms,
                errors=outcome.errors,
                consistency=consistency,
                strict=strict,
            )

        return await self.cache.get_or_compute(target.key, Stage.TRANSFORM, compute)

    def _reader(self, tree: RepositoryTree):  # type: ignore[no-untyped-def]
        owner, name = tree.metadata.owner, tree.metadata.name

        async def read(path: str) -> str:
            loop = asyncio.get_running_loop()
            try:
                return await loop.run_in_executor(None, self.github.get_file_content, owner, name, path)
            except RemoteRepositoryError:
                self.logger.error("Could not fetch %s from %s/%s", path, owner, name)
                raise

        return read


__all__ = ["MigrationPipeline", "RepositoryTarget", "resolve_target"]
