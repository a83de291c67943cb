"""In-memory, per-repository cache for staged pipeline artifacts."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from ..logging import get_logger

DEFAULT_TTL_SECONDS = 30 * 60


class Stage(IntEnum):
    """Pipeline stages in dependency order; later stages derive from earlier ones."""

    TREE = 0
    ANALYSIS = 1
    PLAN = 2
    TRANSFORM = 3

    def downstream(self) -> Tuple["Stage", ...]:
        return tuple(stage for stage in Stage if stage > self)


@dataclass(frozen=True)
class CachedArtifact:
    value: Any
    stored_at: float


@dataclass
class PipelineCacheEntry:
    key: str
    artifacts: Dict[Stage, CachedArtifact] = field(default_factory=dict)


class PipelineCache:
    """Get-or-compute store keyed by repository and stage.

    Storing or invalidating a stage discards every downstream artifact for the
    same key. Concurrent callers missing on the same (key, stage) share a
    single computation. A computation whose stage, or any upstream stage, was
    invalidated or replaced while it ran still resolves its callers but is not
    stored.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, PipelineCacheEntry] = {}
        self._epochs: Dict[Tuple[str, Stage], int] = {}
        self._inflight: Dict[Tuple[str, Stage], asyncio.Task[Any]] = {}
        self.logger = get_logger("stores.pipeline_cache")

    def get(self, key: str, stage: Stage) -> Optional[Any]:
        artifact = self._fresh_artifact(key, stage)
        return artifact.value if artifact is not None else None

    def has(self, key: str, stage: Stage) -> bool:
        return self._fresh_artifact(key, stage) is not None

    def store(self, key: str, stage: Stage, value: Any) -> None:
        entry = self._entries.setdefault(key, PipelineCacheEntry(key=key))
        replacing = stage in entry.artifacts
        self._discard(key, stage.downstream())
        # A first fill leaves in-flight downstream computations valid.
        self._bump(key, (stage, *stage.downstream()) if replacing else (stage,))
        entry.artifacts[stage] = CachedArtifact(value=value, stored_at=self._clock())
        self.logger.debug("Stored %s artifact for %s", stage.name.lower(), key)

    def invalidate(self, key: str, stage: Stage) -> None:
        """Drop ``stage`` and everything downstream of it for ``key``."""
        stages = (stage, *stage.downstream())
        self._discard(key, stages)
        self._bump(key, stages)
        for item in stages:
            # Later callers start a fresh computation instead of joining a stale one.
            self._inflight.pop((key, item), None)

    async def get_or_compute(
        self, key: str, stage: Stage, compute: Callable[[], Awaitable[Any]]
    ) -> Any:
        artifact = self._fresh_artifact(key, stage)
        if artifact is not None:
            self.logger.debug("Cache hit for %s/%s", key, stage.name.lower())
            return artifact.value

        task = self._inflight.get((key, stage))
        if task is None:
            self.logger.debug("Cache miss for %s/%s", key, stage.name.lower())
            task = asyncio.ensure_future(self._compute_and_store(key, stage, compute))
            self._inflight[(key, stage)] = task
        else:
            self.logger.debug("Joining in-flight computation for %s/%s", key, stage.name.lower())
        return await asyncio.shield(task)

    def clear(self) -> None:
        self._entries.clear()
        self._epochs.clear()
        self._inflight.clear()

    # ------------------------------------------------------------------
    # Internal helpers

    async def _compute_and_store(
        self, key: str, stage: Stage, compute: Callable[[], Awaitable[Any]]
    ) -> Any:
        epoch = self._epochs.get((key, stage), 0)
        current = asyncio.current_task()
        try:
            value = await compute()
            if self._epochs.get((key, stage), 0) == epoch:
                self.store(key, stage, value)
            else:
                self.logger.info(
                    "Discarding %s result for %s: an upstream stage changed during computation",
                    stage.name.lower(),
                    key,
                )
            return value
        finally:
            if self._inflight.get((key, stage)) is current:
                del self._inflight[(key, stage)]

    def _fresh_artifact(self, key: str, stage: Stage) -> Optional[CachedArtifact]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        artifact = entry.artifacts.get(stage)
        if artifact is None:
            return None
        if self._clock() - artifact.stored_at >= self.ttl_seconds:
            self.logger.debug("Expired %s artifact for %s", stage.name.lower(), key)
            del entry.artifacts[stage]
            return None
        return artifact

    def _discard(self, key: str, stages: Tuple[Stage, ...]) -> None:
        entry = self._entries.get(key)
        if entry is None:
            return
        for stage in stages:
            entry.artifacts.pop(stage, None)

    def _bump(self, key: str, stages: Tuple[Stage, ...]) -> None:
        for stage in stages:
            self._epochs[(key, stage)] = self._epochs.get((key, stage), 0) + 1


__all__ = ["DEFAULT_TTL_SECONDS", "PipelineCache", "Stage"]
