"""Repository ingestion helpers."""

from .repository import (
    RepositoryIngester,
    RepositoryRef,
    build_ingest_result,
    parse_repository_id,
    parse_repository_url,
    repository_key,
)

__all__ = [
    "RepositoryIngester",
    "RepositoryRef",
    "build_ingest_result",
    "parse_repository_id",
    "parse_repository_url",
    "repository_key",
]
