"""Repository ingestion: URL parsing, cache keys, and tree fetching."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Optional

from ..errors import InputError, RemoteRepositoryError
from ..github.client import GitHubClient
from ..logging import get_logger
from ..models import (
    IngestResult,
    RepositoryDirectory,
    RepositoryFile,
    RepositoryTree,
    TreeStats,
)
from .filetypes import detect_file_type, file_extension, should_ignore_directory, should_ignore_file

_GITHUB_URL = re.compile(r"github\.com[/:]([^/\s]+)/([^/\s?#]+)")
_REPO_ID = re.compile(r"^([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)$")

PREVIEW_DEPTH = 2
_PREVIEW_FILES = 10
_PREVIEW_SUBDIRECTORIES = 5

_STAT_FIELDS = {
    "solidity": "solidity_files",
    "typescript": "typescript_files",
    "javascript": "javascript_files",
    "config": "config_files",
}


@dataclass(frozen=True)
class RepositoryRef:
    """Owner/name pair identifying a remote repository."""

    owner: str
    name: str

    @property
    def key(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.key}"


def parse_repository_url(repo_url: str) -> RepositoryRef:
    """Parse `https://github.com/owner/repo[.git][/]` style URLs."""
    match = _GITHUB_URL.search(repo_url.strip())
    if not match:
        raise InputError(
            f"Invalid GitHub repository URL: {repo_url}. Expected format: https://github.com/owner/repo"
        )
    return RepositoryRef(owner=match.group(1), name=_strip_git_suffix(match.group(2)))


def parse_repository_id(repo_id: str) -> RepositoryRef:
    """Parse an `owner/repo` identifier, as produced by `RepositoryRef.key`."""
    match = _REPO_ID.match(repo_id.strip())
    if not match:
        raise InputError(f"Invalid repository identifier: {repo_id}. Expected format: owner/repo")
    return RepositoryRef(owner=match.group(1), name=_strip_git_suffix(match.group(2)))


def repository_key(repo_url: str | None = None, repo_id: str | None = None) -> str:
    """Return the case-sensitive `owner/name` cache key for a URL or identifier."""
    if repo_id:
        return parse_repository_id(repo_id).key
    if repo_url:
        return parse_repository_url(repo_url).key
    raise InputError("Missing required field: repoUrl or repoId")


def _strip_git_suffix(name: str) -> str:
    return name[: -len(".git")] if name.endswith(".git") else name


class RepositoryIngester:
    """Walks a repository through the contents API into a `RepositoryTree`."""

    def __init__(
        self,
        client: GitHubClient,
        *,
        max_depth: int = 10,
        max_files: int = 5000,
    ) -> None:
        self.client = client
        self.max_depth = max_depth
        self.max_files = max_files
        self.logger = get_logger("ingestion")

    def ingest(self, repo_url: str) -> RepositoryTree:
        ref = parse_repository_url(repo_url)
        self.logger.info("Starting repository ingestion for %s", ref.key)

        metadata = self.client.get_repository(ref.owner, ref.name)
        stats = TreeStats()
        root = self._fetch_directory(ref, "", 0, stats)
        # The host reports repository size in kilobytes.
        stats.total_size = metadata.size * 1024

        tree = RepositoryTree(
            metadata=metadata,
            root=root,
            stats=stats,
            fetched_at=_utc_now(),
        )
        self.logger.info(
            "Ingested %s: %d files (%d solidity)",
            ref.key,
            stats.total_files,
            stats.solidity_files,
        )
        return tree

    def _fetch_directory(
        self, ref: RepositoryRef, path: str, depth: int, stats: TreeStats
    ) -> RepositoryDirectory:
        directory = RepositoryDirectory(path=path, name=_directory_name(path))
        if depth > self.max_depth or stats.total_files > self.max_files:
            return directory

        try:
            entries = self.client.list_contents(ref.owner, ref.name, path)
        except RemoteRepositoryError as exc:
            # A single unreadable directory is treated as empty; the walk continues.
            self.logger.error("Failed to fetch directory %s: %s", path or "/", exc)
            return directory

        for entry in entries:
            if entry.type == "dir":
                if should_ignore_directory(entry.name):
                    self.logger.debug("Ignoring directory %s", entry.path)
                    continue
                child = self._fetch_directory(ref, entry.path, depth + 1, stats)
                if child.files or child.subdirectories:
                    directory.subdirectories.append(child)
                continue
            if should_ignore_file(entry.name):
                self.logger.debug("Ignoring file %s", entry.path)
                continue
            file_type = detect_file_type(entry.name)
            directory.files.append(
                RepositoryFile(
                    path=entry.path,
                    name=entry.name,
                    extension=file_extension(entry.name),
                    type=file_type,
                    size=entry.size,
                    sha=entry.sha,
                )
            )
            stats.total_files += 1
            field_name = _STAT_FIELDS.get(file_type, "other_files")
            setattr(stats, field_name, getattr(stats, field_name) + 1)
        return directory


def build_preview(
    directory: RepositoryDirectory, depth: int = 0, max_depth: int = PREVIEW_DEPTH
) -> RepositoryDirectory:
    """Return a truncated copy of the tree for display."""
    files = list(directory.files[:_PREVIEW_FILES])
    if depth >= max_depth:
        return RepositoryDirectory(path=directory.path, name=directory.name, files=files)
    return RepositoryDirectory(
        path=directory.path,
        name=directory.name,
        files=files,
        subdirectories=[
            build_preview(subdirectory, depth + 1, max_depth)
            for subdirectory in directory.subdirectories[:_PREVIEW_SUBDIRECTORIES]
        ],
    )


def build_ingest_result(tree: RepositoryTree, max_depth: Optional[int] = None) -> IngestResult:
    depth = PREVIEW_DEPTH if max_depth is None else max_depth
    return IngestResult(
        owner=tree.metadata.owner,
        name=tree.metadata.name,
        full_name=tree.metadata.full_name,
        stats=tree.stats,
        preview=build_preview(tree.root, 0, depth),
        max_depth=depth,
    )


def _directory_name(path: str) -> str:
    return path.rsplit("/", 1)[-1] if path else "root"


def _utc_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


__all__ = [
    "PREVIEW_DEPTH",
    "RepositoryIngester",
    "RepositoryRef",
    "build_ingest_result",
    "build_preview",
    "parse_repository_id",
    "parse_repository_url",
    "repository_key",
]
