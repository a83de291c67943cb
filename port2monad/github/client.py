"""Minimal GitHub REST client for repository metadata and contents."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, List, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from ..errors import RemoteRepositoryError
from ..logging import get_logger
from ..models import RepositoryMetadata

_JSON_ACCEPT = "application/vnd.github.v3+json"
_RAW_ACCEPT = "application/vnd.github.v3.raw"

Opener = Callable[..., Any]


@dataclass(frozen=True)
class ContentEntry:
    """One item of a directory listing from the contents API."""

    name: str
    path: str
    type: str
    size: int
    sha: Optional[str] = None


class GitHubClient:
    """Fetches repository metadata, directory listings and raw file content."""

    def __init__(
        self,
        token: str | None = None,
        *,
        api_url: str = "https://api.github.com",
        timeout: float = 10.0,
        opener: Opener | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._token = token
        self._opener = opener or urlopen
        self.logger = get_logger("github")

    def get_repository(self, owner: str, repo: str) -> RepositoryMetadata:
        self.logger.debug("Fetching repository metadata for %s/%s", owner, repo)
        payload = self._get_json(f"/repos/{_quote(owner)}/{_quote(repo)}")
        if not isinstance(payload, dict):
            raise RemoteRepositoryError(f"Unexpected metadata payload for {owner}/{repo}")
        owner_info = payload.get("owner") if isinstance(payload.get("owner"), dict) else {}
        return RepositoryMetadata(
            owner=str(owner_info.get("login") or owner),
            name=str(payload.get("name") or repo),
            full_name=str(payload.get("full_name") or f"{owner}/{repo}"),
            url=str(payload.get("html_url") or f"https://github.com/{owner}/{repo}"),
            default_branch=str(payload.get("default_branch") or "main"),
            is_private=bool(payload.get("private", False)),
            size=int(payload.get("size") or 0),
            description=payload.get("description") or None,
        )

    def list_contents(self, owner: str, repo: str, path: str = "") -> List[ContentEntry]:
        self.logger.debug("Listing %s/%s:%s", owner, repo, path or "/")
        payload = self._get_json(
            f"/repos/{_quote(owner)}/{_quote(repo)}/contents/{_quote(path, safe='/')}?per_page=100"
        )
        if isinstance(payload, dict):
            payload = [payload]
        if not isinstance(payload, list):
            raise RemoteRepositoryError(f"Unexpected contents payload for {owner}/{repo}/{path}")
        entries: List[ContentEntry] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            name = item.get("name")
            item_path = item.get("path")
            if not isinstance(name, str) or not isinstance(item_path, str):
                continue
            entries.append(
                ContentEntry(
                    name=name,
                    path=item_path,
                    type=str(item.get("type") or "file"),
                    size=int(item.get("size") or 0),
                    sha=item.get("sha"),
                )
            )
        return entries

    def get_file_content(self, owner: str, repo: str, path: str) -> str:
        self.logger.debug("Fetching file %s/%s:%s", owner, repo, path)
        raw = self._request(
            f"/repos/{_quote(owner)}/{_quote(repo)}/contents/{_quote(path, safe='/')}",
            accept=_RAW_ACCEPT,
        )
        return raw.decode("utf-8", errors="replace")

    # ------------------------------------------------------------------
    # Internal helpers

    def _get_json(self, endpoint: str) -> Any:
        raw = self._request(endpoint, accept=_JSON_ACCEPT)
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise RemoteRepositoryError(f"GitHub returned invalid JSON for {endpoint}") from exc

    def _request(self, endpoint: str, *, accept: str) -> bytes:
        headers = {"Accept": accept, "User-Agent": "port2monad"}
        if self._token:
            headers["Authorization"] = f"token {self._token}"
        request = Request(f"{self.api_url}{endpoint}", headers=headers, method="GET")
        try:
            with self._opener(request, timeout=self.timeout) as response:
                return response.read()
        except HTTPError as exc:
            raise RemoteRepositoryError(
                f"GitHub request {endpoint} failed with status {exc.code}: {exc.reason}"
            ) from exc
        except URLError as exc:
            raise RemoteRepositoryError(f"GitHub request {endpoint} failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise RemoteRepositoryError(f"GitHub request {endpoint} timed out") from exc


def _quote(value: str, safe: str = "") -> str:
    return quote(value, safe=safe)


__all__ = ["ContentEntry", "GitHubClient"]
