"""Tests for the GitHub REST client."""

from __future__ import annotations

import io
import json
from urllib.error import HTTPError

import pytest

from port2monad.errors import RemoteRepositoryError
from port2monad.github import ContentEntry, GitHubClient


class FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class RecordingOpener:
    def __init__(self, responses) -> None:
        self.responses = responses
        self.requests = []

    def __call__(self, request, timeout=None):
        self.requests.append((request, timeout))
        body = self.responses[request.full_url]
        if isinstance(body, Exception):
            raise body
        if not isinstance(body, bytes):
            body = json.dumps(body).encode("utf-8")
        return FakeResponse(body)


API = "https://api.github.com/repos/acme/vault"


def test_get_repository_maps_metadata_and_sends_token() -> None:
    opener = RecordingOpener(
        {
            API: {
                "name": "vault",
                "full_name": "acme/vault",
                "html_url": "https://github.com/acme/vault",
                "default_branch": "develop",
                "private": True,
                "size": 120,
                "description": None,
                "owner": {"login": "acme"},
            }
        }
    )
    client = GitHubClient("token-123", timeout=3.0, opener=opener)

    metadata = client.get_repository("acme", "vault")

    assert metadata.full_name == "acme/vault"
    assert metadata.default_branch == "develop"
    assert metadata.is_private is True
    assert metadata.size == 120
    assert metadata.description is None
    request, timeout = opener.requests[0]
    assert request.get_header("Authorization") == "token token-123"
    assert timeout == 3.0


def test_list_contents_returns_entries() -> None:
    opener = RecordingOpener(
        {
            f"{API}/contents/contracts?per_page=100": [
                {"name": "Vault.sol", "path": "contracts/Vault.sol", "type": "file", "size": 10, "sha": "abc"},
                {"name": "lib", "path": "contracts/lib", "type": "dir", "size": 0},
                "garbage",
            ]
        }
    )

    entries = GitHubClient(opener=opener).list_contents("acme", "vault", "contracts")

    assert entries == [
        ContentEntry("Vault.sol", "contracts/Vault.sol", "file", 10, "abc"),
        ContentEntry("lib", "contracts/lib", "dir", 0, None),
    ]


def test_get_file_content_requests_raw_media_type() -> None:
    opener = RecordingOpener({f"{API}/contents/contracts/Vault.sol": b"contract Vault {}"})
    client = GitHubClient(opener=opener)

    assert client.get_file_content("acme", "vault", "contracts/Vault.sol") == "contract Vault {}"
    request, _ = opener.requests[0]
    assert request.get_header("Accept") == "application/vnd.github.v3.raw"
    assert request.get_header("Authorization") is None


def test_http_errors_become_remote_repository_errors() -> None:
    error = HTTPError(API, 404, "Not Found", {}, io.BytesIO(b""))
    client = GitHubClient(opener=RecordingOpener({API: error}))

    with pytest.raises(RemoteRepositoryError, match="404"):
        client.get_repository("acme", "vault")


def test_invalid_json_is_rejected() -> None:
    client = GitHubClient(opener=RecordingOpener({API: b"<html>"}))

    with pytest.raises(RemoteRepositoryError, match="invalid JSON"):
        client.get_repository("acme", "vault")
