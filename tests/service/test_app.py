"""Tests for the FastAPI service."""

from __future__ import annotations

from typing import Iterator

import pytest

try:
    from fastapi.testclient import TestClient
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pytest.skip("fastapi not installed", allow_module_level=True)

from tests._fixtures.pipeline import REPO_URL, PipelineHarness

from port2monad.errors import RemoteRepositoryError
from port2monad.service import create_app
from port2monad.stores import Stage


@pytest.fixture
def client(harness: PipelineHarness) -> Iterator[TestClient]:
    app = create_app(lambda: harness.pipeline)
    with TestClient(app) as test_client:
        yield test_client


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["timestamp"].endswith("Z")


def test_index_lists_endpoints(client: TestClient) -> None:
    body = client.get("/").json()

    assert body["name"] == "port2monad"
    assert body["endpoints"]["transform"] == "POST /transform"


def test_ingest_endpoint(client: TestClient) -> None:
    response = client.post("/ingest", json={"repoUrl": REPO_URL})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["full_name"] == "acme/vault"
    assert body["data"]["stats"]["solidity_files"] == 1


def test_ingest_requires_repo_url(client: TestClient) -> None:
    response = client.post("/ingest", json={})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": {"kind": "input", "message": "Missing required field: repoUrl"},
    }


def test_invalid_url_is_an_input_error(client: TestClient) -> None:
    response = client.post("/plan/migration", json={"repoUrl": "https://example.com/acme/vault"})

    assert response.status_code == 400
    assert response.json()["error"]["kind"] == "input"


def test_malformed_body_is_an_input_error(client: TestClient) -> None:
    response = client.post("/ingest", json={"repoUrl": REPO_URL, "refresh": {"not": "a bool"}})

    assert response.status_code == 400
    assert response.json()["error"] == {"kind": "input", "message": "Invalid request body"}


def test_repo_id_before_ingest_is_a_conflict(client: TestClient) -> None:
    response = client.post("/analyze/solidity", json={"repoId": "acme/vault"})

    assert response.status_code == 409
    assert response.json()["error"]["kind"] == "cache_state"


def test_full_flow_by_identifier(client: TestClient, harness: PipelineHarness) -> None:
    assert client.post("/ingest", json={"repoUrl": REPO_URL}).status_code == 200

    analysis = client.post("/analyze/solidity", json={"repoId": "acme/vault"}).json()["data"]
    plan = client.post("/plan/migration", json={"repoId": "acme/vault"}).json()["data"]
    transform = client.post("/transform", json={"repoId": "acme/vault", "strict": False}).json()["data"]
    result = client.post("/explain-validate", json={"repoId": "acme/vault"}).json()["data"]

    assert analysis["entry_points"] == ["Sale"]
    assert analysis["dependency_graph"]["edges"] == [{"source": "Sale", "target": "Token", "kind": "inheritance"}]
    assert plan["recommendations"][0]["file_path"] == "contracts/Token.sol"
    assert transform["files_modified"] == 1
    assert result["validation"]["compilation_status"] == "not-attempted"
    assert result["explanation"]["entries"][0]["summary"] == "Packed storage"
    assert result["explanation_markdown"].startswith("# Monad Migration Report: acme/vault")
    assert harness.github.metadata_calls == 1


def test_collaborator_failure_maps_to_bad_gateway(
    client: TestClient, harness: PipelineHarness, monkeypatch: pytest.MonkeyPatch
) -> None:
    def unavailable(owner: str, repo: str):
        raise RemoteRepositoryError("GitHub request /repos/acme/vault failed with status 503")

    monkeypatch.setattr(harness.github, "get_repository", unavailable)

    response = client.post("/ingest", json={"repoUrl": REPO_URL})

    assert response.status_code == 502
    assert response.json()["error"]["kind"] == "collaborator"


def test_unexpected_errors_are_internal(harness: PipelineHarness, monkeypatch: pytest.MonkeyPatch) -> None:
    async def explode(*args, **kwargs):
        raise ValueError("secret stack detail")

    monkeypatch.setattr(harness.pipeline, "analyze", explode)
    app = create_app(lambda: harness.pipeline)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/analyze/solidity", json={"repoUrl": REPO_URL})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": {"kind": "internal", "message": "Internal server error"}}


def test_shutdown_clears_pipeline_cache(harness: PipelineHarness) -> None:
    app = create_app(lambda: harness.pipeline)
    with TestClient(app) as client:
        client.post("/ingest", json={"repoUrl": REPO_URL})
        assert harness.pipeline.cache.has("acme/vault", Stage.TREE)

    assert not harness.pipeline.cache.has("acme/vault", Stage.TREE)
