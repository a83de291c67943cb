"""CLI behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tests._fixtures.pipeline import REPO_URL, make_harness

from port2monad.cli import _build_parser, main
from port2monad.stores import Stage


def test_cli_accepts_verbose_before_and_after_command() -> None:
    parser = _build_parser()

    assert parser.parse_args(["--verbose", "analyze", REPO_URL]).verbose is True
    assert parser.parse_args(["analyze", REPO_URL, "--verbose"]).verbose is True
    assert parser.parse_args(["analyze", REPO_URL]).verbose is False


def test_cli_transform_strict_defaults_to_config() -> None:
    parser = _build_parser()

    assert parser.parse_args(["transform", REPO_URL]).strict is None
    assert parser.parse_args(["transform", REPO_URL, "--strict"]).strict is True


def test_cli_analyze_prints_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    harness = make_harness()

    main(["--config", str(tmp_path), "analyze", REPO_URL], pipeline_factory=lambda config: harness.pipeline)

    payload = json.loads(capsys.readouterr().out)
    assert payload["entry_points"] == ["Sale"]
    assert payload["repository"]["full_name"] == "acme/vault"


def test_cli_validate_writes_markdown(tmp_path: Path) -> None:
    harness = make_harness()
    output = tmp_path / "out" / "report.md"

    main(
        ["--config", str(tmp_path), "validate", REPO_URL, "--markdown", "--output", str(output)],
        pipeline_factory=lambda config: harness.pipeline,
    )

    assert output.read_text(encoding="utf-8").startswith("# Monad Migration Report: acme/vault")
    assert not harness.pipeline.cache.has("acme/vault", Stage.TREE)


def test_cli_writes_logs_to_configured_file(tmp_path: Path) -> None:
    harness = make_harness()
    (tmp_path / ".port2monad.yml").write_text("logging:\n  file: run.log\n", encoding="utf-8")

    main(["--config", str(tmp_path), "ingest", REPO_URL], pipeline_factory=lambda config: harness.pipeline)

    assert "Starting repository ingestion for acme/vault" in (tmp_path / "run.log").read_text(encoding="utf-8")


def test_cli_reports_pipeline_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    harness = make_harness()

    with pytest.raises(SystemExit) as excinfo:
        main(
            ["--config", str(tmp_path), "plan", "https://example.com/acme/vault"],
            pipeline_factory=lambda config: harness.pipeline,
        )

    assert excinfo.value.code == 1
    assert "port2monad plan failed (input)" in capsys.readouterr().err


def test_cli_reports_invalid_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / ".port2monad.yml").write_text("[]\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "ingest", REPO_URL])

    assert excinfo.value.code == 1
    assert "must contain a mapping" in capsys.readouterr().err
