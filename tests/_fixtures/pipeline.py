"""A fully faked pipeline over one small repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from tests._fixtures.github import FakeGitHubClient
from tests._fixtures.runners import ScriptedRunner
from tests._fixtures.syntax import FakeParser, SyntaxBuilder, simple_contract

from port2monad.analysis import SolidityAnalyzer
from port2monad.pipeline import MigrationPipeline

REPO_URL = "https://github.com/acme/vault"
TOKEN_SOURCE = "contract Token {}\ncontract Sale is Token {}\n"
TRANSFORMED_SOURCE = 'import "./Missing.sol";\ncontract Token {}\ncontract Sale is Token {}\n'

PLAN_REPLY = [
    {
        "filePath": "contracts/Token.sol",
        "contractName": "Token",
        "changeCategory": "gas-optimization",
        "recommendedChange": "Pack storage",
        "rationale": "Fewer storage slots",
        "confidenceLevel": "high",
    }
]
TRANSFORM_REPLY = {
    "action": "apply",
    "transformedCode": TRANSFORMED_SOURCE,
    "appliedChanges": [{"recommendationIndex": 0, "description": "Pack storage"}],
    "skippedChanges": [],
    "warnings": [],
}
EXPLAIN_REPLY = {
    "explanations": [
        {"filePath": "contracts/Token.sol", "summary": "Packed storage", "detailedExplanation": "Two slots saved"}
    ]
}


def token_parser() -> FakeParser:
    b = SyntaxBuilder(TOKEN_SOURCE)
    return FakeParser({TOKEN_SOURCE: b.tree(simple_contract(b, "Token"), simple_contract(b, "Sale", "Token"))})


@dataclass
class PipelineHarness:
    pipeline: MigrationPipeline
    github: FakeGitHubClient
    runner: ScriptedRunner
    parser: FakeParser


def make_harness(**replies: Any) -> PipelineHarness:
    scripted: Dict[str, Any] = {"plan": PLAN_REPLY, "transform": TRANSFORM_REPLY, "explain": EXPLAIN_REPLY}
    scripted.update(replies)
    github = FakeGitHubClient({"contracts/Token.sol": TOKEN_SOURCE, "README.md": "# Vault"})
    runner = ScriptedRunner(**scripted)
    parser = token_parser()
    pipeline = MigrationPipeline(
        github=github,  # type: ignore[arg-type]
        runner=runner,  # type: ignore[arg-type]
        analyzer=SolidityAnalyzer(parser=parser),
    )
    return PipelineHarness(pipeline=pipeline, github=github, runner=runner, parser=parser)


__all__ = ["PipelineHarness", "REPO_URL", "TOKEN_SOURCE", "TRANSFORMED_SOURCE", "make_harness"]
