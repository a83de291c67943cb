"""CLI entrypoints for port2monad commands."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable

from .config import ConfigError, Port2MonadConfig, load_config
from .errors import Port2MonadError
from .logging import configure_logging
from .pipeline import MigrationPipeline

PipelineFactory = Callable[[Port2MonadConfig], MigrationPipeline]


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_repository_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("repo_url", help="GitHub repository URL, e.g. https://github.com/owner/repo.")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the JSON result to this file instead of stdout.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="port2monad",
        description="Analyze Solidity repositories and plan their migration to Monad.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=Path.cwd(),
        help="Path to .port2monad.yml or the directory containing it.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file (overrides logging.file).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default=None, help="Override the bind host.")
    serve_parser.add_argument("--port", type=int, default=None, help="Override the bind port.")

    ingest_parser = subparsers.add_parser("ingest", help="Fetch a repository tree and print its stats.")
    _add_verbose_option(ingest_parser, suppress_default=True)
    _add_repository_argument(ingest_parser)

    analyze_parser = subparsers.add_parser("analyze", help="Extract contracts and the dependency graph.")
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_repository_argument(analyze_parser)

    plan_parser = subparsers.add_parser("plan", help="Generate a Monad migration plan.")
    _add_verbose_option(plan_parser, suppress_default=True)
    _add_repository_argument(plan_parser)

    transform_parser = subparsers.add_parser("transform", help="Apply the migration plan to source files.")
    _add_verbose_option(transform_parser, suppress_default=True)
    _add_repository_argument(transform_parser)
    transform_parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Skip low-confidence recommendations.",
    )

    validate_parser = subparsers.add_parser(
        "validate", help="Transform, then explain and validate the changes."
    )
    _add_verbose_option(validate_parser, suppress_default=True)
    _add_repository_argument(validate_parser)
    validate_parser.add_argument(
        "--markdown",
        action="store_true",
        help="Print the Markdown report instead of JSON.",
    )

    return parser


def main(
    argv: list[str] | None = None,
    *,
    pipeline_factory: PipelineFactory = MigrationPipeline.from_config,
) -> None:
    """CLI entrypoint for port2monad commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    configure_logging(
        verbose=bool(args.verbose),
        level=config.logging.level,
        log_file=args.log_file or config.logging.file,
    )

    if args.command == "serve":
        from .service import run_service

        if args.host:
            config.server.host = args.host
        if args.port:
            config.server.port = args.port
        run_service(config)
        return

    pipeline = pipeline_factory(config)
    try:
        output = _run_command(pipeline, args)
    except Port2MonadError as exc:
        parser.exit(1, f"port2monad {args.command} failed ({exc.kind}): {exc.message}\n")
    finally:
        pipeline.close()

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(output, encoding="utf-8")
        print(f"Wrote {args.command} result to {_relativize(args.output)}")
    else:
        print(output)


def _run_command(pipeline: MigrationPipeline, args: argparse.Namespace) -> str:
    url = args.repo_url
    if args.command == "ingest":
        return _to_json(_run(pipeline.ingest(url)))
    if args.command == "analyze":
        return _to_json(_run(pipeline.analyze(url)))
    if args.command == "plan":
        return _to_json(_run(pipeline.plan(url)))
    if args.command == "transform":
        return _to_json(_run(pipeline.transform(url, strict=args.strict)))
    if args.command == "validate":
        result = _run(pipeline.explain_validate(url))
        return result.explanation_markdown if args.markdown else _to_json(result)
    raise ValueError(f"Unknown command: {args.command}")  # pragma: no cover - argparse enforces choices


def _run(awaitable: Awaitable[Any]) -> Any:
    async def runner() -> Any:
        return await awaitable

    return asyncio.run(runner())


def _to_json(result: Any) -> str:
    return json.dumps(result.to_dict(), indent=2)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
