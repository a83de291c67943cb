"""Configuration loading for port2monad (.port2monad.yml plus environment)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

CONFIG_FILENAME = ".port2monad.yml"
DEFAULT_CACHE_TTL_SECONDS = 30 * 60


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ServerConfig:
    """HTTP service bind settings."""

    host: str = "0.0.0.0"
    port: int = 8000


@dataclass
class GitHubConfig:
    """Remote repository client settings."""

    token: Optional[str] = None
    api_url: str = "https://api.github.com"
    timeout: float = 10.0


@dataclass
class LLMConfig:
    """Chat-completions endpoint used by the planner, transformer and explainer."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    request_timeout: Optional[float] = None


@dataclass
class LoggingConfig:
    """Log level and optional log file for the CLI and the service."""

    level: str = "INFO"
    file: Optional[Path] = None


@dataclass
class PipelineConfig:
    """Staged pipeline limits and cache lifetime."""

    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    max_recommendations: int = 200
    max_files: int = 5000
    max_depth: int = 10
    strict: bool = False


@dataclass
class Port2MonadConfig:
    """Represents the settings defined in .port2monad.yml and the environment."""

    root: Path
    server: ServerConfig = field(default_factory=ServerConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(
    config_path: Path, *, environ: Optional[Mapping[str, str]] = None
) -> Port2MonadConfig:
    """Load configuration from disk, then apply environment overrides."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    env = os.environ if environ is None else environ

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)

    server_data = _as_dict(data.get("server"))
    server = ServerConfig(
        host=_as_str(server_data.get("host")) or ServerConfig.host,
        port=_as_int(server_data.get("port")) or ServerConfig.port,
    )

    github_data = _as_dict(data.get("github"))
    github = GitHubConfig(
        token=_as_str(github_data.get("token")),
        api_url=_as_str(github_data.get("api_url")) or GitHubConfig.api_url,
        timeout=_as_float(github_data.get("timeout")) or GitHubConfig.timeout,
    )

    llm_data = _as_dict(data.get("llm"))
    llm = LLMConfig(
        model=_as_str(llm_data.get("model")),
        base_url=_as_str(llm_data.get("base_url")),
        api_key=_as_str(llm_data.get("api_key")),
        temperature=_as_float(llm_data.get("temperature")),
        max_tokens=_as_int(llm_data.get("max_tokens")),
        request_timeout=_as_float(llm_data.get("request_timeout")),
    )

    pipeline_data = _as_dict(data.get("pipeline"))
    pipeline = PipelineConfig(
        cache_ttl_seconds=_as_float(pipeline_data.get("cache_ttl_seconds"))
        or PipelineConfig.cache_ttl_seconds,
        max_recommendations=_as_int(pipeline_data.get("max_recommendations"))
        or PipelineConfig.max_recommendations,
        max_files=_as_int(pipeline_data.get("max_files")) or PipelineConfig.max_files,
        max_depth=_as_int(pipeline_data.get("max_depth")) or PipelineConfig.max_depth,
        strict=_as_bool(pipeline_data.get("strict")) or False,
    )

    logging_data = _as_dict(data.get("logging"))
    log_file = _as_str(logging_data.get("file"))
    logging_config = LoggingConfig(
        level=_as_str(logging_data.get("level")) or LoggingConfig.level,
        file=_resolve_relative(root, log_file) if log_file else None,
    )

    config = Port2MonadConfig(
        root=root,
        server=server,
        github=github,
        llm=llm,
        pipeline=pipeline,
        logging=logging_config,
    )
    _apply_environment(config, env)
    return config


def _apply_environment(config: Port2MonadConfig, env: Mapping[str, str]) -> None:
    token = env.get("GITHUB_TOKEN")
    # Placeholder tokens from sample .env files must not be sent upstream.
    if token and token != "your_github_token_here":
        config.github.token = token

    host = env.get("PORT2MONAD_HOST")
    if host:
        config.server.host = host
    port = _as_int(env.get("PORT2MONAD_PORT"))
    if port:
        config.server.port = port

    ttl = _as_float(env.get("PORT2MONAD_CACHE_TTL"))
    if ttl:
        config.pipeline.cache_ttl_seconds = ttl

    model = env.get("PORT2MONAD_LLM_MODEL")
    if model:
        config.llm.model = model
    base_url = env.get("PORT2MONAD_LLM_BASE_URL")
    if base_url:
        config.llm.base_url = base_url
    api_key = env.get("PORT2MONAD_LLM_API_KEY")
    if api_key:
        config.llm.api_key = api_key

    log_level = env.get("PORT2MONAD_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level
    log_file = env.get("PORT2MONAD_LOG_FILE")
    if log_file:
        config.logging.file = _resolve_relative(config.root, log_file)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _resolve_relative(root: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "GitHubConfig",
    "LLMConfig",
    "LoggingConfig",
    "PipelineConfig",
    "Port2MonadConfig",
    "ServerConfig",
    "load_config",
]
