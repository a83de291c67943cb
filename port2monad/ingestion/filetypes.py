"""File categorisation and ignore rules for repository ingestion."""

from __future__ import annotations

from ..models import FileType

_SOLIDITY_EXTENSIONS = {".sol"}
_TYPESCRIPT_EXTENSIONS = {".ts", ".tsx"}
_JAVASCRIPT_EXTENSIONS = {".js", ".jsx"}
_CONFIG_EXTENSIONS = {".json", ".yaml", ".yml", ".toml"}
_CONFIG_SUFFIXES = (".config.js", ".config.ts")
_MARKDOWN_EXTENSIONS = {".md", ".markdown", ".mdx"}

_IGNORED_DIRECTORIES = {
    "node_modules",
    ".git",
    ".github",
    "dist",
    "build",
    "coverage",
    ".next",
    "out",
    ".vercel",
    "artifacts",
    "cache",
    ".cache",
    "venv",
    ".venv",
    "__pycache__",
}

_IGNORED_FILES = {
    ".DS_Store",
    "Thumbs.db",
    ".env",
    ".env.local",
    ".env.production",
    ".npmrc",
    ".yarnrc",
}


def file_extension(filename: str) -> str:
    """Return the lower-cased final extension including the dot, or ''."""
    if "." not in filename.strip("."):
        return ""
    return "." + filename.rsplit(".", 1)[1].lower()


def detect_file_type(filename: str) -> FileType:
    extension = file_extension(filename)
    if extension in _SOLIDITY_EXTENSIONS:
        return "solidity"
    if filename.endswith(_CONFIG_SUFFIXES):
        return "config"
    if extension in _TYPESCRIPT_EXTENSIONS:
        return "typescript"
    if extension in _JAVASCRIPT_EXTENSIONS:
        return "javascript"
    if extension in _CONFIG_EXTENSIONS:
        return "config"
    if extension in _MARKDOWN_EXTENSIONS:
        return "markdown"
    return "other"


def should_ignore_directory(name: str) -> bool:
    return name in _IGNORED_DIRECTORIES


def should_ignore_file(name: str) -> bool:
    return name in _IGNORED_FILES


__all__ = [
    "detect_file_type",
    "file_extension",
    "should_ignore_directory",
    "should_ignore_file",
]
