"""Structured error taxonomy surfaced to pipeline callers."""

from __future__ import annotations

from typing import Dict


class Port2MonadError(RuntimeError):
    """Base error carrying a machine-readable kind alongside its message."""

    kind = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class InputError(Port2MonadError):
    """Malformed repository identifier or missing request field."""

    kind = "input"


class CacheStateError(Port2MonadError):
    """A stage was requested with no upstream artifact and no way to build one."""

    kind = "cache_state"


class CollaboratorError(Port2MonadError):
    """A remote collaborator (repository host, model endpoint) failed."""

    kind = "collaborator"


class RemoteRepositoryError(CollaboratorError):
    """The repository host rejected or failed a request."""


class SourceParseError(Port2MonadError):
    """A source file could not be turned into a syntax tree."""

    kind = "parse"


__all__ = [
    "CacheStateError",
    "CollaboratorError",
    "InputError",
    "Port2MonadError",
    "RemoteRepositoryError",
    "SourceParseError",
]
