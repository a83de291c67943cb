"""Remote repository client."""

from .client import ContentEntry, GitHubClient

__all__ = ["ContentEntry", "GitHubClient"]
