"""Code-hosting API clients."""

from critscore.adapters.base import BaseHostClient, parse_repo_url
from critscore.adapters.github import GitHubClient

__all__ = ["BaseHostClient", "GitHubClient", "parse_repo_url"]
