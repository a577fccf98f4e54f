"""GitHub adapters."""

from github_workflow_manager.github.client import GitHubClient

__all__ = ["GitHubClient"]
