"""GitHub API client wrapper.

This wraps PyGithub (repository browsing, workflow lookup) and a `requests`
session (raw file content, run listings) behind the two capabilities the
workflow catalog needs. Keeping GitHub calls here makes the catalog easy to
test with fakes.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import requests
from github import Auth, Github, GithubException
from github.Repository import Repository
from github.Workflow import Workflow

from github_workflow_manager.workflows.models import RunSummary
from github_workflow_manager.workflows.sources import (
    RepositoryFile,
    WorkflowSourceError,
    is_workflow_file,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class GitHubClient:
    """Small wrapper around PyGithub for workflow files and runs.

    Implements `WorkflowFileSource` and `ExecutionControl`.
    """

    def __init__(
        self,
        *,
        token: str,
        repository: str,
        base_url: str = "https://api.github.com",
        repo: Repository | None = None,
        github_api: Github | None = None,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")
        if not repository:
            raise ValueError("GitHub repository is required")

        self._repository_name = repository
        self._rest_base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "github-workflow-manager",
            }
        )

        if repo is not None:
            self._repo = repo
            self._github = None
            logger.debug("Using injected Repository instance")
            return

        auth = Auth.Token(token)
        self._github = github_api or Github(auth=auth, base_url=base_url)

        try:
            self._repo = self._github.get_repo(repository)
        except GithubException as e:
            logger.error("Failed to connect to repository", extra={"repo": repository})
            raise WorkflowSourceError(f"Could not open repository {repository}: {e}") from e
        logger.info(
            "Authenticated with GitHub and connected to repository", extra={"repo": repository}
        )

    @property
    def repository(self) -> str:
        """Return the configured repository name ("owner/repo")."""

        return self._repository_name

    def _repo_url(self, path: str) -> str:
        path = path.lstrip("/")
        return f"{self._rest_base_url}/repos/{self._repository_name}/{path}"

    def list_definition_files(self, directory: str) -> list[RepositoryFile]:
        """List workflow files (`.yml` / `.yaml`) directly under `directory`."""

        logger.debug("Listing workflow files", extra={"path": directory})
        try:
            contents = self._repo.get_contents(directory)
        except GithubException as e:
            if e.status == 404:
                logger.warning(
                    "Workflow directory not found",
                    extra={"repo": self._repository_name, "path": directory},
                )
                return []
            raise WorkflowSourceError(f"Could not list {directory}: {e}") from e

        items = contents if isinstance(contents, list) else [contents]
        files = [
            RepositoryFile(name=c.name, path=c.path)
            for c in items
            if c.type == "file" and is_workflow_file(c.name)
        ]
        logger.info(
            "Found workflow files",
            extra={"repo": self._repository_name, "items": len(items), "files": len(files)},
        )
        return files

    def read_file_content(self, path: str, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> str:
        """Return the raw text of a file in the repository's default branch."""

        url = self._repo_url(f"contents/{quote(path.lstrip('/'))}")
        resp = self._session.get(
            url, headers={"Accept": "application/vnd.github.raw"}, timeout=timeout
        )
        resp.raise_for_status()
        return resp.content.decode("utf-8", errors="replace")

    def find_workflow(self, workflow_name: str) -> Workflow | None:
        """Resolve a workflow by display name, falling back to its file name."""

        by_file: Workflow | None = None
        for workflow in self._repo.get_workflows():
            if workflow.name == workflow_name:
                return workflow
            if by_file is None and workflow.path.rsplit("/", 1)[-1] == workflow_name:
                by_file = workflow
        return by_file

    def list_runs_for_workflow(
        self, workflow_name: str, *, count: int = 10, timeout: float = DEFAULT_TIMEOUT_SECONDS
    ) -> list[RunSummary]:
        """Most recent runs first; empty when the workflow is unknown."""

        workflow = self.find_workflow(workflow_name)
        if workflow is None:
            logger.warning("Workflow not found", extra={"workflow": workflow_name})
            return []

        url = self._repo_url(f"actions/workflows/{workflow.id}/runs")
        resp = self._session.get(url, params={"per_page": count, "page": 1}, timeout=timeout)
        resp.raise_for_status()
        data: dict[str, Any] = resp.json()
        raw_runs = data.get("workflow_runs")
        if not isinstance(raw_runs, list):
            return []
        return [RunSummary.from_api(r) for r in raw_runs[:count] if isinstance(r, dict)]

    def close(self) -> None:
        """Close the underlying HTTP connections."""

        self._session.close()
        if self._github is not None:
            self._github.close()
        logger.info("GitHub client closed")
