"""Capabilities the workflow catalog consumes.

The catalog never talks to GitHub directly; it is handed a file source and an
execution-control object. `GitHubClient` implements both, tests use fakes.
Both protocols are synchronous; the catalog runs them on worker threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from github_workflow_manager.workflows.models import RunSummary

DEFAULT_WORKFLOWS_PATH = ".github/workflows"
WORKFLOW_FILE_SUFFIXES: tuple[str, ...] = (".yml", ".yaml")


class WorkflowSourceError(RuntimeError):
    """The workflow file source could not be reached or enumerated."""


class RepositoryNotConfigured(ValueError):
    """Raised when no repository (or credentials) are configured."""


@dataclass(frozen=True, slots=True)
class RepositoryKey:
    """Identity of a repository's workflow directory; used as the cache key."""

    owner: str
    name: str
    workflows_path: str = DEFAULT_WORKFLOWS_PATH

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, repository: str, workflows_path: str = DEFAULT_WORKFLOWS_PATH) -> RepositoryKey:
        owner, sep, name = repository.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            raise RepositoryNotConfigured(
                f"Repository must be in the form 'owner/repo', got {repository!r}"
            )
        return cls(owner=owner, name=name, workflows_path=workflows_path.strip("/"))


@dataclass(frozen=True, slots=True)
class RepositoryFile:
    name: str
    path: str


def is_workflow_file(name: str) -> bool:
    return name.lower().endswith(WORKFLOW_FILE_SUFFIXES)


class WorkflowFileSource(Protocol):
    def list_definition_files(self, directory: str) -> list[RepositoryFile]: ...

    def read_file_content(self, path: str, *, timeout: float) -> str: ...


class ExecutionControl(Protocol):
    def list_runs_for_workflow(self, workflow_name: str, *, count: int) -> list[RunSummary]: ...
