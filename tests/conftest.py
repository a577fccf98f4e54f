"""Test configuration and fixtures."""

from __future__ import annotations

import time
from datetime import UTC, datetime

import pytest

from github_workflow_manager.workflows.models import RunSummary
from github_workflow_manager.workflows.sources import RepositoryFile, RepositoryKey

DEPLOY_WORKFLOW = """\
# =============================================================================
# WORKFLOW: Deploy
# PURPOSE: Deploy the service
#   to production
# TRIGGER: Manual dispatch from the dashboard
# SCOPE: Production cluster only
# ACTIONS:
#   - Build the container image
#   - Roll out to the cluster
# INPUTS:
#   - environment: target environment
# =============================================================================
name: Deploy
description: Ship it
on:
  push:
    branches: [main]
  workflow_dispatch:
    inputs:
      environment:
        description: Target environment
        type: choice
        required: true
        options: [dev, prod]
      dry_run:
        type: boolean
        default: false
jobs:
  deploy:
    runs-on: ubuntu-latest
    steps:
      - run: ./deploy.sh
"""

CI_WORKFLOW = """\
name: CI
on: [push, pull_request]
jobs:
  test:
    runs-on: ubuntu-latest
    steps:
      - run: pytest
"""

NIGHTLY_WORKFLOW = """\
on:
  schedule:
    - cron: "0 3 * * *"
jobs:
  nightly:
    runs-on: ubuntu-latest
    steps:
      - run: make nightly
"""


def make_run(run_id: int, *, status: str = "completed", conclusion: str = "success") -> RunSummary:
    return RunSummary(
        id=run_id,
        status=status,
        conclusion=conclusion,
        created_at=datetime(2025, 1, 1, tzinfo=UTC),
        html_url=f"https://github.com/acme/repo/actions/runs/{run_id}",
        run_number=run_id,
        head_sha="abc123",
        event="push",
    )


class FakeFileSource:
    """In-memory `WorkflowFileSource` that counts calls."""

    def __init__(
        self,
        files: dict[str, str],
        *,
        failing: set[str] | None = None,
        slow: set[str] | None = None,
        delay_seconds: float = 0.3,
    ) -> None:
        self.files = dict(files)
        self.failing = failing or set()
        self.slow = slow or set()
        self.delay_seconds = delay_seconds
        self.list_error: Exception | None = None
        self.list_calls = 0
        self.read_calls: list[str] = []
        self.closed = False

    def list_definition_files(self, directory: str) -> list[RepositoryFile]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return [
            RepositoryFile(name=path.rsplit("/", 1)[-1], path=path)
            for path in self.files
            if path.startswith(directory.rstrip("/") + "/")
        ]

    def read_file_content(self, path: str, *, timeout: float) -> str:
        self.read_calls.append(path)
        if path in self.failing:
            raise ConnectionError(f"connection reset while reading {path}")
        if path in self.slow:
            time.sleep(self.delay_seconds)
        return self.files[path]

    def close(self) -> None:
        self.closed = True


class FakeExecutions:
    """In-memory `ExecutionControl`."""

    def __init__(
        self, runs: dict[str, list[RunSummary]], *, failing: set[str] | None = None
    ) -> None:
        self.runs = runs
        self.failing = failing or set()
        self.calls: list[tuple[str, int]] = []

    def list_runs_for_workflow(self, workflow_name: str, *, count: int) -> list[RunSummary]:
        self.calls.append((workflow_name, count))
        if workflow_name in self.failing:
            raise RuntimeError(f"API error for {workflow_name}")
        return self.runs.get(workflow_name, [])[:count]


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def repo_key() -> RepositoryKey:
    return RepositoryKey(owner="acme", name="repo")


@pytest.fixture
def workflow_files() -> dict[str, str]:
    return {
        ".github/workflows/deploy.yml": DEPLOY_WORKFLOW,
        ".github/workflows/ci.yaml": CI_WORKFLOW,
        ".github/workflows/nightly.yml": NIGHTLY_WORKFLOW,
    }


@pytest.fixture
def file_source(workflow_files: dict[str, str]) -> FakeFileSource:
    return FakeFileSource(workflow_files)


@pytest.fixture
def executions() -> FakeExecutions:
    return FakeExecutions({"Deploy": [make_run(2), make_run(1)], "CI": [make_run(7)]})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def run_factory():
    return make_run
