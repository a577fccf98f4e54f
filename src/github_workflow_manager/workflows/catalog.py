"""Cached workflow definitions and concurrent latest-run lookups.

The catalog is the only stateful piece of the ingestion pipeline: it owns the
definition cache. Remote calls go through the injected capabilities and run on
the event loop's default thread pool, so one scan reads all files
concurrently and one fan-out resolves all run lookups concurrently.

Failure containment:
- enumerating the workflow directory fails → `WorkflowSourceError` propagates
  and nothing is cached
- reading or parsing one file fails → that file becomes a disabled definition
- looking up one workflow's runs fails → that name maps to None
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from github_workflow_manager.workflows.builder import build_definition_outcome, failed_definition
from github_workflow_manager.workflows.cache import DefinitionCache
from github_workflow_manager.workflows.models import RunSummary, WorkflowDefinition
from github_workflow_manager.workflows.outcome import Outcome, Problem, capture_async, problems_of
from github_workflow_manager.workflows.sources import (
    ExecutionControl,
    RepositoryFile,
    RepositoryKey,
    WorkflowFileSource,
    WorkflowSourceError,
    is_workflow_file,
)

logger = logging.getLogger(__name__)

DEFAULT_READ_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class DefinitionScan:
    """Result of reading every workflow file of one repository."""

    repository: RepositoryKey
    definitions: list[WorkflowDefinition]
    problems: list[Problem] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RunFanOut:
    """Latest run per requested workflow name, plus the lookups that failed."""

    runs: dict[str, RunSummary | None]
    problems: list[Problem] = field(default_factory=list)


class WorkflowCatalog:
    def __init__(
        self,
        *,
        files: WorkflowFileSource,
        executions: ExecutionControl,
        cache: DefinitionCache | None = None,
        read_timeout_seconds: float = DEFAULT_READ_TIMEOUT_SECONDS,
    ) -> None:
        if read_timeout_seconds <= 0:
            raise ValueError("read_timeout_seconds must be positive")
        self._files = files
        self._executions = executions
        self._cache = cache or DefinitionCache()
        self._read_timeout = read_timeout_seconds

    @property
    def cache(self) -> DefinitionCache:
        return self._cache

    async def get_definitions(self, key: RepositoryKey) -> list[WorkflowDefinition]:
        cached = self._cache.get(key)
        if cached is not None:
            logger.info(
                "Returning cached workflows", extra={"repo": key.full_name, "count": len(cached)}
            )
            return cached

        scan = await self.scan_definitions(key)
        self._cache.put(key, scan.definitions)
        return list(scan.definitions)

    def invalidate(self, key: RepositoryKey) -> None:
        removed = self._cache.invalidate(key)
        logger.info("Workflows cache cleared", extra={"repo": key.full_name, "removed": removed})

    async def get_definition(
        self, key: RepositoryKey, workflow_id: str
    ) -> WorkflowDefinition | None:
        """Find a definition by display name or file name."""

        definitions = await self.get_definitions(key)
        for definition in definitions:
            if workflow_id in (definition.name, definition.file_name):
                return definition
        logger.warning(
            "Workflow not found",
            extra={"workflow": workflow_id, "available": [d.name for d in definitions]},
        )
        return None

    async def scan_definitions(self, key: RepositoryKey) -> DefinitionScan:
        """Read and parse every workflow file, bypassing the cache."""

        logger.info(
            "Scanning workflow files",
            extra={"repo": key.full_name, "path": key.workflows_path},
        )
        try:
            listed = await asyncio.to_thread(self._files.list_definition_files, key.workflows_path)
        except WorkflowSourceError:
            raise
        except Exception as e:
            logger.error("Failed to list workflow files", extra={"repo": key.full_name})
            raise WorkflowSourceError(
                f"Could not list workflow files in {key.full_name}/{key.workflows_path}: {e}"
            ) from e

        files = [f for f in listed if is_workflow_file(f.name)]
        outcomes = await asyncio.gather(*(self._load_file(f) for f in files))

        scan = DefinitionScan(
            repository=key,
            definitions=[o.value for o in outcomes],
            problems=problems_of(outcomes),
        )
        logger.info(
            "Processed workflows",
            extra={
                "repo": key.full_name,
                "count": len(scan.definitions),
                "problems": len(scan.problems),
            },
        )
        return scan

    async def _load_file(self, file: RepositoryFile) -> Outcome[WorkflowDefinition]:
        read = await capture_async(
            asyncio.wait_for(
                asyncio.to_thread(
                    self._files.read_file_content, file.path, timeout=self._read_timeout
                ),
                timeout=self._read_timeout,
            ),
            subject=file.name,
            stage="read",
            fallback=lambda _problem: None,
        )
        if read.problem is not None or read.value is None:
            problem = read.problem or Problem(subject=file.name, stage="read", message="No content")
            placeholder = failed_definition(
                file.name,
                f"Error reading workflow: {problem.message}",
                file_path=file.path,
                now=datetime.now(UTC),
            )
            return Outcome(placeholder, problem)

        return build_definition_outcome(file.name, read.value, file_path=file.path)

    async def fetch_latest_runs(self, names: Iterable[str]) -> RunFanOut:
        unique = list(dict.fromkeys(names))
        outcomes = await asyncio.gather(
            *(
                capture_async(
                    asyncio.to_thread(self._latest_run, name),
                    subject=name,
                    stage="latest-run",
                    fallback=lambda _problem: None,
                )
                for name in unique
            )
        )
        runs = {name: outcome.value for name, outcome in zip(unique, outcomes, strict=True)}
        return RunFanOut(runs=runs, problems=problems_of(outcomes))

    async def get_latest_runs(self, names: Iterable[str]) -> dict[str, RunSummary | None]:
        return (await self.fetch_latest_runs(names)).runs

    def _latest_run(self, name: str) -> RunSummary | None:
        runs = self._executions.list_runs_for_workflow(name, count=1)
        return runs[0] if runs else None

    async def get_runs(self, workflow_name: str, count: int = 10) -> list[RunSummary]:
        """Most recent runs of one workflow; empty when the lookup fails."""

        if count <= 0:
            raise ValueError("count must be positive")
        outcome = await capture_async(
            asyncio.to_thread(self._executions.list_runs_for_workflow, workflow_name, count=count),
            subject=workflow_name,
            stage="list-runs",
            fallback=lambda _problem: [],
        )
        return outcome.value

    async def get_definitions_with_runs(self, key: RepositoryKey) -> list[WorkflowDefinition]:
        """Cached definitions with `last_run` attached from a live lookup.

        Returns new instances; the cached list is left untouched.
        """

        definitions = await self.get_definitions(key)
        runs = await self.get_latest_runs(d.name for d in definitions)
        return [d.model_copy(update={"last_run": runs.get(d.name)}) for d in definitions]
