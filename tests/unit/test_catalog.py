"""Unit tests for the cached workflow catalog and latest-run fan-out."""

from __future__ import annotations

import asyncio

import pytest

from github_workflow_manager.workflows.cache import DefinitionCache
from github_workflow_manager.workflows.catalog import WorkflowCatalog
from github_workflow_manager.workflows.sources import RepositoryKey, WorkflowSourceError


@pytest.fixture
def catalog(file_source, executions, clock) -> WorkflowCatalog:
    return WorkflowCatalog(
        files=file_source,
        executions=executions,
        cache=DefinitionCache(300, clock=clock),
    )


def test_definitions_are_built_in_enumeration_order(catalog, repo_key: RepositoryKey) -> None:
    definitions = asyncio.run(catalog.get_definitions(repo_key))

    assert [d.file_name for d in definitions] == ["deploy.yml", "ci.yaml", "nightly.yml"]
    assert [d.name for d in definitions] == ["Deploy", "CI", "nightly"]
    assert all(d.enabled for d in definitions)
    assert definitions[0].file_path == ".github/workflows/deploy.yml"


def test_repeated_calls_within_ttl_enumerate_once(
    catalog, file_source, clock, repo_key: RepositoryKey
) -> None:
    first = asyncio.run(catalog.get_definitions(repo_key))
    clock.advance(299)
    second = asyncio.run(catalog.get_definitions(repo_key))

    assert file_source.list_calls == 1
    assert len(file_source.read_calls) == 3
    assert first == second


def test_expiry_triggers_a_new_enumeration(
    catalog, file_source, clock, repo_key: RepositoryKey
) -> None:
    asyncio.run(catalog.get_definitions(repo_key))
    clock.advance(300)
    asyncio.run(catalog.get_definitions(repo_key))

    assert file_source.list_calls == 2


def test_invalidate_triggers_a_new_enumeration(
    catalog, file_source, repo_key: RepositoryKey
) -> None:
    asyncio.run(catalog.get_definitions(repo_key))
    catalog.invalidate(repo_key)
    asyncio.run(catalog.get_definitions(repo_key))

    assert file_source.list_calls == 2


def test_failed_read_is_included_as_disabled_definition(
    catalog, file_source, repo_key: RepositoryKey
) -> None:
    file_source.failing.add(".github/workflows/ci.yaml")

    scan = asyncio.run(catalog.scan_definitions(repo_key))

    assert [d.file_name for d in scan.definitions] == ["deploy.yml", "ci.yaml", "nightly.yml"]
    ci = scan.definitions[1]
    assert ci.enabled is False
    assert ci.name == "ci"
    assert ci.description.startswith("Error reading workflow: connection reset")
    assert [(p.subject, p.stage, p.error_type) for p in scan.problems] == [
        ("ci.yaml", "read", "ConnectionError")
    ]
    assert scan.definitions[0].enabled is True
    assert scan.definitions[2].enabled is True


def test_slow_read_times_out_and_degrades(file_source, executions, repo_key) -> None:
    file_source.slow.add(".github/workflows/nightly.yml")
    catalog = WorkflowCatalog(
        files=file_source, executions=executions, read_timeout_seconds=0.05
    )

    scan = asyncio.run(catalog.scan_definitions(repo_key))

    nightly = scan.definitions[2]
    assert nightly.enabled is False
    assert [p.error_type for p in scan.problems] == ["TimeoutError"]
    assert scan.definitions[0].enabled is True


def test_invalid_file_is_disabled_but_not_a_problem(
    catalog, file_source, repo_key: RepositoryKey
) -> None:
    file_source.files[".github/workflows/broken.yml"] = "name: Broken\non: push\n"

    scan = asyncio.run(catalog.scan_definitions(repo_key))

    broken = scan.definitions[-1]
    assert broken.name == "broken"
    assert broken.enabled is False
    assert scan.problems == []


def test_non_workflow_files_are_skipped(catalog, file_source, repo_key: RepositoryKey) -> None:
    file_source.files[".github/workflows/README.md"] = "# docs"

    definitions = asyncio.run(catalog.get_definitions(repo_key))

    assert "README.md" not in [d.file_name for d in definitions]
    assert ".github/workflows/README.md" not in file_source.read_calls


def test_enumeration_failure_propagates_and_is_not_cached(
    catalog, file_source, repo_key: RepositoryKey
) -> None:
    file_source.list_error = ConnectionError("network unreachable")

    with pytest.raises(WorkflowSourceError, match="network unreachable"):
        asyncio.run(catalog.get_definitions(repo_key))
    assert repo_key not in catalog.cache

    file_source.list_error = None
    definitions = asyncio.run(catalog.get_definitions(repo_key))

    assert len(definitions) == 3
    assert file_source.list_calls == 2


def test_latest_runs_keeps_every_name_when_one_lookup_fails(
    catalog, executions, run_factory
) -> None:
    executions.runs = {"A": [run_factory(11)], "B": [run_factory(12)], "C": [run_factory(13)]}
    executions.failing.add("B")

    fan_out = asyncio.run(catalog.fetch_latest_runs({"A", "B", "C"}))

    assert set(fan_out.runs) == {"A", "B", "C"}
    assert fan_out.runs["B"] is None
    assert fan_out.runs["A"] is not None and fan_out.runs["A"].id == 11
    assert fan_out.runs["C"] is not None and fan_out.runs["C"].id == 13
    assert [(p.subject, p.stage) for p in fan_out.problems] == [("B", "latest-run")]


def test_latest_runs_asks_for_one_run_and_maps_missing_to_none(catalog, executions) -> None:
    runs = asyncio.run(catalog.get_latest_runs(["Deploy", "Unknown", "Deploy"]))

    assert list(runs) == ["Deploy", "Unknown"]
    assert runs["Deploy"] is not None and runs["Deploy"].id == 2
    assert runs["Unknown"] is None
    assert sorted(executions.calls) == [("Deploy", 1), ("Unknown", 1)]


def test_get_definition_by_name_or_file_name(catalog, repo_key: RepositoryKey) -> None:
    by_name = asyncio.run(catalog.get_definition(repo_key, "Deploy"))
    by_file = asyncio.run(catalog.get_definition(repo_key, "ci.yaml"))
    missing = asyncio.run(catalog.get_definition(repo_key, "nope"))

    assert by_name is not None and by_name.file_name == "deploy.yml"
    assert by_file is not None and by_file.name == "CI"
    assert missing is None


def test_get_runs_degrades_to_empty_list(catalog, executions) -> None:
    executions.failing.add("Deploy")

    assert asyncio.run(catalog.get_runs("Deploy")) == []
    assert asyncio.run(catalog.get_runs("CI", 5))[0].id == 7


def test_definitions_with_runs_leave_cache_untouched(catalog, repo_key: RepositoryKey) -> None:
    with_runs = asyncio.run(catalog.get_definitions_with_runs(repo_key))

    assert with_runs[0].last_run is not None and with_runs[0].last_run.id == 2
    assert with_runs[2].last_run is None

    cached = asyncio.run(catalog.get_definitions(repo_key))
    assert all(d.last_run is None for d in cached)
