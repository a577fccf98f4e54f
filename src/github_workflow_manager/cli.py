"""CLI entrypoint for the workflow manager.

Every command prints JSON to stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ValidationError

from github_workflow_manager import __version__
from github_workflow_manager.config import WorkflowManagerSettings
from github_workflow_manager.github.client import GitHubClient
from github_workflow_manager.logging import configure_logging
from github_workflow_manager.workflows.cache import DefinitionCache
from github_workflow_manager.workflows.catalog import WorkflowCatalog
from github_workflow_manager.workflows.sources import (
    RepositoryKey,
    WorkflowSourceError,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-manager",
        description="Inspect GitHub Actions workflow definitions and their latest runs",
    )
    parser.add_argument(
        "--version", action="version", version=f"github-workflow-manager {__version__}"
    )
    parser.add_argument(
        "--repo",
        "--repository",
        dest="repository",
        default=None,
        help="Repository in the form 'owner/repo' (defaults to WORKFLOW_MANAGER_REPOSITORY)",
    )
    parser.add_argument(
        "--workflows-path",
        default=None,
        help="Directory holding workflow files (defaults to .github/workflows)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_cmd = subparsers.add_parser("list", help="List parsed workflow definitions")
    list_cmd.add_argument(
        "--with-runs",
        action="store_true",
        help="Attach each workflow's latest run",
    )
    list_cmd.add_argument(
        "--include-content",
        action="store_true",
        help="Include the raw YAML text in the output",
    )

    show = subparsers.add_parser("show", help="Show one workflow by name or file name")
    show.add_argument("workflow", help="Workflow name or file name")

    runs = subparsers.add_parser("runs", help="List recent runs of one workflow")
    runs.add_argument("workflow", help="Workflow name")
    runs.add_argument("--count", type=int, default=10, help="Number of runs to show")

    latest = subparsers.add_parser("latest", help="Show the latest run of each workflow")
    latest.add_argument(
        "workflows",
        nargs="*",
        help="Workflow names (defaults to every workflow in the repository)",
    )

    return parser


def _dump(value: Any, *, exclude: set[str] | None = None) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude=exclude)
    if isinstance(value, list):
        return [_dump(v, exclude=exclude) for v in value]
    if isinstance(value, dict):
        return {k: _dump(v, exclude=exclude) for k, v in value.items()}
    return value


def _print_json(value: Any, *, exclude: set[str] | None = None) -> None:
    print(json.dumps(_dump(value, exclude=exclude), indent=2, ensure_ascii=False))


async def _run_command(
    args: argparse.Namespace, catalog: WorkflowCatalog, key: RepositoryKey
) -> int:
    if args.command == "list":
        if args.with_runs:
            definitions = await catalog.get_definitions_with_runs(key)
        else:
            definitions = await catalog.get_definitions(key)
        _print_json(definitions, exclude=None if args.include_content else {"content"})
        return 0

    if args.command == "show":
        definition = await catalog.get_definition(key, args.workflow)
        if definition is None:
            print(f"Workflow not found: {args.workflow}", file=sys.stderr)
            return 4
        _print_json(definition)
        return 0

    if args.command == "runs":
        _print_json(await catalog.get_runs(args.workflow, args.count))
        return 0

    if args.command == "latest":
        names = list(args.workflows)
        if not names:
            names = [d.name for d in await catalog.get_definitions(key)]
        _print_json(await catalog.get_latest_runs(names))
        return 0

    logger.error("Unknown command", extra={"command": args.command})
    return 2


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = WorkflowManagerSettings()
    except ValidationError as e:
        print(str(e), file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if args.repository:
        settings = settings.model_copy(update={"repository": args.repository})
    if args.workflows_path:
        settings = settings.model_copy(update={"workflows_path": args.workflows_path})

    try:
        settings.require_github()
        key = settings.repository_key()
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2

    github: GitHubClient | None = None
    try:
        github = GitHubClient(
            token=settings.github_token,
            repository=key.full_name,
            base_url=settings.github_base_url,
        )
        catalog = WorkflowCatalog(
            files=github,
            executions=github,
            cache=DefinitionCache(settings.cache_ttl_seconds),
            read_timeout_seconds=settings.read_timeout_seconds,
        )
        return asyncio.run(_run_command(args, catalog, key))

    except WorkflowSourceError as e:
        logger.error("Workflow source unavailable", extra={"repo": key.full_name})
        print(str(e), file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1

    finally:
        if github is not None:
            github.close()


if __name__ == "__main__":
    raise SystemExit(main())
