"""Turn one workflow file into one `WorkflowDefinition`.

`build_definition` never raises: structurally invalid files and unexpected
errors both produce a disabled definition so that a batch scan can always
include every file it found.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import PurePosixPath
from typing import Any

import yaml

from github_workflow_manager.workflows.metadata import parse_metadata
from github_workflow_manager.workflows.models import WorkflowDefinition
from github_workflow_manager.workflows.outcome import Outcome, Problem, capture
from github_workflow_manager.workflows.triggers import (
    extract_inputs,
    extract_triggers,
    has_trigger_section,
)

logger = logging.getLogger(__name__)

INVALID_DESCRIPTION = "Invalid workflow file"


def file_stem(file_name: str) -> str:
    return PurePosixPath(file_name).stem


def load_workflow_document(content: str) -> dict[Any, Any] | None:
    """Parse YAML text; anything other than a top-level mapping is None."""

    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError:
        return None
    if not isinstance(document, dict):
        return None
    return document


def is_valid_workflow(content: str) -> bool:
    document = load_workflow_document(content)
    return document is not None and _has_required_keys(document)


def _has_required_keys(document: Mapping[Any, Any]) -> bool:
    return has_trigger_section(document) and "jobs" in document


def failed_definition(
    file_name: str,
    reason: str,
    *,
    content: str = "",
    file_path: str = "",
    now: datetime | None = None,
) -> WorkflowDefinition:
    """A disabled placeholder carrying `reason` as its description."""

    return WorkflowDefinition(
        name=file_stem(file_name),
        description=reason,
        file_name=file_name,
        file_path=file_path,
        content=content,
        enabled=False,
        last_modified=now or datetime.now(UTC),
    )


def _parse(file_name: str, content: str, *, file_path: str, now: datetime) -> WorkflowDefinition:
    document = load_workflow_document(content)
    if document is None or not _has_required_keys(document):
        logger.info("Workflow file is not a valid workflow", extra={"file_name": file_name})
        return failed_definition(
            file_name, INVALID_DESCRIPTION, content=content, file_path=file_path, now=now
        )

    name = document.get("name")
    description = document.get("description")
    triggers = extract_triggers(document)

    return WorkflowDefinition(
        name=str(name) if name is not None else file_stem(file_name),
        description=str(description) if description is not None else "",
        file_name=file_name,
        file_path=file_path,
        content=content,
        triggers=triggers,
        inputs=extract_inputs(document) if triggers.workflow_dispatch else {},
        enabled=True,
        last_modified=now,
        metadata=parse_metadata(content),
    )


def build_definition_outcome(
    file_name: str,
    content: str,
    *,
    file_path: str = "",
    now: datetime | None = None,
) -> Outcome[WorkflowDefinition]:
    processed_at = now or datetime.now(UTC)

    def _fallback(problem: Problem) -> WorkflowDefinition:
        return failed_definition(
            file_name,
            f"Error parsing workflow: {problem.message}",
            content=content,
            file_path=file_path,
            now=processed_at,
        )

    return capture(
        lambda: _parse(file_name, content, file_path=file_path, now=processed_at),
        subject=file_name,
        stage="parse",
        fallback=_fallback,
    )


def build_definition(
    file_name: str,
    content: str,
    *,
    file_path: str = "",
    now: datetime | None = None,
) -> WorkflowDefinition:
    return build_definition_outcome(file_name, content, file_path=file_path, now=now).value
