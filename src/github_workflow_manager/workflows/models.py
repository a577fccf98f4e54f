"""Records produced by a workflow scan.

Every model is frozen: a scan builds fresh instances and the next scan
supersedes them rather than mutating the previous list.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

InputType = Literal["string", "boolean", "choice", "environment"]

INPUT_TYPES: frozenset[str] = frozenset({"string", "boolean", "choice", "environment"})


class TriggerSet(BaseModel):
    """Which events start a workflow."""

    model_config = ConfigDict(frozen=True)

    push: bool = False
    pull_request: bool = False
    workflow_dispatch: bool = False
    schedule: bool = False

    # Unrecognised event names, verbatim and de-duplicated.
    other: list[str] = Field(default_factory=list)


class InputSpec(BaseModel):
    """A single `workflow_dispatch` input parameter."""

    model_config = ConfigDict(frozen=True)

    description: str = ""
    type: InputType = "string"
    required: bool = False
    default: Any = None
    options: list[str] = Field(default_factory=list)


class MetadataBlock(BaseModel):
    """Human documentation found in the workflow's leading comment block."""

    model_config = ConfigDict(frozen=True)

    purpose: str = ""
    trigger: str = ""
    scope: str = ""
    actions: list[str] = Field(default_factory=list)
    inputs: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.purpose.strip()
            or self.trigger.strip()
            or self.scope.strip()
            or self.actions
            or self.inputs
        )


class RunSummary(BaseModel):
    """Minimal metadata about one workflow run."""

    model_config = ConfigDict(frozen=True)

    id: int
    status: str = ""
    conclusion: str = ""
    created_at: datetime
    updated_at: datetime | None = None
    html_url: str = ""
    run_number: int = 0
    head_sha: str = ""
    event: str = ""

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> RunSummary:
        """Build a summary from a GitHub REST `workflow_run` payload."""

        return cls(
            id=int(payload["id"]),
            status=str(payload.get("status") or ""),
            conclusion=str(payload.get("conclusion") or ""),
            created_at=_parse_timestamp(payload.get("created_at")),
            updated_at=(
                _parse_timestamp(payload["updated_at"]) if payload.get("updated_at") else None
            ),
            html_url=str(payload.get("html_url") or ""),
            run_number=int(payload.get("run_number") or 0),
            head_sha=str(payload.get("head_sha") or ""),
            event=str(payload.get("event") or ""),
        )


class WorkflowDefinition(BaseModel):
    """One workflow file from the repository, parsed."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    file_name: str
    file_path: str = ""
    content: str = ""
    triggers: TriggerSet = Field(default_factory=TriggerSet)
    inputs: dict[str, InputSpec] = Field(default_factory=dict)
    enabled: bool = True
    last_modified: datetime = Field(default_factory=lambda: datetime.now(UTC))
    metadata: MetadataBlock | None = None
    last_run: RunSummary | None = None


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str) and value.strip():
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    raise ValueError(f"Invalid timestamp: {value!r}")
