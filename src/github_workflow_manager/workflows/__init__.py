"""Workflow-definition ingestion: parsing, building, caching."""

from github_workflow_manager.workflows.builder import build_definition, is_valid_workflow
from github_workflow_manager.workflows.cache import DefinitionCache
from github_workflow_manager.workflows.catalog import DefinitionScan, RunFanOut, WorkflowCatalog
from github_workflow_manager.workflows.metadata import parse_metadata
from github_workflow_manager.workflows.models import (
    InputSpec,
    MetadataBlock,
    RunSummary,
    TriggerSet,
    WorkflowDefinition,
)
from github_workflow_manager.workflows.sources import (
    RepositoryFile,
    RepositoryKey,
    RepositoryNotConfigured,
    WorkflowSourceError,
)
from github_workflow_manager.workflows.triggers import extract_inputs, extract_triggers

__all__ = [
    "DefinitionCache",
    "DefinitionScan",
    "InputSpec",
    "MetadataBlock",
    "RepositoryFile",
    "RepositoryKey",
    "RepositoryNotConfigured",
    "RunFanOut",
    "RunSummary",
    "TriggerSet",
    "WorkflowCatalog",
    "WorkflowDefinition",
    "WorkflowSourceError",
    "build_definition",
    "extract_inputs",
    "extract_triggers",
    "is_valid_workflow",
    "parse_metadata",
]
