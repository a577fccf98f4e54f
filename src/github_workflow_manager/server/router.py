"""Workflow REST API.

All routes are mounted under `/api`.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request

from github_workflow_manager import __version__
from github_workflow_manager.config import WorkflowManagerSettings
from github_workflow_manager.github.client import GitHubClient
from github_workflow_manager.workflows.cache import DefinitionCache
from github_workflow_manager.workflows.catalog import WorkflowCatalog
from github_workflow_manager.workflows.models import RunSummary, WorkflowDefinition
from github_workflow_manager.workflows.sources import (
    RepositoryKey,
    RepositoryNotConfigured,
    WorkflowSourceError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _settings(request: Request) -> WorkflowManagerSettings:
    settings = getattr(request.app.state, "settings", None)
    if not isinstance(settings, WorkflowManagerSettings):
        raise HTTPException(status_code=500, detail="Server settings not configured")
    return settings


def _repository_key(request: Request) -> RepositoryKey:
    try:
        return _settings(request).repository_key()
    except RepositoryNotConfigured as e:
        raise HTTPException(status_code=409, detail=str(e)) from e


def _catalog(request: Request) -> WorkflowCatalog:
    catalog = getattr(request.app.state, "catalog", None)
    if isinstance(catalog, WorkflowCatalog):
        return catalog

    settings = _settings(request)
    try:
        settings.require_github()
        client = GitHubClient(
            token=settings.github_token,
            repository=settings.repository,
            base_url=settings.github_base_url,
        )
    except RepositoryNotConfigured as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except WorkflowSourceError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    catalog = WorkflowCatalog(
        files=client,
        executions=client,
        cache=DefinitionCache(settings.cache_ttl_seconds),
        read_timeout_seconds=settings.read_timeout_seconds,
    )
    request.app.state.catalog = catalog
    return catalog


@router.get("/health")
def health(request: Request) -> dict[str, object]:
    settings = _settings(request)
    return {
        "status": "ok",
        "version": __version__,
        "configured": settings.is_configured,
        "repoName": settings.repository.strip() or None,
    }


@router.get("/workflows", response_model=list[WorkflowDefinition])
async def list_workflows(request: Request) -> list[WorkflowDefinition]:
    key = _repository_key(request)
    catalog = _catalog(request)
    try:
        return await catalog.get_definitions(key)
    except WorkflowSourceError as e:
        logger.error("Error getting workflows", extra={"repo": key.full_name})
        raise HTTPException(status_code=502, detail="Failed to load workflows") from e


@router.get("/workflows/{workflow_id}", response_model=WorkflowDefinition)
async def get_workflow(workflow_id: str, request: Request) -> WorkflowDefinition:
    key = _repository_key(request)
    catalog = _catalog(request)
    try:
        workflow = await catalog.get_definition(key, workflow_id)
    except WorkflowSourceError as e:
        raise HTTPException(status_code=502, detail="Failed to load workflows") from e
    if workflow is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return workflow


@router.get("/workflow-runs/latest", response_model=dict[str, RunSummary | None])
async def latest_workflow_runs(
    request: Request,
    workflow_names: list[str] | None = Query(default=None, alias="workflowNames"),
) -> dict[str, RunSummary | None]:
    names = [n for n in (name.strip() for name in workflow_names or []) if n]
    if not names:
        raise HTTPException(status_code=400, detail="Workflow names are required")
    return await _catalog(request).get_latest_runs(names)


@router.get("/workflow/{workflow_name}/runs", response_model=list[RunSummary])
async def workflow_runs(
    workflow_name: str,
    request: Request,
    count: int = Query(default=10, ge=1, le=100),
) -> list[RunSummary]:
    return await _catalog(request).get_runs(workflow_name, count)


@router.delete("/cache/workflows")
def clear_workflows_cache(request: Request) -> dict[str, str]:
    key = _repository_key(request)
    catalog = getattr(request.app.state, "catalog", None)
    if isinstance(catalog, WorkflowCatalog):
        catalog.invalidate(key)
    return {"message": "Cache cleared successfully"}
