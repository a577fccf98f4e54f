"""FastAPI app factory.

Endpoints are intentionally thin wrappers over `WorkflowCatalog`.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from github_workflow_manager import __version__
from github_workflow_manager.config import WorkflowManagerSettings
from github_workflow_manager.server.router import router
from github_workflow_manager.workflows.catalog import WorkflowCatalog

logger = logging.getLogger(__name__)


def create_app(
    settings: WorkflowManagerSettings | None = None,
    *,
    catalog: WorkflowCatalog | None = None,
) -> FastAPI:
    """Build the API app.

    Args:
        settings: Settings to use. If None, loads from environment.
        catalog: Pre-built catalog (tests). If None, one backed by
            `GitHubClient` is created on the first request that needs it.
    """

    settings = settings or WorkflowManagerSettings()

    app = FastAPI(
        title="GitHub Workflow Manager",
        version=__version__,
        description="REST API over the cached workflow catalog.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.settings = settings
    app.state.catalog = catalog

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api")
    return app
