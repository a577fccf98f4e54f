"""FastAPI server adapter for github-workflow-manager.

Design intent:
- Keep ingestion logic in `github_workflow_manager.workflows.*`
- Keep server-specific concerns (routing, CORS, status codes) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from github_workflow_manager.server.app import create_app
