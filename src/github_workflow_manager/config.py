"""Configuration for the workflow manager.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

To avoid collisions with other tools that may also use `GITHUB_TOKEN`, this
project uses a dedicated token variable: `WORKFLOW_MANAGER_GITHUB_TOKEN`.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from github_workflow_manager.workflows.cache import DEFAULT_TTL_SECONDS
from github_workflow_manager.workflows.catalog import DEFAULT_READ_TIMEOUT_SECONDS
from github_workflow_manager.workflows.sources import (
    DEFAULT_WORKFLOWS_PATH,
    RepositoryKey,
    RepositoryNotConfigured,
)


class WorkflowManagerSettings(BaseSettings):
    """Settings for the workflow manager.

    Notes:
        A token is not required at startup, so the CLI and server can start
        and report a clear error. Operations that reach GitHub call
        :meth:`require_github` first.
    """

    github_token: str = Field(
        default="",
        validation_alias="WORKFLOW_MANAGER_GITHUB_TOKEN",
        description="GitHub token used for API authentication",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )

    repository: str = Field(
        default="",
        validation_alias="WORKFLOW_MANAGER_REPOSITORY",
        description="Repository in format 'owner/repo'",
    )
    workflows_path: str = Field(
        default=DEFAULT_WORKFLOWS_PATH,
        validation_alias="WORKFLOW_MANAGER_WORKFLOWS_PATH",
        description="Directory holding workflow files",
    )

    cache_ttl_seconds: float = Field(
        default=DEFAULT_TTL_SECONDS,
        gt=0,
        validation_alias="WORKFLOW_MANAGER_CACHE_TTL_SECONDS",
        description="How long a scanned workflow list is reused",
    )
    read_timeout_seconds: float = Field(
        default=DEFAULT_READ_TIMEOUT_SECONDS,
        gt=0,
        validation_alias="WORKFLOW_MANAGER_READ_TIMEOUT_SECONDS",
        description="Timeout for reading a single workflow file",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="WORKFLOW_MANAGER_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    @property
    def is_configured(self) -> bool:
        return bool(self.github_token.strip() and self.repository.strip())

    def require_github(self) -> None:
        if not self.github_token.strip():
            raise RepositoryNotConfigured("WORKFLOW_MANAGER_GITHUB_TOKEN is required")
        if not self.repository.strip():
            raise RepositoryNotConfigured("WORKFLOW_MANAGER_REPOSITORY is required")

    def repository_key(self, repository: str | None = None) -> RepositoryKey:
        repo = (repository or self.repository).strip()
        if not repo:
            raise RepositoryNotConfigured("WORKFLOW_MANAGER_REPOSITORY is required")
        return RepositoryKey.parse(repo, self.workflows_path)

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
