"""GitHub Workflow Manager.

Reads the workflow files of a GitHub repository, parses their triggers,
dispatch inputs and documentation comments, caches the result, and looks up
each workflow's latest run concurrently.
"""

__version__ = "0.1.0"

from github_workflow_manager.workflows import RepositoryKey, WorkflowCatalog, WorkflowDefinition

__all__ = ["__version__", "RepositoryKey", "WorkflowCatalog", "WorkflowDefinition"]
