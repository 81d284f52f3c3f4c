"""
Per-project pipelines for dep-updater.

ProjectUpdater runs one of two pipelines against a single project:

  - update: open the repository, reconcile the working branch, patch
    the manifest and, when the project has its push flag set, commit
    and push;
  - push: open the repository, require the working branch, check it
    out, commit and push.

Each step either completes or raises; the first failure ends the
pipeline. ``run`` turns the outcome into a ProjectResult so that no
project-scoped error escapes to the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .branches import reconcile_branch
from .config import Config, Project
from .errors import ConfigurationError, DepUpdaterError, NotFoundError
from .git_adapter import AuthConfig, Repository, open_repository
from .logging_utils import ProjectLogger, RunLog
from .manifest import manifest_path, patch_manifest

UPDATE_COMMIT_MESSAGE = "update dependencies"
PUSH_COMMIT_MESSAGE = "commit from dep-updater"

RepositoryOpener = Callable[[Path, Optional[AuthConfig]], Repository]


@dataclass
class ProjectResult:
    """
    Outcome of one project's pipeline.
    """

    project: str
    succeeded: bool
    error: Optional[DepUpdaterError] = None

    @property
    def message(self) -> str:
        return str(self.error) if self.error is not None else ""


class ProjectUpdater:
    """
    Runs the update and push pipelines for the projects of one Config.
    """

    def __init__(
        self,
        config: Config,
        run_log: RunLog,
        opener: RepositoryOpener = open_repository,
    ) -> None:
        self.config = config
        self.run_log = run_log
        self._open = opener

    def run(self, pipeline: Callable[[Project, ProjectLogger], None], project: Project) -> ProjectResult:
        """
        Run ``pipeline`` for ``project`` and report its outcome.
        """

        log = self.run_log.for_project(project.name)
        try:
            pipeline(project, log)
        except DepUpdaterError as exc:
            log.debug("pipeline failed: %s", exc)
            return ProjectResult(project=project.name, succeeded=False, error=exc)
        return ProjectResult(project=project.name, succeeded=True)

    def update_project(self, project: Project, log: ProjectLogger) -> None:
        """
        Bring the project onto the working branch and rewrite its manifest.
        """

        log.info("init process")

        if not self.config.libraries:
            raise ConfigurationError("libraries configuration does not exist")

        repo = self._open_project(project, log)
        reconcile_branch(repo, self.config.working_branch, self.config.create_from, log=log)
        patch_manifest(manifest_path(self.config.project_path(project)), self.config.libraries, log=log)

        if project.push:
            log.info("committing and pushing branch")
            repo.commit_and_push(UPDATE_COMMIT_MESSAGE)
            log.info("commit and push branch, done")

        log.info("process completed successfully")

    def commit_and_push(self, project: Project, log: ProjectLogger) -> None:
        """
        Commit and push the working branch, which must already exist.
        """

        log.info("initializing commit and push of the branch")
        working_branch = self.config.working_branch

        repo = self._open_project(project, log)
        if not repo.branch_exists(working_branch):
            raise NotFoundError(f"working_branch {working_branch} doesn't exist")

        repo.checkout(working_branch)
        repo.commit_and_push(PUSH_COMMIT_MESSAGE)
        log.info("the commit and push, done")

    def _open_project(self, project: Project, log: ProjectLogger) -> Repository:
        auth = None
        settings = self.config.repository
        if settings.has_credentials():
            log.debug("using basic auth for repository")
            auth = AuthConfig(username=settings.username.strip(), password=settings.password.strip())
        return self._open(self.config.project_path(project), auth)
