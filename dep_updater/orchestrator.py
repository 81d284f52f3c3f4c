"""
Concurrent fan-out of a per-project pipeline over every configured project.

Disabled projects are counted and skipped. Every enabled project runs
on its own worker thread; a failing project is logged and counted but
never stops its siblings. Results are folded into the counters on the
calling thread once each future completes.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, List, Optional

from .config import Config, Project, validate_config
from .errors import ConfigurationError
from .logging_utils import CONSOLE, RunLog
from .updater import ProjectResult, ProjectUpdater

ProjectOperation = Callable[[Project], ProjectResult]


@dataclass
class RunSummary:
    """
    Aggregate outcome of one run, one contribution per project.
    """

    succeeded: int = 0
    failed: int = 0
    disabled: int = 0
    results: List[ProjectResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed + self.disabled

    def record(self, result: ProjectResult) -> None:
        self.results.append(result)
        if result.succeeded:
            self.succeeded += 1
        else:
            self.failed += 1

    def describe(self) -> str:
        return (
            f"done, {self.total} projects. "
            f"OK: {self.succeeded}, Fail: {self.failed}, Disabled: {self.disabled}"
        )


def run_projects(
    config: Config,
    operation: ProjectOperation,
    run_log: RunLog,
    max_workers: Optional[int] = None,
) -> RunSummary:
    """
    Run ``operation`` once per enabled project and return the summary.

    ``max_workers`` bounds the number of projects processed at once;
    by default every enabled project gets its own thread.
    """

    log = run_log.for_project("")
    log.info("init working into: '%s'", config.workspace_home, extra=CONSOLE)

    if not config.projects:
        err = ConfigurationError("project names to update, not configured")
        log.error("%s", err, extra=CONSOLE)
        raise err

    summary = RunSummary()
    enabled: List[Project] = []
    for project in config.projects:
        if not project.enabled:
            summary.disabled += 1
            run_log.for_project(project.name).info("not considered", extra=CONSOLE)
            continue
        enabled.append(project)

    if enabled:
        workers = max_workers if max_workers and max_workers > 0 else len(enabled)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dep-updater") as executor:
            futures = {executor.submit(operation, project): project for project in enabled}
            for future in as_completed(futures):
                result = future.result()
                summary.record(result)
                project_log = run_log.for_project(result.project)
                if result.succeeded:
                    project_log.info("updated successfully", extra=CONSOLE)
                else:
                    project_log.error("%s", result.message, extra=CONSOLE)

    log.info("%s", summary.describe(), extra=CONSOLE)
    return summary


def run_update(config: Config, run_log: RunLog, max_workers: Optional[int] = None) -> RunSummary:
    """
    Validate the configuration and run the update pipeline on every project.
    """

    validate_config(config, require_libraries=True)
    updater = ProjectUpdater(config, run_log)
    return run_projects(config, partial(updater.run, updater.update_project), run_log, max_workers)


def run_push(config: Config, run_log: RunLog, max_workers: Optional[int] = None) -> RunSummary:
    """
    Validate the configuration and run the push-only pipeline on every project.
    """

    validate_config(config)
    updater = ProjectUpdater(config, run_log)
    return run_projects(config, partial(updater.run, updater.commit_and_push), run_log, max_workers)
