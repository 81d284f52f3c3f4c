import io
import threading
import time

from dep_updater.config import Config, Project
from dep_updater.errors import ConfigurationError
from dep_updater.logging_utils import RunLog
from dep_updater.orchestrator import run_projects, run_push, run_update
from dep_updater.updater import ProjectResult


def _config(projects, **overrides):
    values = dict(
        workspace_home="/workspace",
        projects=projects,
        working_branch="deps",
        create_from="main",
        libraries={"react": "18.2.0"},
    )
    values.update(overrides)
    return Config(**values)


def _run_log(tmp_path):
    stream = io.StringIO()
    return RunLog(log_dir=str(tmp_path), stream=stream).open(), stream


def test_run_projects_counts_every_outcome(tmp_path):
    projects = [
        Project(name="ok-1", enabled=True),
        Project(name="off", enabled=False),
        Project(name="bad", enabled=True),
        Project(name="ok-2", enabled=True),
    ]
    called = []
    lock = threading.Lock()

    def operation(project):
        with lock:
            called.append(project.name)
        if project.name == "bad":
            return ProjectResult(project=project.name, succeeded=False, error=ConfigurationError("boom"))
        return ProjectResult(project=project.name, succeeded=True)

    run_log, stream = _run_log(tmp_path)
    try:
        summary = run_projects(_config(projects), operation, run_log)
    finally:
        run_log.close()

    assert sorted(called) == ["bad", "ok-1", "ok-2"]
    assert (summary.succeeded, summary.failed, summary.disabled) == (2, 1, 1)
    assert summary.total == len(projects)

    console = stream.getvalue()
    assert "[off] not considered" in console
    assert "[bad] boom" in console
    assert "[ok-1] updated successfully" in console
    assert "done, 4 projects. OK: 2, Fail: 1, Disabled: 1" in console


def test_run_projects_runs_projects_concurrently(tmp_path):
    projects = [Project(name=f"p{i}", enabled=True) for i in range(4)]
    barrier = threading.Barrier(len(projects), timeout=5)

    def operation(project):
        # Every project must be in flight at once to get past the barrier.
        barrier.wait()
        return ProjectResult(project=project.name, succeeded=True)

    run_log, _ = _run_log(tmp_path)
    try:
        summary = run_projects(_config(projects), operation, run_log)
    finally:
        run_log.close()

    assert summary.succeeded == 4


def test_run_projects_totals_are_exact_under_contention(tmp_path):
    projects = [Project(name=f"p{i}", enabled=i % 5 != 0) for i in range(60)]

    def operation(project):
        time.sleep(0.001)
        succeeded = int(project.name[1:]) % 3 != 0
        error = None if succeeded else ConfigurationError("failed")
        return ProjectResult(project=project.name, succeeded=succeeded, error=error)

    run_log, _ = _run_log(tmp_path)
    try:
        summary = run_projects(_config(projects), operation, run_log)
    finally:
        run_log.close()

    enabled = [p for p in projects if p.enabled]
    expected_failed = sum(1 for p in enabled if int(p.name[1:]) % 3 == 0)
    assert summary.disabled == 12
    assert summary.failed == expected_failed
    assert summary.succeeded == len(enabled) - expected_failed
    assert summary.total == 60
    assert len(summary.results) == len(enabled)


def test_run_projects_honours_max_workers(tmp_path):
    projects = [Project(name=f"p{i}", enabled=True) for i in range(6)]
    lock = threading.Lock()
    state = {"active": 0, "peak": 0}

    def operation(project):
        with lock:
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
        time.sleep(0.01)
        with lock:
            state["active"] -= 1
        return ProjectResult(project=project.name, succeeded=True)

    run_log, _ = _run_log(tmp_path)
    try:
        run_projects(_config(projects), operation, run_log, max_workers=2)
    finally:
        run_log.close()

    assert state["peak"] <= 2


def test_run_projects_never_runs_disabled_projects(tmp_path):
    projects = [Project(name="a", enabled=False), Project(name="b", enabled=False)]

    def operation(project):
        raise AssertionError("disabled projects must not be processed")

    run_log, _ = _run_log(tmp_path)
    try:
        summary = run_projects(_config(projects), operation, run_log)
    finally:
        run_log.close()

    assert (summary.succeeded, summary.failed, summary.disabled) == (0, 0, 2)


def test_run_projects_rejects_empty_project_list(tmp_path):
    run_log, _ = _run_log(tmp_path)
    try:
        run_projects(_config([]), lambda project: None, run_log)
    except ConfigurationError as exc:
        assert "not configured" in str(exc)
    else:
        raise AssertionError("expected ConfigurationError to be raised")
    finally:
        run_log.close()


def test_run_update_rejects_empty_libraries_before_launching(tmp_path, monkeypatch):
    def fail_run_projects(*args, **kwargs):
        raise AssertionError("no project should be launched")

    monkeypatch.setattr("dep_updater.orchestrator.run_projects", fail_run_projects)

    run_log, _ = _run_log(tmp_path)
    try:
        run_update(_config([Project(name="web", enabled=True)], libraries={}), run_log)
    except ConfigurationError as exc:
        assert "libraries" in str(exc)
    else:
        raise AssertionError("expected ConfigurationError to be raised")
    finally:
        run_log.close()


def test_run_push_does_not_require_libraries(tmp_path, monkeypatch):
    seen = []

    def fake_run_projects(config, operation, run_log, max_workers=None):
        seen.append((config, max_workers))

    monkeypatch.setattr("dep_updater.orchestrator.run_projects", fake_run_projects)

    run_log, _ = _run_log(tmp_path)
    config = _config([Project(name="web", enabled=True)], libraries={})
    try:
        run_push(config, run_log, max_workers=3)
    finally:
        run_log.close()

    assert seen == [(config, 3)]
