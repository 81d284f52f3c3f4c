import io
import logging

from dep_updater.logging_utils import CONSOLE, RunLog, level_from_verbosity


def test_level_from_verbosity():
    assert level_from_verbosity(-1) == logging.ERROR
    assert level_from_verbosity(0) == logging.INFO
    assert level_from_verbosity(1) == logging.DEBUG
    assert level_from_verbosity(3) == logging.DEBUG


def test_run_log_writes_file_and_console_lines(tmp_path):
    stream = io.StringIO()

    with RunLog(log_dir=str(tmp_path), stream=stream) as run_log:
        log = run_log.for_project("web")
        log.info("checking branches...")
        log.error("commit fail", extra=CONSOLE)
        run_log.for_project("").info("done, 1 projects", extra=CONSOLE)
        log_path = run_log.log_path

    assert log_path.parent == tmp_path
    assert log_path.name.startswith("updater_") and log_path.name.endswith(".log")

    file_text = log_path.read_text(encoding="utf-8")
    assert "[INF] [web] checking branches..." in file_text
    assert "[ERR] [web] commit fail" in file_text
    assert "[INF] done, 1 projects" in file_text

    console = stream.getvalue()
    assert "checking branches" not in console
    assert "[ERR] [web] commit fail" in console
    assert "[INF] done, 1 projects" in console


def test_run_log_filters_below_minimum_level(tmp_path):
    stream = io.StringIO()

    with RunLog(level=logging.ERROR, log_dir=str(tmp_path), stream=stream) as run_log:
        log = run_log.for_project("web")
        log.debug("hidden debug")
        log.info("hidden info", extra=CONSOLE)
        log.error("visible", extra=CONSOLE)
        log_path = run_log.log_path

    assert stream.getvalue().count("\n") == 1
    assert "hidden" not in log_path.read_text(encoding="utf-8")


def test_run_log_close_detaches_handlers(tmp_path):
    run_log = RunLog(log_dir=str(tmp_path), stream=io.StringIO())
    before = list(run_log.logger.handlers)

    run_log.open()
    assert len(run_log.logger.handlers) == len(before) + 2
    run_log.close()

    assert run_log.logger.handlers == before
