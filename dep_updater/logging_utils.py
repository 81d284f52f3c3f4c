"""
Logging helpers for dep-updater.

A RunLog owns the handlers of one run: every record is written to a
timestamped log file, and records logged with ``extra={"console": True}``
are also echoed to stdout. Project-scoped loggers prefix each line with
the project name.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, MutableMapping, Optional, TextIO, Tuple

LOGGER_NAME = "dep_updater"

LEVEL_TAGS = {
    logging.DEBUG: "DEB",
    logging.INFO: "INF",
    logging.ERROR: "ERR",
}

# Console records carry this attribute; everything else is file-only.
CONSOLE = {"console": True}


def level_from_verbosity(verbosity: int) -> int:
    """
    Map a verbosity count to a logging level.

    verbosity < 0  -> ERROR
    verbosity == 0 -> INFO
    verbosity >= 1 -> DEBUG
    """

    if verbosity < 0:
        return logging.ERROR
    if verbosity == 0:
        return logging.INFO
    return logging.DEBUG


class _TagFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.level_tag = LEVEL_TAGS.get(record.levelno, record.levelname[:3])
        return super().format(record)


class _ConsoleFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return bool(getattr(record, "console", False))


class ProjectLogger(logging.LoggerAdapter):
    """
    Logger adapter that scopes every line to one project.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        project = self.extra.get("project") if self.extra else None
        if project:
            msg = f"[{project}] {msg}"
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


class RunLog:
    """
    Logging state of a single run.

    The run log is opened at startup and closed at shutdown; between
    the two, components obtain loggers through ``logger`` and
    ``for_project`` instead of configuring logging themselves.
    """

    def __init__(
        self,
        level: int = logging.INFO,
        log_dir: Optional[str] = None,
        stream: Optional[TextIO] = None,
        name: str = LOGGER_NAME,
    ) -> None:
        self.level = level
        self.log_dir = Path(log_dir) if log_dir else Path.cwd()
        self.stream = stream
        self.logger = logging.getLogger(name)
        self.log_path: Optional[Path] = None
        self._handlers: list[logging.Handler] = []
        self._saved: Optional[Tuple[int, bool]] = None

    def open(self) -> "RunLog":
        if self._handlers:
            return self

        stamp = datetime.now().strftime("%Y%m%d%H%M%S")
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_path = self.log_dir / f"updater_{stamp}.log"

        formatter = _TagFormatter(
            "%(asctime)s [%(level_tag)s] %(message)s",
            datefmt="%Y/%m/%d %H:%M:%S",
        )

        file_handler = logging.FileHandler(self.log_path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)

        console_handler = logging.StreamHandler(self.stream or sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(_ConsoleFilter())

        self._saved = (self.logger.level, self.logger.propagate)
        self._handlers = [file_handler, console_handler]
        for handler in self._handlers:
            self.logger.addHandler(handler)
        self.logger.setLevel(self.level)
        self.logger.propagate = False
        return self

    def close(self) -> None:
        for handler in self._handlers:
            self.logger.removeHandler(handler)
            handler.flush()
            handler.close()
        self._handlers = []
        if self._saved is not None:
            self.logger.setLevel(self._saved[0])
            self.logger.propagate = self._saved[1]
            self._saved = None

    def for_project(self, project: str) -> ProjectLogger:
        return ProjectLogger(self.logger, {"project": project})

    def __enter__(self) -> "RunLog":
        return self.open()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
