"""
Command-line interface for dep-updater.

This module is responsible for argument parsing, loading the
configuration and delegating to the orchestrator. Per-project failures
are reported in the run summary and do not change the exit status;
only configuration problems do.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .config import DEFAULT_CONFIG_FILE, load_config
from .errors import ConfigurationError, FileAccessError
from .logging_utils import RunLog, level_from_verbosity
from .orchestrator import run_push, run_update

COMMANDS = {
    "update": run_update,
    "push": run_push,
}


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dep-updater",
        description="Update dependency versions in the package.json file of many projects.",
    )

    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_FILE,
        help=f"File with the migration configuration; may be a complete path (default: {DEFAULT_CONFIG_FILE}).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        dest="verbosity",
        action="store_const",
        const=1,
        default=0,
        help="Also log debug messages.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        dest="verbosity",
        action="store_const",
        const=-1,
        help="Only log errors.",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Directory for the run log file (default: current directory).",
    )
    parser.add_argument(
        "--max-workers",
        type=_positive_int,
        default=None,
        help="Maximum number of projects processed at once (default: all enabled projects).",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True
    subparsers.add_parser(
        "update",
        help="Update dependency versions in package.json of the configured projects.",
    )
    subparsers.add_parser(
        "push",
        help="Commit and push the working branch of the configured projects.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    run_log = RunLog(level=level_from_verbosity(args.verbosity), log_dir=args.log_dir)
    try:
        with run_log:
            config = load_config(args.config)
            COMMANDS[args.command](config, run_log, max_workers=args.max_workers)
    except KeyboardInterrupt:
        # Graceful shutdown on Ctrl+C
        return 130
    except (ConfigurationError, FileAccessError) as exc:
        print(f"dep-updater: error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
