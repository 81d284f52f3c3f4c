"""
Working-branch reconciliation for a single project.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from .errors import ConfigurationError

LOG = logging.getLogger(__name__)


class BranchRepository(Protocol):
    def branch_exists(self, name: str) -> bool: ...

    def current_branch(self) -> str: ...

    def checkout(self, name: str) -> None: ...

    def create_branch(self, from_branch: str, new_branch: str) -> None: ...


def reconcile_branch(
    repo: BranchRepository,
    working_branch: str,
    create_from: str,
    log: Optional[logging.LoggerAdapter] = None,
) -> None:
    """
    Leave ``repo`` on ``working_branch``, creating it from ``create_from`` if needed.

    An existing branch that is already checked out is left alone. A
    missing branch is created from the tip of ``create_from``, which
    must then be set. Git failures propagate unchanged; nothing is
    rolled back.
    """

    logger = log or LOG
    logger.info("checking branches...")

    if repo.branch_exists(working_branch):
        logger.info("branch '%s' exists", working_branch)

        if repo.current_branch() == working_branch:
            logger.info("project is in the correct branch")
            return

        repo.checkout(working_branch)
        logger.info("checkout to '%s' branch, done", working_branch)
        return

    logger.info("branch '%s' doesn't exist... will try to create", working_branch)

    if not create_from.strip():
        raise ConfigurationError("cannot create branch, no base specified (create_from is not set)")

    repo.create_branch(create_from, working_branch)
    logger.info("creation of the '%s' branch from '%s' branch, done", working_branch, create_from)
