"""
Git integration for dep-updater.

This module wraps the git CLI for one project's clone. Every project
gets its own Repository, bound to its own working directory, so
repositories can be driven from separate threads without sharing
state.
"""

from __future__ import annotations

import base64
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .errors import NotFoundError, RepositoryError

LOG = logging.getLogger(__name__)

BRANCH_REF_PREFIX = "refs/heads/"


@dataclass
class AuthConfig:
    """
    HTTP basic-auth credentials used when pushing.
    """

    username: str
    password: str

    def extra_header(self) -> str:
        token = base64.b64encode(f"{self.username}:{self.password}".encode("utf-8")).decode("ascii")
        return f"http.extraHeader=Authorization: Basic {token}"


def _run_git(
    args: List[str],
    cwd: Optional[str] = None,
    input_text: Optional[str] = None,
) -> subprocess.CompletedProcess[str]:
    """
    Run a git command and return the completed process.

    All git invocations go through this helper so error handling and
    logging are centralized.
    """

    cmd = ["git", *args]
    LOG.debug("Running git command: %s (cwd=%s)", " ".join(cmd), cwd)
    try:
        completed = subprocess.run(
            cmd,
            cwd=cwd,
            check=False,
            text=True,
            capture_output=True,
            input=input_text,
        )
    except OSError as exc:  # noqa: BLE001
        raise RepositoryError(f"failed to execute git: {exc}") from exc

    if completed.returncode != 0:
        LOG.debug("git stderr: %s", completed.stderr)
        detail = (completed.stderr or "").strip()
        message = f"git command failed: {' '.join(cmd)}"
        if detail:
            message = f"{message}: {detail}"
        raise RepositoryError(message)

    return completed


class Repository:
    """
    A git working copy of a single project.
    """

    def __init__(self, path: Path, auth: Optional[AuthConfig] = None, remote: str = "origin") -> None:
        self.path = path
        self.auth = auth
        self.remote = remote

    def _git(self, args: List[str]) -> str:
        return _run_git(args, cwd=str(self.path)).stdout

    def branch_exists(self, name: str) -> bool:
        """
        Return True if the local branch ``name`` exists.
        """

        cmd = ["git", "show-ref", "--verify", "--quiet", f"{BRANCH_REF_PREFIX}{name}"]
        LOG.debug("Running git command (branch lookup): %s", " ".join(cmd))
        try:
            completed = subprocess.run(
                cmd,
                cwd=str(self.path),
                check=False,
                text=True,
                capture_output=True,
            )
        except OSError as exc:  # noqa: BLE001
            raise RepositoryError(f"failed to execute git: {exc}") from exc

        if completed.returncode == 0:
            return True
        if completed.returncode == 1:
            return False
        raise RepositoryError(
            f"could not get the branch reference {name}: {(completed.stderr or '').strip()}"
        )

    def current_branch(self) -> str:
        """
        Return the name of the checked out branch, or "HEAD" when detached.
        """

        return self._git(["rev-parse", "--abbrev-ref", "HEAD"]).strip()

    def checkout(self, name: str) -> None:
        """
        Check out an existing local branch.
        """

        self._git(["checkout", name])

    def create_branch(self, from_branch: str, new_branch: str) -> None:
        """
        Create ``new_branch`` at the tip of ``from_branch`` and check it out.
        """

        if not from_branch or not new_branch:
            raise RepositoryError("the name of the new or originating branch is not defined")
        if not self.branch_exists(from_branch):
            raise NotFoundError(f"error creating branch, {BRANCH_REF_PREFIX}{from_branch} not found")

        self._git(["checkout", "-b", new_branch, from_branch])
        LOG.debug("new local branch '%s' created in %s", new_branch, self.path)

    def has_changes(self) -> bool:
        """
        Return True if tracked files differ from HEAD.
        """

        status = self._git(["status", "--porcelain", "--untracked-files=no"])
        return bool(status.strip())

    def commit_and_push(self, message: str) -> None:
        """
        Commit all tracked changes (if any) and push the current branch.
        """

        if self.has_changes():
            self._git(["commit", "--all", "-m", message])
        else:
            LOG.debug("nothing to commit in %s", self.path)

        args = ["push", "--set-upstream", self.remote, "HEAD"]
        if self.auth is not None:
            LOG.debug("using basic auth for push in %s", self.path)
            args = ["-c", self.auth.extra_header(), *args]
        self._git(args)
        LOG.debug("push of %s successful", self.path)


def open_repository(path: Path, auth: Optional[AuthConfig] = None) -> Repository:
    """
    Open the git working copy at ``path``.

    The directory must exist and be inside a git work tree.
    """

    if not path.is_dir():
        raise RepositoryError(f"error opening repository {path}: directory does not exist")

    try:
        inside = _run_git(["rev-parse", "--is-inside-work-tree"], cwd=str(path)).stdout.strip()
    except RepositoryError as exc:
        raise RepositoryError(f"error opening repository {path}: {exc}") from exc

    if inside != "true":
        raise RepositoryError(f"error opening repository {path}: not a work tree")

    return Repository(path=path, auth=auth)
