"""
Custom exception types used across dep-updater.

Errors raised while loading the configuration abort the whole run.
Errors raised while processing one project only fail that project.
"""

from __future__ import annotations


class DepUpdaterError(Exception):
    """Base class for all dep-updater specific errors."""


class ConfigurationError(DepUpdaterError):
    """Raised when the configuration is missing or invalid."""


class FileAccessError(DepUpdaterError):
    """Raised when a manifest or configuration file cannot be read or written."""


class RepositoryError(DepUpdaterError):
    """Raised when git operations fail."""


class NotFoundError(RepositoryError):
    """Raised when an expected branch does not exist."""
