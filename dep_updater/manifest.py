"""
In-place rewriting of dependency versions in a package.json manifest.

This is a text substitution, not a JSON rewrite: the manifest keeps its
formatting, key order and any content the patcher does not understand.
The first literal occurrence of a library name is assumed to be its
dependency declaration, written as ``"name": "version",``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .errors import ConfigurationError, FileAccessError

LOG = logging.getLogger(__name__)

MANIFEST_FILENAME = "package.json"


def manifest_path(project_dir: Path) -> Path:
    return project_dir / MANIFEST_FILENAME


def replace_version(text: str, name: str, version: str) -> Tuple[str, bool]:
    """
    Rewrite the declaration of ``name`` in ``text``.

    The fragment running from the first occurrence of ``name`` up to the
    next comma is replaced with ``name": "version"``. When the line
    holds no comma (last entry of an object) the fragment stops at the
    end of the line. Returns the new text and whether a replacement was
    made.
    """

    start = text.find(name)
    if start < 0:
        return text, False

    comma = text.find(",", start)
    newline = text.find("\n", start)
    if comma < 0 or (0 <= newline < comma):
        end = newline if newline >= 0 else len(text)
        # Keep trailing whitespace (e.g. "\r") outside the fragment.
        while end > start and text[end - 1].isspace():
            end -= 1
    else:
        end = comma

    fragment = f'{name}": "{version}"'
    return text[:start] + fragment + text[end:], True


def patch_manifest(path: Path, libraries: Mapping[str, str], log: Optional[logging.LoggerAdapter] = None) -> int:
    """
    Rewrite the version of every library in ``libraries`` found in the manifest.

    Libraries whose name does not occur in the file are skipped. The
    file is written back only when at least one library was rewritten.
    Returns the number of rewritten libraries.
    """

    logger = log or LOG

    if not libraries:
        raise ConfigurationError("libraries configuration does not exist")
    if any(not name.strip() for name in libraries):
        raise ConfigurationError("library name must be a non-empty string")

    try:
        with open(path, encoding="utf-8", newline="") as fh:
            text = fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise FileAccessError(f"error reading {path.name} file in {path.parent}: {exc}") from exc

    changes = 0
    for name, version in libraries.items():
        text, replaced = replace_version(text, name, version)
        if replaced:
            logger.debug("set %s to %s", name, version)
            changes += 1

    if not changes:
        logger.info("no dependencies found in %s", path.name)
        return 0

    try:
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
    except OSError as exc:
        raise FileAccessError(f"error writing {path.name} file in {path.parent}: {exc}") from exc

    logger.info("update %s file, done (%d libraries)", path.name, changes)
    return changes
