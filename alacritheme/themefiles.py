"""Helpers for browsing a directory tree of theme files."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Iterable

from .config import DEFAULT_THEME_SUFFIXES

logger = logging.getLogger(__name__)

PARENT_ENTRY_NAME = ".."


@dataclass(frozen=True)
class ThemeEntry:
    """One navigable row: a sub-directory or a theme file."""

    name: str
    path: Path
    is_directory: bool

    @property
    def is_parent(self) -> bool:
        """Return ``True`` for the synthetic parent-directory row."""

        return self.is_directory and self.name == PARENT_ENTRY_NAME


def is_theme_file(path: Path, suffixes: Iterable[str]) -> bool:
    """Return ``True`` if ``path`` ends with one of ``suffixes``."""

    name = path.name.lower()
    return any(name.endswith(suffix.lower()) for suffix in suffixes)


def list_directory(
    directory: Path,
    root: Path,
    suffixes: Iterable[str] = DEFAULT_THEME_SUFFIXES,
) -> list[ThemeEntry]:
    """Return the entries shown when browsing ``directory``.

    A ``..`` row leads back to the parent unless ``directory`` is ``root``.
    Sub-directories and files carrying a theme suffix follow, sorted by
    name; anything else is skipped. ``OSError`` propagates when the
    directory cannot be read.
    """

    suffix_list = tuple(suffixes)
    children = sorted(directory.iterdir(), key=lambda child: child.name)

    entries: list[ThemeEntry] = []
    if directory != root:
        entries.append(
            ThemeEntry(
                name=PARENT_ENTRY_NAME,
                path=directory.parent,
                is_directory=True,
            )
        )

    for child in children:
        if child.is_dir():
            entries.append(
                ThemeEntry(name=child.name, path=child, is_directory=True)
            )
        elif is_theme_file(child, suffix_list):
            entries.append(
                ThemeEntry(name=child.name, path=child, is_directory=False)
            )

    logger.debug("Listed %d entries in %s", len(entries), directory)
    return entries


def filter_entries(
    entries: Iterable[ThemeEntry],
    query: str,
) -> list[ThemeEntry]:
    """Return entries whose name contains ``query`` (case-insensitive).

    The parent row is kept so the user can always navigate back up.
    """

    needle = query.strip().lower()
    if not needle:
        return list(entries)
    return [
        entry
        for entry in entries
        if entry.is_parent or needle in entry.name.lower()
    ]
