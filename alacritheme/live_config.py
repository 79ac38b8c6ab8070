"""Read, patch and restore the live Alacritty configuration file."""

from __future__ import annotations

from collections.abc import MutableMapping
import logging
import os
from pathlib import Path
import shutil
import tempfile
from typing import Optional

import tomlkit
from tomlkit.exceptions import TOMLKitError

logger = logging.getLogger(__name__)

GENERAL_TABLE = "general"
LIVE_RELOAD_KEY = "live_config_reload"
IMPORT_KEY = "import"


class LiveConfigError(Exception):
    """Raised when the live config cannot be read, parsed or written."""


class RestoreError(LiveConfigError):
    """Raised when a restore is requested before a backup was captured."""


def ensure_config_file(path: Path) -> bool:
    """Create an empty config file at ``path`` if none exists.

    Returns ``True`` when a new file was created.
    """

    if path.exists():
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
    except OSError as exc:
        raise LiveConfigError(
            f"Failed to create config file {path}: {exc}"
        ) from exc
    logger.info("Created empty config file %s", path)
    return True


class ConfigBackup:
    """Raw bytes of the config file as they were before any patch."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._original: Optional[bytes] = None

    @property
    def captured(self) -> bool:
        """Return ``True`` once ``capture`` has succeeded."""

        return self._original is not None

    def capture(self) -> bytes:
        """Read and keep the current bytes of the config file."""

        try:
            content = self.path.read_bytes()
        except OSError as exc:
            raise LiveConfigError(
                f"Failed to back up config {self.path}: {exc}"
            ) from exc
        self._original = content
        logger.info("Captured %d bytes from %s", len(content), self.path)
        return content

    def restore(self) -> None:
        """Write the captured bytes back over the config file."""

        if self._original is None:
            raise RestoreError(
                f"No backup of {self.path} was captured; refusing to restore."
            )
        try:
            _write_atomic(self.path, self._original)
        except OSError as exc:
            raise LiveConfigError(
                f"Failed to restore config {self.path}: {exc}"
            ) from exc
        logger.info("Restored original content of %s", self.path)


def apply_theme(config_file: Path, theme_path: Path) -> str:
    """Point the live config at ``theme_path`` and enable live reload.

    The file is re-read on every call so earlier patches and external edits
    compose. When a ``[general]`` table exists the two keys are written
    there, otherwise at the top level. Returns the text that was written.
    """

    document = _load_document(config_file)

    general = document.get(GENERAL_TABLE)
    target: MutableMapping = document
    if isinstance(general, MutableMapping):
        target = general

    target[LIVE_RELOAD_KEY] = True
    target[IMPORT_KEY] = [str(theme_path)]

    text = tomlkit.dumps(document)
    try:
        _write_atomic(config_file, text.encode("utf-8"))
    except OSError as exc:
        raise LiveConfigError(
            f"Failed to write config {config_file}: {exc}"
        ) from exc
    logger.info("Applied theme %s to %s", theme_path, config_file)
    return text


def _load_document(path: Path) -> tomlkit.TOMLDocument:
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LiveConfigError(
            f"Failed to read config {path}: {exc}"
        ) from exc
    try:
        return tomlkit.parse(content)
    except TOMLKitError as exc:
        raise LiveConfigError(
            f"Failed to parse TOML config {path}: {exc}"
        ) from exc


def _write_atomic(path: Path, payload: bytes) -> None:
    # Symlinked configs keep their link; the real file is replaced.
    target = path.resolve()
    try:
        handle, temp_name = tempfile.mkstemp(
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
        )
    except PermissionError:
        logger.debug("Directory of %s is read-only; writing in place", target)
        target.write_bytes(payload)
        return
    temp_path = Path(temp_name)
    try:
        with os.fdopen(handle, "wb") as stream:
            stream.write(payload)
        if target.exists():
            shutil.copymode(target, temp_path)
        os.replace(temp_path, target)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
