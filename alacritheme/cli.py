"""Command-line entry point for alacritheme.

Launches the Textual theme picker. Paths come from the ``THEMES_DIR`` and
``CONFIG_FILE`` environment variables, falling back to the optional YAML
settings file.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from typing import Mapping

from .config import (
    CONFIG_FILE_ENV,
    SETTINGS_ENV,
    THEMES_DIR_ENV,
    AppConfig,
    ConfigError,
    load_config,
)
from .live_config import ConfigBackup, LiveConfigError, ensure_config_file
from .log import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the top-level argument parser."""

    return argparse.ArgumentParser(
        prog="alacritheme",
        description=textwrap.dedent(
            """
            Browse Alacritty color themes in your terminal. The highlighted
            theme is imported into the live config right away; Enter keeps
            it, q or Ctrl+C puts the original config back.
            """
        ).strip(),
        epilog=(
            f"Environment: {THEMES_DIR_ENV} (theme directory), "
            f"{CONFIG_FILE_ENV} (live Alacritty config), "
            f"{SETTINGS_ENV} (optional YAML settings file)."
        ),
    )


def main(
    argv: list[str] | None = None,
    env: Mapping[str, str] | None = None,
) -> int:
    """Entry point used by console scripts and ``python -m alacritheme``."""

    parser = build_parser()
    parser.parse_args(argv)

    try:
        config = load_config(env)
    except ConfigError as exc:
        parser.error(str(exc))

    configure_logging(config.log_file, config.log_level)

    try:
        backup = prepare_backup(config)
    except LiveConfigError as exc:
        print(f"error: couldn't back up config: {exc}", file=sys.stderr)
        return 1

    # Lazy import so tests can import this module without having textual.
    try:
        from .ui.app import run as run_tui
    except ImportError as exc:  # pragma: no cover - missing dependency
        print(
            "The Textual UI could not be loaded. Ensure the 'textual' "
            f"package is installed.\nDetails: {exc}",
            file=sys.stderr,
        )
        return 1

    try:
        return run_tui(config, backup)
    except Exception as exc:
        logger.exception("Picker crashed")
        print(f"Error running program: {exc}", file=sys.stderr)
        _restore_after_crash(backup)
        return 1


def prepare_backup(config: AppConfig) -> ConfigBackup:
    """Make sure the live config exists and capture its original bytes."""

    ensure_config_file(config.config_file)
    backup = ConfigBackup(config.config_file)
    backup.capture()
    return backup


def _restore_after_crash(backup: ConfigBackup) -> None:
    try:
        backup.restore()
    except LiveConfigError as exc:
        print(f"error: couldn't restore config: {exc}", file=sys.stderr)


if __name__ == "__main__":
    raise SystemExit(main())
