"""Pilot tests for the Textual theme picker."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit
from textual.widgets import Static

from alacritheme.config import AppConfig
from alacritheme.live_config import ConfigBackup, apply_theme
from alacritheme.themefiles import ThemeEntry
from alacritheme.ui import app as app_module
from alacritheme.ui.app import (
    FilesLoaded,
    ThemeListView,
    ThemePicker,
    entry_label,
)

THEME_TEMPLATE = """
[colors.primary]
background = "{background}"
foreground = "#ffffff"
"""

ORIGINAL_CONFIG = b"[general]\nlive_config_reload = false\n"


def _write_theme(path: Path, background: str = "#000000") -> None:
    path.write_text(
        THEME_TEMPLATE.format(background=background),
        encoding="utf-8",
    )


def _make_app(
    tmp_path: Path,
    *,
    themes: tuple[str, ...] = ("a.toml", "b.toml"),
    capture: bool = True,
) -> tuple[ThemePicker, Path, Path]:
    themes_dir = tmp_path / "themes"
    themes_dir.mkdir()
    for name in themes:
        _write_theme(themes_dir / name)
    config_file = tmp_path / "cfg.toml"
    config_file.write_bytes(ORIGINAL_CONFIG)
    backup = ConfigBackup(config_file)
    if capture:
        backup.capture()
    config = AppConfig(
        themes_dir=themes_dir,
        config_file=config_file,
        settings_path=tmp_path / "missing.yaml",
    )
    return ThemePicker(config=config, backup=backup), themes_dir, config_file


async def _settle(pilot) -> None:
    for _ in range(3):
        await pilot.pause()
        await pilot.app.workers.wait_for_complete()
    await pilot.pause()


def _general(config_file: Path) -> dict:
    payload = tomlkit.parse(config_file.read_text(encoding="utf-8")).unwrap()
    return payload["general"]


@pytest.mark.asyncio
async def test_first_theme_is_applied_and_quit_restores(tmp_path):
    app, themes_dir, config_file = _make_app(tmp_path)
    async with app.run_test() as pilot:
        await _settle(pilot)
        assert app.ready
        assert [e.name for e in app.visible_entries] == ["a.toml", "b.toml"]
        assert app.preview_path == themes_dir / "a.toml"
        assert _general(config_file) == {
            "live_config_reload": True,
            "import": [str(themes_dir / "a.toml")],
        }

        await pilot.press("q")

    assert config_file.read_bytes() == ORIGINAL_CONFIG
    assert app.restored
    assert app.return_code == 0


@pytest.mark.asyncio
async def test_moving_down_applies_next_theme(tmp_path):
    app, themes_dir, config_file = _make_app(tmp_path)
    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("j")
        await _settle(pilot)

        assert app.preview_path == themes_dir / "b.toml"
        assert _general(config_file)["import"] == [
            str(themes_dir / "b.toml")
        ]
        assert app.applied_path == themes_dir / "b.toml"

        await pilot.press("k")
        await _settle(pilot)
        assert _general(config_file)["import"] == [
            str(themes_dir / "a.toml")
        ]


@pytest.mark.asyncio
async def test_enter_keeps_theme_and_exits(tmp_path):
    app, themes_dir, config_file = _make_app(tmp_path)
    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("down")
        await _settle(pilot)
        await pilot.press("enter")

    assert app.return_value == themes_dir / "b.toml"
    assert not app.restored
    assert _general(config_file)["import"] == [str(themes_dir / "b.toml")]


@pytest.mark.asyncio
async def test_enter_on_directory_descends_and_parent_returns(tmp_path):
    app, themes_dir, config_file = _make_app(tmp_path, themes=())
    nested = themes_dir / "dark"
    nested.mkdir()
    _write_theme(nested / "night.toml")

    async with app.run_test() as pilot:
        await _settle(pilot)
        assert [e.name for e in app.visible_entries] == ["dark"]
        assert config_file.read_bytes() == ORIGINAL_CONFIG

        await pilot.press("enter")
        await _settle(pilot)
        assert app.current_dir == nested
        assert [e.name for e in app.visible_entries] == ["..", "night.toml"]

        await pilot.press("down")
        await _settle(pilot)
        assert _general(config_file)["import"] == [
            str(nested / "night.toml")
        ]

        await pilot.press("up", "enter")
        await _settle(pilot)
        assert app.current_dir == themes_dir
        assert [e.name for e in app.visible_entries] == ["dark"]


@pytest.mark.asyncio
async def test_empty_directory_leaves_config_untouched(tmp_path):
    app, _themes_dir, config_file = _make_app(tmp_path, themes=())
    async with app.run_test() as pilot:
        await _settle(pilot)

        assert app.visible_entries == []
        assert app.preview_path is None
        assert config_file.read_bytes() == ORIGINAL_CONFIG


@pytest.mark.asyncio
async def test_filter_narrows_entries(tmp_path):
    app, themes_dir, config_file = _make_app(
        tmp_path,
        themes=("dracula.toml", "nord.toml", "solarized.toml"),
    )
    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("slash", "n", "o")
        await _settle(pilot)

        assert app.filter_query == "no"
        assert [e.name for e in app.visible_entries] == ["nord.toml"]
        assert _general(config_file)["import"] == [
            str(themes_dir / "nord.toml")
        ]

        await pilot.press("escape")
        await _settle(pilot)
        assert app.filter_query == ""
        assert len(app.visible_entries) == 3


@pytest.mark.asyncio
async def test_page_keys_move_cursor(tmp_path):
    names = tuple(f"theme{index:02d}.toml" for index in range(40))
    app, themes_dir, config_file = _make_app(tmp_path, themes=names)
    async with app.run_test(size=(80, 12)) as pilot:
        await _settle(pilot)
        list_view = app.query_one("#theme-list", ThemeListView)

        await pilot.press("pagedown")
        await _settle(pilot)
        moved = list_view.index
        assert moved is not None and moved > 0
        assert app.preview_path == themes_dir / names[moved]

        await pilot.press("h")
        await _settle(pilot)
        assert list_view.index == 0


@pytest.mark.asyncio
async def test_listing_error_replaces_screen(tmp_path):
    app, themes_dir, config_file = _make_app(tmp_path, themes=())
    themes_dir.rmdir()
    async with app.run_test() as pilot:
        await _settle(pilot)

        error_view = app.query_one("#error-view", Static)
        assert app.error is not None
        assert error_view.display
        assert not app.query_one("#panes").display

        await pilot.press("q")

    assert config_file.read_bytes() == ORIGINAL_CONFIG


@pytest.mark.asyncio
async def test_stale_listing_is_discarded(tmp_path):
    app, themes_dir, _config_file = _make_app(tmp_path)
    async with app.run_test() as pilot:
        await _settle(pilot)
        stale = FilesLoaded(
            app.listing_seq - 1,
            themes_dir / "elsewhere",
            [],
        )
        await app.on_files_loaded(stale)

        assert app.current_dir == themes_dir
        assert [e.name for e in app.visible_entries] == ["a.toml", "b.toml"]


@pytest.mark.asyncio
async def test_quit_without_backup_exits_with_error(tmp_path):
    app, _themes_dir, config_file = _make_app(tmp_path, capture=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("q")

    assert app.return_code == 1
    assert not app.restored
    assert b"import" in config_file.read_bytes()


@pytest.mark.asyncio
async def test_resize_rerenders_preview_width(tmp_path):
    app, _themes_dir, _config_file = _make_app(tmp_path)
    async with app.run_test(size=(100, 40)) as pilot:
        await _settle(pilot)
        assert app.pane_width == 50

        await pilot.resize_terminal(140, 40)
        await _settle(pilot)
        assert app.pane_width == 70
        assert app.preview_width == 66


@pytest.mark.asyncio
async def test_undecodable_theme_latches_error_and_quit_restores(tmp_path):
    app, themes_dir, config_file = _make_app(tmp_path)
    (themes_dir / "c.toml").write_bytes(b"# caf\xe9\n[colors.primary]\n")
    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("j")
        await _settle(pilot)
        await pilot.press("j")
        await _settle(pilot)

        assert app.error is not None
        assert app.query_one("#error-view", Static).display
        assert _general(config_file)["import"] == [
            str(themes_dir / "b.toml")
        ]

        await pilot.press("q")

    assert config_file.read_bytes() == ORIGINAL_CONFIG
    assert app.return_code == 0


@pytest.mark.asyncio
async def test_ctrl_c_restores_original_config(tmp_path):
    app, _themes_dir, config_file = _make_app(tmp_path)
    async with app.run_test() as pilot:
        await _settle(pilot)
        assert b"import" in config_file.read_bytes()

        await pilot.press("ctrl+c")

    assert config_file.read_bytes() == ORIGINAL_CONFIG
    assert app.restored
    assert app.return_code == 0


@pytest.mark.asyncio
async def test_unexpected_listing_failure_is_shown(tmp_path, monkeypatch):
    def broken_listing(*args, **kwargs):
        raise RuntimeError("listing exploded")

    monkeypatch.setattr(app_module, "list_directory", broken_listing)
    app, _themes_dir, config_file = _make_app(tmp_path)
    async with app.run_test() as pilot:
        for _ in range(50):
            await pilot.pause()
            if app.error is not None:
                break

        assert app.error == "listing exploded"
        assert app.query_one("#error-view", Static).display

        await pilot.press("q")

    assert config_file.read_bytes() == ORIGINAL_CONFIG


def test_run_restores_after_keyboard_interrupt(tmp_path, monkeypatch):
    picker, themes_dir, config_file = _make_app(tmp_path)

    def interrupted(self, *args, **kwargs):
        apply_theme(self.config.config_file, themes_dir / "a.toml")
        raise KeyboardInterrupt

    monkeypatch.setattr(ThemePicker, "run", interrupted)

    assert app_module.run(picker.config, picker.backup) == 0
    assert config_file.read_bytes() == ORIGINAL_CONFIG


def test_run_restores_after_trapped_crash(tmp_path, monkeypatch):
    picker, themes_dir, config_file = _make_app(tmp_path)

    def crashed(self, *args, **kwargs):
        apply_theme(self.config.config_file, themes_dir / "a.toml")
        # Textual records an unhandled exception as exit code 1.
        self._return_code = 1

    monkeypatch.setattr(ThemePicker, "run", crashed)

    assert app_module.run(picker.config, picker.backup) == 1
    assert config_file.read_bytes() == ORIGINAL_CONFIG


def test_run_leaves_kept_theme_in_place(tmp_path, monkeypatch):
    picker, themes_dir, config_file = _make_app(tmp_path)

    def kept(self, *args, **kwargs):
        apply_theme(self.config.config_file, themes_dir / "a.toml")
        self.closed = True

    monkeypatch.setattr(ThemePicker, "run", kept)

    assert app_module.run(picker.config, picker.backup) == 0
    assert _general(config_file)["import"] == [str(themes_dir / "a.toml")]


def test_entry_label_shows_path_below_name(tmp_path):
    directory = ThemeEntry("dark", tmp_path / "dark", is_directory=True)
    theme = ThemeEntry("nord.toml", tmp_path / "nord.toml", False)

    assert entry_label(directory).plain == f"dark/\n{tmp_path / 'dark'}"
    assert entry_label(theme).plain == f"nord.toml\n{tmp_path / 'nord.toml'}"
