"""Two-pane Textual picker for Alacritty themes."""

from __future__ import annotations

import logging
from pathlib import Path
import threading
from typing import Optional

from rich.text import Text
from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.widgets import Footer, Input, ListItem, ListView, Static
from textual.worker import Worker, WorkerState

from ..config import AppConfig
from ..live_config import ConfigBackup, LiveConfigError, apply_theme
from ..themefiles import ThemeEntry, filter_entries, list_directory
from .preview import render_preview
from .selection import SelectionState

logger = logging.getLogger(__name__)

APP_TITLE = "Alacritheme"
PLACEHOLDER_TEXT = "Initializing..."
PREVIEW_GUTTER = 4


def entry_label(entry: ThemeEntry) -> Text:
    """Return the two-line list label: name, then the dimmed full path."""

    name = entry.name
    if entry.is_directory and not entry.is_parent:
        name = f"{entry.name}/"
    return Text.assemble(name, "\n", (str(entry.path), "dim"))


class ThemeEntryItem(ListItem):
    """List item holding one ``ThemeEntry``."""

    def __init__(self, entry: ThemeEntry) -> None:
        label = entry_label(entry)
        super().__init__(Static(label, classes="entry-label"))
        self.entry = entry


class ThemeListView(ListView):
    """ListView with vim-style movement and paging keys."""

    BINDINGS = [
        Binding("k", "cursor_up", "Up", show=False),
        Binding("j", "cursor_down", "Down", show=False),
        Binding("pageup,left,h", "page_up", "Page up", show=False),
        Binding("pagedown,right,l", "page_down", "Page down", show=False),
    ]

    def action_page_up(self) -> None:
        """Move the cursor up by one visible page."""

        self._move_page(-1)

    def action_page_down(self) -> None:
        """Move the cursor down by one visible page."""

        self._move_page(1)

    def _move_page(self, direction: int) -> None:
        count = len(self.children)
        if not count:
            return
        item_height = max(1, self.children[0].outer_size.height)
        rows = self.scrollable_content_region.height
        page = max(1, rows // item_height)
        current = self.index if self.index is not None else 0
        self.index = max(0, min(count - 1, current + direction * page))


class FilesLoaded(Message):
    """Result of a background directory listing."""

    def __init__(
        self,
        request_id: int,
        directory: Path,
        entries: list[ThemeEntry],
        error: Exception | None = None,
    ) -> None:
        super().__init__()
        self.request_id = request_id
        self.directory = directory
        self.entries = entries
        self.error = error


class ThemeApplied(Message):
    """Result of a background config patch."""

    def __init__(self, path: Path, error: Exception | None = None) -> None:
        super().__init__()
        self.path = path
        self.error = error


class ThemePicker(App[Optional[Path]]):
    """Browse theme files and apply them to the live Alacritty config."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #placeholder {
        padding: 1 2;
    }

    #panes {
        height: 1fr;
        display: none;
    }

    #list-pane {
        width: 1fr;
    }

    #list-title {
        padding: 1 1 0 1;
        text-style: bold;
    }

    #filter {
        display: none;
    }

    #theme-list {
        height: 1fr;
    }

    #list-status {
        padding: 0 1;
        text-style: dim;
    }

    #preview-pane {
        width: 1fr;
        padding: 0 1;
    }

    #error-view {
        display: none;
        padding: 1 2;
    }
    """

    BINDINGS = [
        Binding("q", "quit_restore", "Quit"),
        Binding("ctrl+c", "quit_restore", "Quit", show=False, priority=True),
        Binding("slash", "show_filter", "Filter"),
        Binding("escape", "clear_filter", "Clear filter", show=False),
    ]

    def __init__(self, config: AppConfig, backup: ConfigBackup) -> None:
        super().__init__()
        self.config = config
        self.backup = backup
        self.current_dir = config.themes_dir
        self.entries: list[ThemeEntry] = []
        self.visible_entries: list[ThemeEntry] = []
        self.filter_query = ""
        self.selection = SelectionState()
        self.generation = 0
        self.listing_seq = 0
        self.ready = False
        self.pane_width = 0
        self.error: Optional[str] = None
        self.preview_path: Optional[Path] = None
        self.preview_content: Optional[str] = None
        self.applied_path: Optional[Path] = None
        self.restored = False
        # Set once the config was kept or handed back; no patch may follow.
        self.closed = False
        self._patch_lock = threading.Lock()

    def compose(self) -> ComposeResult:
        yield Static(PLACEHOLDER_TEXT, id="placeholder")
        with Horizontal(id="panes"):
            with Vertical(id="list-pane"):
                yield Static(APP_TITLE, id="list-title")
                yield Input(placeholder="Filter themes", id="filter")
                yield ThemeListView(id="theme-list")
                yield Static("", id="list-status")
            with VerticalScroll(id="preview-pane"):
                yield Static("", id="preview")
        yield Static("", id="error-view")
        yield Footer()

    def on_mount(self) -> None:
        self.title = APP_TITLE
        self._request_listing(self.config.themes_dir)

    @property
    def preview_width(self) -> int:
        """Cells available to the palette preview."""

        return max(1, self.pane_width - PREVIEW_GUTTER)

    # Events ----------------------------------------------------------------
    def on_resize(self, event: events.Resize) -> None:
        self.pane_width = event.size.width // 2
        if not self.ready:
            self.ready = True
            self._sync_view()
            self.query_one("#theme-list", ThemeListView).focus()
        self._render_preview()

    async def on_files_loaded(self, message: FilesLoaded) -> None:
        if message.request_id != self.listing_seq:
            logger.debug(
                "Discarding stale listing %d of %s",
                message.request_id,
                message.directory,
            )
            return
        if message.error is not None:
            self._latch_error(message.error)
            return

        self.current_dir = message.directory
        self.entries = message.entries
        self.filter_query = ""
        filter_input = self.query_one("#filter", Input)
        filter_input.value = ""
        filter_input.display = False
        await self._show_entries(self.entries)

    def on_theme_applied(self, message: ThemeApplied) -> None:
        if message.error is not None:
            self._latch_error(message.error)
            return
        self.applied_path = message.path
        self._update_status()

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.state != WorkerState.ERROR:
            return
        error = event.worker.error
        if error is not None:
            self._latch_error(error)

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        self._evaluate_selection()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        item = event.item
        if not isinstance(item, ThemeEntryItem) or self.error is not None:
            return
        if item.entry.is_directory:
            self._request_listing(item.entry.path)
            return
        self._confirm_theme(item.entry)

    async def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != "filter" or event.value == self.filter_query:
            return
        self.filter_query = event.value
        await self._show_entries(filter_entries(self.entries, event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "filter":
            return
        if not event.value.strip():
            event.input.display = False
        self.query_one("#theme-list", ThemeListView).focus()

    # Actions ---------------------------------------------------------------
    def action_quit_restore(self) -> None:
        """Put the original config back and leave."""

        try:
            self.restore_config()
        except LiveConfigError as exc:
            logger.error("Restore failed: %s", exc)
            self.exit(return_code=1, message=f"Error: {exc}")
            return
        self.exit()

    def action_show_filter(self) -> None:
        """Reveal and focus the filter input."""

        if self.error is not None or not self.ready:
            return
        filter_input = self.query_one("#filter", Input)
        filter_input.display = True
        filter_input.focus()

    async def action_clear_filter(self) -> None:
        """Drop the filter and return focus to the list."""

        filter_input = self.query_one("#filter", Input)
        if not filter_input.display:
            return
        if self.filter_query:
            self.filter_query = ""
            await self._show_entries(self.entries)
        filter_input.value = ""
        filter_input.display = False
        self.query_one("#theme-list", ThemeListView).focus()

    # Core behaviour --------------------------------------------------------
    def _request_listing(self, directory: Path) -> None:
        self.listing_seq += 1
        self._load_entries(directory, self.listing_seq)

    @work(thread=True, exit_on_error=False, group="listing")
    def _load_entries(self, directory: Path, request_id: int) -> None:
        try:
            entries = list_directory(
                directory,
                self.config.themes_dir,
                self.config.theme_suffixes,
            )
        except OSError as exc:
            self.post_message(FilesLoaded(request_id, directory, [], exc))
            return
        self.post_message(FilesLoaded(request_id, directory, entries))

    @work(thread=True, exit_on_error=False, group="apply")
    def _apply_in_background(self, theme_path: Path) -> None:
        with self._patch_lock:
            if self.closed:
                return
            try:
                apply_theme(self.config.config_file, theme_path)
            except LiveConfigError as exc:
                self.post_message(ThemeApplied(theme_path, exc))
                return
        self.post_message(ThemeApplied(theme_path))

    async def _show_entries(self, entries: list[ThemeEntry]) -> None:
        self.visible_entries = list(entries)
        self.generation += 1
        list_view = self.query_one("#theme-list", ThemeListView)
        await list_view.clear()
        if self.visible_entries:
            await list_view.extend(
                ThemeEntryItem(entry) for entry in self.visible_entries
            )
            list_view.index = 0
        self._update_status()
        self._evaluate_selection()

    def _entry_at(self, index: Optional[int]) -> Optional[ThemeEntry]:
        if index is None or not 0 <= index < len(self.visible_entries):
            return None
        return self.visible_entries[index]

    def _evaluate_selection(self) -> None:
        if self.error is not None:
            return
        index = self.query_one("#theme-list", ThemeListView).index
        if not self.selection.is_change(index, self.generation):
            return
        self.selection = self.selection.advance(index, self.generation)

        entry = self._entry_at(index)
        if entry is None or entry.is_directory:
            return
        if not self._load_preview(entry):
            return
        self._apply_in_background(entry.path)

    def _load_preview(self, entry: ThemeEntry) -> bool:
        try:
            content = entry.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self._latch_error(exc)
            return False
        self.preview_path = entry.path
        self.preview_content = content
        self._render_preview()
        return True

    def _confirm_theme(self, entry: ThemeEntry) -> None:
        if not self._load_preview(entry):
            return
        with self._patch_lock:
            try:
                apply_theme(self.config.config_file, entry.path)
            except LiveConfigError as exc:
                self._latch_error(exc)
                return
            self.closed = True
        self.applied_path = entry.path
        logger.info("Keeping theme %s", entry.path)
        self.exit(entry.path)

    def restore_config(self) -> None:
        """Write the captured config back and refuse any later patch."""

        with self._patch_lock:
            self.closed = True
            self.backup.restore()
        self.restored = True

    def _render_preview(self) -> None:
        if not self.ready or self.preview_content is None:
            return
        rendered = render_preview(self.preview_content, self.preview_width)
        self.query_one("#preview", Static).update(rendered)

    def _update_status(self) -> None:
        status = f"{self.current_dir} | {len(self.visible_entries)} item(s)"
        if self.filter_query:
            status = f"{status} | filter: {self.filter_query}"
        if self.applied_path is not None:
            status = f"{status} | applied: {self.applied_path.name}"
        self.query_one("#list-status", Static).update(Text(status))

    def _latch_error(self, error: BaseException) -> None:
        logger.error("%s", error)
        self.error = str(error)
        self.query_one("#error-view", Static).update(
            Text(f"Error: {error}")
        )
        self.query_one("#panes", Horizontal).disabled = True
        self._sync_view()

    def _sync_view(self) -> None:
        self.query_one("#placeholder", Static).display = not self.ready
        self.query_one("#panes", Horizontal).display = (
            self.ready and self.error is None
        )
        self.query_one("#error-view", Static).display = (
            self.ready and self.error is not None
        )
        self.query_one(Footer).display = self.error is None


def run(config: AppConfig, backup: ConfigBackup) -> int:
    """Run the picker and return its exit code.

    The captured config is written back unless the session already kept a
    theme or restored it, so interrupts and trapped crashes leave no trace.
    """

    app = ThemePicker(config=config, backup=backup)
    try:
        app.run()
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0
    finally:
        # A crash trapped by Textual ends run() without a quit or a keep.
        if not app.closed:
            app.restore_config()
    return app.return_code or 0
