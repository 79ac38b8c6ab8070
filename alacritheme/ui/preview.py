"""Color palette preview for Alacritty theme files."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from rich.box import ROUNDED
from rich.color import ColorParseError
from rich.console import Group, RenderableType
from rich.padding import Padding
from rich.panel import Panel
from rich.style import Style
from rich.text import Text
import tomlkit
from tomlkit.exceptions import TOMLKitError

COLOR_NAMES = (
    "black",
    "red",
    "green",
    "yellow",
    "blue",
    "magenta",
    "cyan",
    "white",
)
NUM_COLUMNS = 4
BOX_SPACING = 2
BORDER_ALLOWANCE = 4
BORDER_STYLE = "color(69)"


class ThemeParseError(ValueError):
    """Raised when a theme file cannot be read as a color scheme."""


def _blank_palette() -> dict[str, str]:
    return {name: "" for name in COLOR_NAMES}


@dataclass(frozen=True)
class ColorScheme:
    """Primary, normal and bright colors of an Alacritty theme."""

    background: str = ""
    foreground: str = ""
    normal: dict[str, str] = field(default_factory=_blank_palette)
    bright: dict[str, str] = field(default_factory=_blank_palette)


def parse_color_scheme(content: str) -> ColorScheme:
    """Parse the ``[colors]`` tables of a theme file.

    Missing tables or keys are left empty. Keys match case-insensitively.
    """

    try:
        document = tomlkit.parse(content)
    except TOMLKitError as exc:
        raise ThemeParseError(str(exc)) from exc

    colors = _section(document, "colors")
    primary = _section(colors, "primary")
    return ColorScheme(
        background=_color(primary, "background"),
        foreground=_color(primary, "foreground"),
        normal=_palette(_section(colors, "normal")),
        bright=_palette(_section(colors, "bright")),
    )


def _lookup(table: Mapping, key: str) -> object:
    for name, value in table.items():
        if str(name).lower() == key:
            return value
    return None


def _section(table: Mapping, key: str) -> Mapping:
    value = _lookup(table, key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ThemeParseError(f"'{key}' must be a table")
    return value


def _color(table: Mapping, key: str) -> str:
    value = _lookup(table, key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ThemeParseError(f"color '{key}' must be a string")
    return str(value)


def _palette(table: Mapping) -> dict[str, str]:
    return {name: _color(table, name) for name in COLOR_NAMES}


def box_width_for(width: int) -> int:
    """Return the swatch width that fits four columns into ``width``."""

    content_width = width - BORDER_ALLOWANCE
    spacing = (NUM_COLUMNS - 1) * BOX_SPACING
    return max(1, (content_width - spacing) // NUM_COLUMNS)


def swatch_style(color: str) -> Style:
    """Return a background style for ``color``, or no style if unknown."""

    value = color.strip()
    if value[:2].lower() == "0x":
        value = f"#{value[2:]}"
    if not value:
        return Style()
    try:
        return Style(bgcolor=value)
    except ColorParseError:
        return Style()


def render_preview(content: str, width: int) -> RenderableType:
    """Render the palette of a theme file to fit ``width`` cells.

    Parse failures are returned as a visible message instead of raised.
    """

    try:
        scheme = parse_color_scheme(content)
    except ThemeParseError as exc:
        return Text(f"Error parsing theme: {exc}", style="bold red")

    box_width = box_width_for(width)
    panel_width = max(width, box_width + BORDER_ALLOWANCE)
    primary = [
        (scheme.background, "Background"),
        (scheme.foreground, "Foreground"),
    ]
    normal = [
        (scheme.normal[name], name.capitalize()) for name in COLOR_NAMES
    ]
    bright = [
        (scheme.bright[name], f"Bright {name.capitalize()}")
        for name in COLOR_NAMES
    ]

    return Group(
        _title("Theme Preview"),
        Text(""),
        _title("Background/Foreground Colors"),
        _group_panel(primary, box_width, panel_width),
        Text(""),
        _title("Normal Colors"),
        _group_panel(normal, box_width, panel_width),
        Text(""),
        _title("Bright Colors"),
        _group_panel(bright, box_width, panel_width),
    )


def _title(label: str) -> Padding:
    return Padding(
        Text(label, style="bold", justify="center"),
        (1, 0, 0, 0),
    )


def _group_panel(
    swatches: list[tuple[str, str]],
    box_width: int,
    panel_width: int,
) -> Panel:
    rows = [
        _swatch_row(swatches[start:start + NUM_COLUMNS], box_width)
        for start in range(0, len(swatches), NUM_COLUMNS)
    ]
    return Panel(
        Group(*rows),
        box=ROUNDED,
        border_style=BORDER_STYLE,
        padding=(1, 1),
        width=panel_width,
    )


def _swatch_row(swatches: list[tuple[str, str]], box_width: int) -> Text:
    blocks = Text(no_wrap=True)
    labels = Text(no_wrap=True)
    gap = " " * BOX_SPACING
    for position, (color, label) in enumerate(swatches):
        if position:
            blocks.append(gap)
            labels.append(gap)
        blocks.append(" " * box_width, style=swatch_style(color))
        labels.append(label[:box_width].center(box_width))
    return Text("\n", no_wrap=True).join([blocks, labels])
