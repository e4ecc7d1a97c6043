"""Presentation layer: renders the grouped list for a terminal.

The controller knows nothing about rendering; a view is any object with a
``render(controller)`` method registered as a controller listener. Two are
provided: :class:`RichListView` prints a fresh snapshot on each call, and
:class:`LiveListView` redraws a ``rich.live.Live`` region in place.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from .models import ItemGroup
from .normalizers import describe_contributor

if TYPE_CHECKING:
    from .sync import SyncController

TITLE = "Qui ramène quoi"
SUBTITLE = "Ajoute ta participation. La liste se met à jour automatiquement."
LOADING_TEXT = "Chargement..."
EMPTY_TEXT = "Rien pour l’instant."


class ListView(Protocol):
    def render(self, controller: SyncController) -> None: ...


def render_groups(groups: Sequence[ItemGroup]) -> str:
    """Plain-text rendering, one item per block.

    >>> from potluck.models import Contributor, ItemGroup
    >>> print(render_groups([ItemGroup("Chips", "2", (Contributor("Alex", "2", ""),))]))
    Chips
      - Alex, 2
    """

    if not groups:
        return EMPTY_TEXT
    lines: list[str] = []
    for g in groups:
        lines.append(g.item)
        lines.extend(f"  - {describe_contributor(c)}" for c in g.contributors)
    return "\n".join(lines)


def _group_panel(group: ItemGroup) -> Panel:
    body = Text()
    for i, c in enumerate(group.contributors):
        if i:
            body.append("\n")
        body.append("• ")
        body.append(describe_contributor(c))
    title = Text(group.item, style="bold")
    if group.qty:
        title.append(f"  ({group.qty})", style="dim")
    return Panel(body, title=title, title_align="left", border_style="grey50")


def build_renderable(controller: SyncController) -> RenderableType:
    """Compose the full screen for the controller's current state."""

    parts: list[RenderableType] = [
        Text(TITLE, style="bold"),
        Text(SUBTITLE, style="dim"),
    ]
    status: list[str] = []
    if controller.refreshing:
        status.append("Rafraîchissement...")
    if controller.submitting:
        status.append("Ajout...")
    if status:
        parts.append(Text(" ".join(status), style="cyan"))
    if controller.error:
        parts.append(Text(controller.error, style="red"))

    groups = controller.grouped
    if controller.loading and not controller.records:
        parts.append(Text(LOADING_TEXT, style="dim"))
    elif not groups:
        parts.append(Text(EMPTY_TEXT, style="dim"))
    else:
        parts.extend(_group_panel(g) for g in groups)
    return Group(*parts)


class RichListView:
    """Prints a snapshot of the list to a ``rich`` console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render(self, controller: SyncController) -> None:
        self.console.print(build_renderable(controller))


class LiveListView:
    """Redraws the list in place; use as a context manager around the session."""

    def __init__(self, console: Console | None = None) -> None:
        self._live = Live(console=console or Console(), auto_refresh=False)

    def render(self, controller: SyncController) -> None:
        self._live.update(build_renderable(controller), refresh=True)

    def __enter__(self) -> LiveListView:
        self._live.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self._live.stop()


__all__ = [
    "ListView",
    "RichListView",
    "LiveListView",
    "build_renderable",
    "render_groups",
]
