"""Rich Console factory and theme for siteplan output.

Consoles render to a StringIO buffer so formatters keep a
``-> str`` contract. In non-TTY environments (tests, pipes) Rich
disables color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

SITEPLAN_THEME = Theme(
    {
        "plan.ok": "bold green",
        "plan.error": "bold red",
        "plan.warning": "bold yellow",
        "plan.op": "bold cyan",
        "plan.key": "dim",
        "plan.domain": "bold blue",
        "plan.path": "bold",
        "plan.backend.static": "green",
        "plan.backend.proxy": "magenta",
        "plan.index": "dim",
    }
)

_BACKEND_STYLES: dict[str, str] = {
    "static": "plan.backend.static",
    "proxy": "plan.backend.proxy",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes.
        width: Override terminal width for stable output.
    """
    return Console(
        file=StringIO(),
        theme=SITEPLAN_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_backend(kind: str) -> str:
    """Return the Rich style name for a backend kind."""
    return _BACKEND_STYLES.get(kind, "")
