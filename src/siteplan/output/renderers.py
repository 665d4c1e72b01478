"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). Renderers
are dispatched by ``result.op`` in :func:`render_result`; unknown ops
fall through to a generic key-value renderer.
"""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from siteplan.output.console import create_console, get_output, style_for_backend

if TYPE_CHECKING:
    from rich.console import Console

    from siteplan.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal, line-oriented output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    if result.op == "plan":
        return "\n".join(
            f"{group['domain']}{rule['path']} {rule['backend']} {rule['target']}"
            for group in result.data.get("domains", [])
            for rule in group["rules"]
        )
    if result.op == "render":
        return "\n".join(f["path"] for f in result.data.get("files", []))
    if result.op == "certificates":
        command = result.data.get("command") or []
        return shlex.join(command)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="plan.ok"), Text(f"  {result.op}", style="plan.op"), sep="")


def _field(console: Console, key: str, value: Any) -> None:
    console.print(Text(f"  {key}: ", style="plan.key"), Text(str(value)), sep="")


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta, including the telemetry span tree (verbose only)."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in result.meta.items():
        if key == "telemetry":
            _render_span(console, value, indent=4)
        else:
            console.print(f"    {key}: {value}")


def _render_span(console: Console, span: dict[str, Any], indent: int) -> None:
    duration = span.get("duration_ms", 0.0)
    style = "yellow" if duration > 100 else "dim"
    line = f"{' ' * indent}[{style}]{duration:>8.2f}ms[/{style}]  {span.get('name', '?')}"
    annotations = span.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)
    for child in span.get("children", []):
        _render_span(console, child, indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="plan.error"),
        Text(f"  {result.op}", style="plan.op"),
        " — ",
        Text(msg),
        sep="",
    )
    if err is None:
        return

    if err.code == "INVALID_DESCRIPTOR":
        table = Table(show_header=True, pad_edge=False)
        table.add_column("#", style="plan.index", justify="right")
        table.add_column("Name")
        table.add_column("Code", style="plan.error")
        table.add_column("Field")
        table.add_column("Value")
        table.add_column("Message")
        for issue in err.detail.get("errors", []):
            table.add_row(
                str(issue["index"]),
                Text(issue.get("name") or ""),
                issue["code"],
                issue["field"],
                Text(repr(issue.get("value"))),
                Text(issue["message"]),
            )
        console.print(table)
    elif err.code == "CONFLICTS":
        table = Table(show_header=True, pad_edge=False)
        table.add_column("Kind", style="plan.error")
        table.add_column("Apps", style="plan.index")
        table.add_column("Binding")
        for conflict in err.detail.get("conflicts", []):
            if conflict["kind"] == "port_collision":
                binding = f"port {conflict['port']}"
            else:
                binding = f"{conflict['domain']}{conflict['path']}"
            first, second = conflict["indices"]
            table.add_row(conflict["kind"], f"#{first}, #{second}", Text(binding))
        console.print(table)
    elif verbose and err.detail:
        console.print(Text("  detail:", style="dim"))
        for key, value in err.detail.items():
            console.print(f"    {key}: {value}")


# ── Success renderers ─────────────────────────────────────────────────


def _render_validate(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "valid", result.data.get("count", 0))
    for item in result.data.get("items", []):
        console.print(
            Text(f"  #{item['index']} ", style="plan.index"),
            Text(item["domain"], style="plan.domain"),
            Text(item["path"], style="plan.path"),
            Text(f"  {item['backend']}", style=style_for_backend(item["backend"])),
            Text(f"  {item['name']}", style="dim"),
            sep="",
        )
    if verbose:
        _render_meta(console, result)


def _render_plan(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "domains", result.data.get("domain_count", 0))
    _field(console, "rules", result.data.get("rule_count", 0))
    for group in result.data.get("domains", []):
        console.print()
        table = Table(
            title=Text(group["domain"], style="plan.domain"),
            title_justify="left",
            show_header=True,
            pad_edge=False,
        )
        table.add_column("Path", style="plan.path", no_wrap=True)
        table.add_column("Backend")
        table.add_column("Target")
        table.add_column("Name", style="dim")
        if verbose:
            table.add_column("#", style="plan.index", justify="right")
        for rule in group["rules"]:
            row = [
                Text(rule["path"]),
                Text(rule["backend"], style=style_for_backend(rule["backend"])),
                Text(rule["target"]),
                Text(rule["name"]),
            ]
            if verbose:
                row.append(str(rule["source_index"]))
            table.add_row(*row)
        console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_files(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    if result.data.get("written"):
        _field(console, "output_dir", result.data.get("output_dir"))
    for f in result.data.get("files", []):
        if verbose or not result.data.get("written"):
            console.print()
            console.print(Text(f"# {f['path']}", style="plan.key"))
            console.print(f["content"].rstrip("\n"), markup=False, soft_wrap=True)
        else:
            _field(console, f["kind"], f["path"])
    if verbose:
        _render_meta(console, result)


def _render_certificates(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    _status_line(console, result)
    for domain in result.data.get("domains", []):
        console.print(Text(f"  {domain}", style="plan.domain"))
    command = result.data.get("command") or []
    if command:
        console.print()
        console.print(shlex.join(command), markup=False, soft_wrap=True)
    if verbose:
        _render_meta(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


_OP_RENDERERS = {
    "validate": _render_validate,
    "plan": _render_plan,
    "render": _render_files,
    "certificates": _render_certificates,
}
