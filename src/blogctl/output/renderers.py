"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from blogctl.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from blogctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal, which is
    the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
        if verbose:
            _render_meta(console, result)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet``: paths, names, or one issue per line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} - {msg}"

    if result.op == "check":
        return "\n".join(_issue_line(issue) for issue in result.data.get("issues", []))

    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(str(item.get("path") or item.get("name") or "") for item in items)

    path = result.data.get("path") or result.data.get("output")
    if path:
        return str(path)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="blog.ok"), Text(f"  {result.op}", style="blog.op"))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    if isinstance(value, list):
        value = ", ".join(str(v) for v in value) if value else "-"
    style = {
        "path": "blog.path",
        "moved_from": "blog.path",
        "title": "blog.title",
        "permalink": "blog.url",
    }.get(key, "")
    console.print(Text(f"  {key}: ", style="blog.key"), Text(str(value), style=style))


def _issue_line(issue: dict[str, Any]) -> str:
    location = issue.get("path", "?")
    if issue.get("line"):
        location += f":{issue['line']}"
    severity, category = issue.get("severity"), issue.get("category")
    return f"{location}: {severity} [{category}] {issue.get('message')}"


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including the telemetry span tree."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in result.meta.items():
        if key == "telemetry":
            _render_telemetry_tree(console, value, indent=4)
        else:
            console.print(f"    {key}: {value}")


def _render_telemetry_tree(console: Console, span: dict[str, Any], indent: int = 4) -> None:
    """Render a span tree; slow spans are highlighted."""
    duration = span.get("duration_ms", 0.0)
    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{' ' * indent}[{style}]{duration:>8.2f}ms[/{style}]  {span.get('name', '?')}"
    annotations = span.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _post_table(
    items: list[dict[str, Any]],
    *,
    score: bool = False,
    verbose: bool = False,
) -> Table:
    """Table of posts: modified date, status, title, path."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Modified", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Title", style="blog.title")
    table.add_column("Path", style="blog.path")
    if score:
        table.add_column("Score", style="blog.score", justify="right")
    if verbose:
        table.add_column("Tags")
        table.add_column("Permalink", style="blog.url")

    for item in items:
        status = str(item.get("status", ""))
        row: list[Any] = [
            str(item.get("modified") or "-"),
            Text(status, style=style_for_status(status)),
            str(item.get("title", "")),
            str(item.get("path", "")),
        ]
        if score:
            row.append(f"{float(item.get('score', 0.0)):.4f}")
        if verbose:
            row.append(", ".join(item.get("tags", [])))
            row.append(str(item.get("permalink") or ""))
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="blog.error"),
        Text(f"  {result.op}{code}", style="blog.op"),
        Text(f" - {msg}"),
    )

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for key, value in err.detail.items():
            console.print(f"    {key}: {value}")


# ── Mutation renderers ────────────────────────────────────────────────


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """new_post / update / publish / unpublish / touch."""
    _status_line(console, result)
    for key in ("path", "moved_from", "title", "date", "modified", "permalink"):
        if result.data.get(key) is not None:
            _field(console, key, result.data[key])
    if "fields_changed" in result.data:
        _field(console, "fields_changed", result.data["fields_changed"])
    if result.data.get("draft"):
        _field(console, "draft", "yes")


# ── Query renderers ───────────────────────────────────────────────────


def _render_post(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """get_post as a panel: metadata, references, then (verbose) the body."""
    d = result.data
    lines: list[str] = []
    for key in ("path", "status", "date", "modified", "permalink"):
        if d.get(key) is not None:
            lines.append(escape(f"{key}: {d[key]}"))
    for key in ("categories", "tags"):
        if d.get(key):
            lines.append(escape(f"{key}: {', '.join(d[key])}"))

    refs = d.get("references", [])
    if refs:
        lines.append("references:")
        for ref in refs:
            marker = ""
            if ref.get("exists") is False:
                marker = " [blog.error](missing)[/blog.error]"
            target = escape(str(ref.get("target")))
            lines.append(f"  L{ref.get('line')} {ref.get('kind')}: {target}{marker}")

    content = "\n".join(lines)
    body = str(d.get("body", "")).strip()
    if verbose and body:
        content += f"\n\n{escape(body)}"

    style = style_for_status(str(d.get("status", "")))
    console.print(
        Panel(
            content,
            title=escape(str(d.get("title") or "Untitled")),
            border_style=style or "dim",
        )
    )


def _render_post_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """list_posts and search."""
    items = result.data.get("items", [])
    console.print(_post_table(items, score=result.op == "search", verbose=verbose))
    count = result.data.get("count", len(items))
    console.print(f"\n{count} post{'s' if count != 1 else ''}")


def _render_labels(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """tags / categories with usage counts."""
    items = result.data.get("items", [])
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Tag" if result.op == "tags" else "Category", style="blog.title")
    table.add_column("Posts", justify="right")
    for item in items:
        table.add_row(str(item.get("name", "")), str(item.get("count", 0)))
    console.print(table)
    console.print(f"\n{len(items)} {result.op}")


# ── Check renderers ───────────────────────────────────────────────────


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Issues grouped by file, linter style."""
    d = result.data
    issues = d.get("issues", [])
    files_checked = d.get("files_checked", 0)

    if not issues:
        console.print(f"[blog.ok]OK[/blog.ok]  No issues found in {files_checked} files.")
        return

    severity_styles = {"error": "blog.error", "warning": "blog.warning"}
    by_path: dict[str, list[dict[str, Any]]] = {}
    for issue in issues:
        by_path.setdefault(str(issue.get("path", "?")), []).append(issue)

    for path, path_issues in by_path.items():
        console.print(f"\n[bold]{escape(path)}[/bold]")
        for issue in path_issues:
            sev = str(issue.get("severity", "warning"))
            style = severity_styles.get(sev, "")
            line = f"{issue['line']}:" if issue.get("line") else ""
            fixable = " [dim](fixable)[/dim]" if verbose and issue.get("fixable") else ""
            message = escape(str(issue.get("message")))
            console.print(
                f"  {line:<5}[{style}]{sev:<7}[/{style}] "
                f"[dim]{issue.get('category')}[/dim]  {message}{fixable}"
            )

    errors = d.get("error_count", 0)
    warnings = d.get("warning_count", 0)
    console.print(f"\n{errors} errors, {warnings} warnings in {files_checked} files checked")


def _render_fix(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "level", result.data.get("level", "safe"))
    _field(console, "fixes_applied", result.data.get("count", 0))
    _field(console, "files_changed", len(result.data.get("files_changed", [])))
    if verbose:
        for fix in result.data.get("fixes", []):
            console.print(f"    - {fix}")


def _render_index(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """rebuild / sync counters."""
    _status_line(console, result)
    for key in ("indexed", "skipped", "added", "updated", "removed"):
        if key in result.data:
            _field(console, key, result.data[key])


# ── Init / export renderers ──────────────────────────────────────────


def _render_init(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    for key in ("path", "name"):
        if key in d:
            _field(console, key, d[key])
    files = d.get("files_created", [])
    _field(console, "files_created", len(files))
    if verbose:
        for f in files:
            console.print(f"    {f}")


def _render_export(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    if result.op == "export_manifest" and "output" not in d:
        # No output file: the manifest itself is the output.
        console.print_json(json.dumps(d.get("posts", []), ensure_ascii=False))
        return

    _status_line(console, result)
    for key in ("output", "output_dir", "count"):
        if key in d:
            _field(console, key, d[key])
    if verbose:
        for f in d.get("files", []):
            console.print(f"    {f}")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, dict) or (
            isinstance(value, list) and not all(isinstance(v, str) for v in value)
        ):
            _field(console, key, json.dumps(value, separators=(",", ":"), default=str))
        else:
            _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Mutations
    "new_post": _render_mutation,
    "update": _render_mutation,
    "publish": _render_mutation,
    "unpublish": _render_mutation,
    "touch": _render_mutation,
    # Query
    "get_post": _render_post,
    "list_posts": _render_post_table,
    "search": _render_post_table,
    "tags": _render_labels,
    "categories": _render_labels,
    # Check / index
    "check": _render_check,
    "fix": _render_fix,
    "rebuild": _render_index,
    "sync": _render_index,
    # Init / export
    "init_site": _render_init,
    "export_manifest": _render_export,
    "export_tag_pages": _render_export,
}
