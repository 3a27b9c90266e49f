from __future__ import annotations

import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from pathfinder.config import get_settings
from pathfinder.domain.loader import SymbolModelError
from pathfinder.orchestrator.pipeline import AnalysisResult, analyze_file


app = typer.Typer(no_args_is_help=True, add_completion=False)

graph_app = typer.Typer(no_args_is_help=True)
app.add_typer(graph_app, name="graph")

console = Console()

_METHOD_STYLES = {
    "GET": "green",
    "POST": "yellow",
    "PUT": "blue",
    "DELETE": "red",
    "PATCH": "cyan",
}


def setup_logging(log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


@app.callback()
def main_options(
    log_level: Optional[str] = typer.Option(None, help="DEBUG|INFO|WARNING|ERROR (default: PATHFINDER_LOG_LEVEL)"),
) -> None:
    setup_logging(log_level or get_settings().log_level)


def _analyze(model: str) -> AnalysisResult:
    model_path = Path(model).expanduser().resolve()
    if not model_path.is_file():
        raise typer.BadParameter(f"Symbol model does not exist: {model_path}")
    try:
        return analyze_file(model_path, settings=get_settings())
    except SymbolModelError as e:
        raise typer.BadParameter(str(e)) from e


def _check_format(format: str, allowed: tuple[str, ...]) -> str:
    fmt = format.lower().strip()
    if fmt not in allowed:
        raise typer.BadParameter(f"format must be one of: {', '.join(allowed)}")
    return fmt


@app.command()
def routes(
    model: str = typer.Argument(..., help="Symbol model JSON produced by the extractor"),
    method: Optional[str] = typer.Option(None, help="Filter by HTTP method (GET/POST/...)"),
    path_contains: Optional[str] = typer.Option(None, help="Substring match on HTTP path"),
    class_contains: Optional[str] = typer.Option(None, help="Substring match on controller class"),
    limit: int = typer.Option(200, help="Max rows to print"),
    format: str = typer.Option("table", help="Output format: table|json"),
) -> None:
    fmt = _check_format(format, ("table", "json"))
    result = _analyze(model)

    rows = result.routes
    if method:
        rows = [r for r in rows if r.http_method == method.upper()]
    if path_contains:
        rows = [r for r in rows if path_contains in r.path]
    if class_contains:
        rows = [r for r in rows if class_contains in r.class_name]
    rows = rows[:limit]

    if fmt == "json":
        # plain print: rich would wrap and highlight the payload
        print(json.dumps([r.to_dict() for r in rows], indent=2))
        return

    console.print(f"[bold]Controllers:[/bold] {result.controllers}")
    console.print(f"[bold]Routes:[/bold] {len(result.routes)} (showing up to {limit})")

    table = Table(show_header=True, header_style="bold")
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("HANDLER")
    table.add_column("HEADERS")
    table.add_column("FILE:LINE", no_wrap=True)

    for r in rows:
        style = _METHOD_STYLES.get(r.http_method, "")
        verb = f"[{style}]{r.http_method}[/{style}]" if style else r.http_method
        line = r.line_range[0] if r.line_range else "-"
        table.add_row(
            verb,
            r.path,
            f"{r.class_name}#{r.method_name}",
            ", ".join(r.headers),
            f"{r.file_path or '-'}:{line}",
        )

    console.print(table)
    if result.conflicts:
        console.print(
            f"[bold red]{len(result.conflicts)} conflict(s)[/bold red]; "
            "run [bold]pathfinder conflicts <model>[/bold] for details."
        )


@app.command()
def conflicts(
    model: str = typer.Argument(..., help="Symbol model JSON produced by the extractor"),
    format: str = typer.Option("table", help="Output format: table|json"),
    fail_on_conflict: bool = typer.Option(False, help="Exit with code 1 when conflicts exist"),
) -> None:
    fmt = _check_format(format, ("table", "json"))
    result = _analyze(model)

    if fmt == "json":
        print(json.dumps([c.to_dict() for c in result.conflicts], indent=2))
    elif not result.conflicts:
        console.print("[bold green]No conflicting routes.[/bold green]")
    else:
        console.print(f"[bold red]Conflicts:[/bold red] {len(result.conflicts)}")
        for c in result.conflicts:
            headers = f" headers={list(c.headers)}" if c.headers else ""
            console.print(f"  {c.http_method:<7} {c.path}{headers}")
            for cls, meth in c.handlers:
                console.print(f"      - {cls}#{meth}")

    if fail_on_conflict and result.conflicts:
        raise typer.Exit(code=1)


@graph_app.command("stats")
def graph_stats(
    model: str = typer.Argument(..., help="Symbol model JSON produced by the extractor"),
    limit: int = typer.Option(10, help="How many top controllers to show"),
) -> None:
    result = _analyze(model)
    g = result.graph.graph

    by_lang = Counter(n.decl.language for n in g.nodes)
    per_controller = Counter(r.class_name for r in result.routes)

    console.print(f"Classes: {len(g.nodes)} ({', '.join(f'{k}={v}' for k, v in sorted(by_lang.items()))})")
    console.print(f"Controllers: {result.controllers}, roots: {len(g.roots())}, EXTENDS edges: {len(g.edges)}")
    console.print(f"Routes: {len(result.routes)}, conflicts: {len(result.conflicts)}")

    console.print("")
    console.print(f"[bold]Top controllers by routes served (limit {limit}):[/bold]")
    for name, cnt in per_controller.most_common(limit):
        console.print(f"  {cnt:>4}  {name}")

    if result.diagnostics:
        console.print("")
        console.print(f"[bold]Diagnostics ({len(result.diagnostics)}):[/bold]")
        for d in result.diagnostics:
            color = "yellow" if d.severity == "warning" else "dim"
            console.print(f"  [{color}]{d.kind}[/{color}] {d.message}")


@graph_app.command("export")
def graph_export(
    model: str = typer.Argument(..., help="Symbol model JSON produced by the extractor"),
    format: str = typer.Option("json", help="Export format: json|dot"),
    out: Optional[str] = typer.Option(None, help="Output path (default: print to stdout)"),
) -> None:
    fmt = _check_format(format, ("json", "dot"))
    result = _analyze(model)
    g = result.graph.graph

    if fmt == "json":
        payload = {
            "nodes": [
                {"id": n.id, "type": n.type, "label": n.label, "file_path": n.decl.file_path}
                for n in g.nodes
            ],
            "edges": [
                {"src": g.nodes[e.src].id, "dst": g.nodes[e.dst].id, "type": e.type}
                for e in sorted(g.edges.values(), key=lambda e: e.src)
            ],
            "diagnostics": [
                {"kind": d.kind, "severity": d.severity, "class_name": d.class_name, "message": d.message}
                for d in result.diagnostics
            ],
        }
        text = json.dumps(payload, indent=2)
    else:
        lines = []
        lines.append("digraph pathfinder {")
        lines.append('  rankdir="BT";')
        lines.append('  node [shape="box"];')

        for node in g.nodes:
            label = node.label.replace('"', '\\"')
            style = ' style="bold"' if node.decl.exposed else ""
            lines.append(f'  "{node.id}" [label="{label}"{style}];')

        for e in sorted(g.edges.values(), key=lambda e: e.src):
            lines.append(f'  "{g.nodes[e.src].id}" -> "{g.nodes[e.dst].id}" [label="{e.type}"];')

        lines.append("}")
        text = "\n".join(lines)

    if out:
        out_path = Path(out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        console.print(f"[bold green]Wrote[/bold green] {fmt} graph to: {out_path}")
    else:
        print(text)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
