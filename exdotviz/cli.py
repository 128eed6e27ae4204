"""Typer-based CLI for exdotviz."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__, config
from .analyzer import build_graphs
from .config_manager import AnalysisConfig, load_config, save_config
from .graph_export import export_dot, parse_prune
from .json_export import GRAPH_KEYS, encode, graphs_to_dict, read_graphs, records_to_dict
from .models import GraphSet
from .orchestrator import AnalysisOrchestrator
from .scanner import scan

console = Console()

app = typer.Typer(
    help="Module dependency and call graphs for Elixir projects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

FORMATS = ("json", "dot")

# Graph selection -> (file stem, JSON sections)
GRAPHS = {
    "modules": ("modules", ("modules", "module_edges")),
    "calls": ("calls", ("call_nodes", "call_edges")),
    "module_calls": ("module_calls", ("modules", "module_call_edges")),
    "both": ("graphs", GRAPH_KEYS),
}


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"exdotviz v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """exdotviz: static module and call graphs for Elixir sources."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _check_choices(format_: str, graph: str) -> None:
    if format_ not in FORMATS:
        raise typer.BadParameter(f"Unknown format '{format_}'. Use one of: {', '.join(FORMATS)}.")
    if graph not in GRAPHS:
        raise typer.BadParameter(f"Unknown graph '{graph}'. Use one of: {', '.join(GRAPHS)}.")


def _write_graphs(
    graphs: GraphSet,
    output_dir: Path,
    format_: str,
    graph: str,
    prune: list,
) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    stem, keys = GRAPHS[graph]
    target = output_dir / f"{stem}.{format_}"
    if format_ == "json":
        target.write_text(encode(graphs_to_dict(graphs, keys)), encoding="utf-8")
    else:
        export_dot(graphs, target, graph=graph, prune=prune)
    return target


@app.command("analyze")
def analyze_project(
    project_path: Path = typer.Argument(..., exists=True, help="Project directory or single source file."),
    format_: str = typer.Option("json", "--format", "-f", help="Output format: json or dot."),
    graph: str = typer.Option("both", "--graph", "-g", help="modules, calls, module_calls or both."),
    prune: Optional[str] = typer.Option(None, "--prune", help="Comma-separated module names to omit from DOT output."),
    internal_only: Optional[bool] = typer.Option(
        None, "--internal-only/--no-internal-only",
        help="Keep only modules defined in the scanned project (default on).",
    ),
    include_tests: Optional[bool] = typer.Option(None, "--include-tests/--no-include-tests", help="Also scan *_test.exs files."),
    lexical_aliases: Optional[bool] = typer.Option(
        None, "--lexical-aliases/--shared-aliases",
        help="Give each function body its own alias table.",
    ),
    nested_names: Optional[bool] = typer.Option(
        None, "--nested-names/--literal-names",
        help="Prefix nested module names with the enclosing module.",
    ),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", min=1, help="Worker threads for parsing."),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory for output files."),
    records: bool = typer.Option(False, "--records", help="Also write extracted module records to asts.json."),
):
    """Analyze a project and write graph files."""
    _check_choices(format_, graph)
    cfg = load_config(project_path).override(
        internal_only=internal_only,
        include_tests=include_tests,
        lexical_aliases=lexical_aliases,
        nested_names=nested_names,
        jobs=jobs,
    )
    prune_list = parse_prune(prune) if prune is not None else list(cfg.prune)
    out = output_dir or Path.cwd() / cfg.output_dir

    orchestrator = AnalysisOrchestrator(cfg)
    files = scan(project_path, include_tests=cfg.include_tests, exclude_dirs=cfg.exclude_dirs)
    module_records = orchestrator.extract_files(files)
    graphs = build_graphs(module_records, internal_only=cfg.internal_only)

    target = _write_graphs(graphs, out, format_, graph, prune_list)
    console.print(f"[green]✓[/green] Saved {target.name}")
    if records:
        out.joinpath("asts.json").write_text(encode(records_to_dict(module_records)), encoding="utf-8")
        console.print("[green]✓[/green] Saved asts.json")
    if orchestrator.skipped:
        console.print(f"[yellow]Skipped {len(orchestrator.skipped)} file(s) that could not be parsed.[/yellow]")
    console.print(f"\nOutput saved to: {out}")


@app.command("render")
def render(
    graphs_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="graphs.json written by 'analyze'."),
    graph: str = typer.Option("both", "--graph", "-g", help="modules, calls, module_calls or both."),
    prune: Optional[str] = typer.Option(None, "--prune", help="Comma-separated module names to omit."),
    output_dir: Path = typer.Option(Path(config.DEFAULT_OUTPUT_DIR), "--output-dir", "-o", help="Directory for output files."),
):
    """Render DOT from a previously saved JSON graph file."""
    _check_choices("dot", graph)
    try:
        graphs = read_graphs(graphs_file)
    except (ValueError, KeyError, TypeError) as exc:
        raise typer.BadParameter(f"{graphs_file} is not a graph file: {exc}")
    target = _write_graphs(graphs, output_dir, "dot", graph, parse_prune(prune))
    console.print(f"[green]✓[/green] Saved {target.name}")


def _display_path(file: str, root: Path) -> str:
    try:
        return str(Path(file).relative_to(root))
    except ValueError:
        return file


@app.command("summary")
def summary(
    project_path: Path = typer.Argument(..., exists=True, help="Project directory or single source file."),
    internal_only: Optional[bool] = typer.Option(None, "--internal-only/--no-internal-only"),
):
    """Print modules with their function and dependency counts."""
    cfg = load_config(project_path).override(internal_only=internal_only)
    graphs = AnalysisOrchestrator(cfg).analyze(project_path)

    if not graphs.modules:
        console.print("No modules found.")
        raise typer.Exit(code=0)

    outgoing = {}
    for edge in graphs.module_call_edges:
        outgoing[edge.src] = outgoing.get(edge.src, 0) + 1

    root = project_path if project_path.is_dir() else project_path.parent
    table = Table(title=f"Modules in {project_path}")
    table.add_column("Module", style="cyan", no_wrap=True)
    table.add_column("File", overflow="fold")
    table.add_column("Functions", justify="right")
    table.add_column("Calls out", justify="right")
    for module in graphs.modules:
        table.add_row(
            str(module.name),
            _display_path(module.file, root),
            str(len(module.functions)),
            str(outgoing.get(module.name, 0)),
        )
    console.print(table)
    stats = graphs.stats()
    console.print(
        f"Modules: {stats['modules']} | Module edges: {stats['module_edges']} | "
        f"Call edges: {stats['call_edges']}"
    )


@app.command("config")
def show_config(
    project_path: Optional[Path] = typer.Argument(None, help="Project whose .exdotviz.toml to include."),
    write: bool = typer.Option(False, "--write", help="Save the effective settings to the user config file."),
):
    """Show the effective configuration."""
    cfg: AnalysisConfig = load_config(project_path)
    table = Table(title="exdotviz configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in vars(cfg).items():
        table.add_row(key, str(value))
    console.print(table)
    if write:
        if not save_config(cfg):
            raise typer.BadParameter(f"Could not write {config.CONFIG_FILE}")
        console.print(f"[green]✓[/green] Saved {config.CONFIG_FILE}")


if __name__ == "__main__":
    app()
