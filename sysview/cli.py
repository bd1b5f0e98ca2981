import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import jmespath
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.traceback import install

from .config import OUTPUT_FORMATS, load_config, update_config
from .converter import make_edge_ids, create_diagram_from_workspace
from .decorators import handle_view_errors
from .model import ModelStore
from .views.classifier import default_filters, suggest_view_type
from .views.dsl import ExposeRule, describe_filter, parse_expose
from .views.expose import ExposeResolver
from .views.resolver import ResolvedView
from .views.service import ViewCatalog
from .workspace import build_model_store, load_workspace

# Initialize Rich Traceback for better error messages
install(show_locals=False)

console = Console()

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)]
)
logger = logging.getLogger(__name__)

app = typer.Typer()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose mode"),
):
    """
    sysview - resolve SysML v2 views into diagrams.

    Select elements with expose rules, narrow them with filters and
    project the result into nodes and edges for a diagram renderer.
    """
    if verbose or load_config().cli.verbose:
        logging.getLogger("sysview").setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        console.print("[bold green]Verbose mode enabled.[/bold green]")


@app.command()
def about():
    """Display information about sysview."""
    console.print("[bold cyan]sysview - SysML v2 view resolution[/bold cyan]")
    console.print("")
    console.print("[bold]Commands:[/bold]")
    console.print("  sysview convert <workspace>                  Whole workspace as diagram JSON")
    console.print("  sysview expose <workspace> <target>          Show what an expose rule selects")
    console.print("  sysview views <views.yaml>                   List view definitions and usages")
    console.print("  sysview resolve <workspace> <views> <name>   Resolve a view")
    console.print("  sysview suggest <workspace>                  Suggest a view category")
    console.print("  sysview config                               Show or change configuration")
    console.print("")
    console.print("Workspace files are JSON or YAML with 'symbols' and 'relationships' lists.")


def _print_json(data: Any, query: Optional[str] = None) -> None:
    if query:
        data = jmespath.search(query, data)
    console.print_json(json.dumps(data, default=str))


def _store_for(workspace_path: Path):
    config = load_config()
    workspace = load_workspace(workspace_path)
    return build_model_store(workspace, edge_ids=make_edge_ids(config.projection.edge_ids))


@app.command()
@handle_view_errors
def convert(
    workspace_path: Path = typer.Argument(..., help="Workspace file (JSON or YAML)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write diagram JSON to this file"),
    edge_ids: Optional[str] = typer.Option(None, "--edge-ids", help="Edge id strategy: deterministic or sequential"),
):
    """
    Convert a whole workspace into diagram JSON.

    Examples:
        sysview convert model.json
        sysview convert model.yaml -o diagram.json --edge-ids sequential
    """
    config = load_config()
    workspace = load_workspace(workspace_path)
    diagram = create_diagram_from_workspace(
        workspace,
        edge_ids=make_edge_ids(edge_ids or config.projection.edge_ids),
        spacing=config.projection.placeholder_spacing,
    )

    if output:
        with open(output, 'w', encoding='utf-8') as f:
            json.dump(diagram.to_dict(), f, indent=2)
        console.print(
            f"[green]✓ Wrote {len(diagram.nodes)} nodes and {len(diagram.edges)} edges to {output}[/green]"
        )
    else:
        _print_json(diagram.to_dict())


@app.command()
@handle_view_errors
def expose(
    workspace_path: Path = typer.Argument(..., help="Workspace file (JSON or YAML)"),
    target: str = typer.Argument(..., help="Element or namespace, e.g. Vehicle::engine or Vehicle::*"),
    all_members: bool = typer.Option(False, "--all-members", "-a", help="Include members of the target"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Include nested members"),
):
    """
    Show the elements an expose rule selects.

    Examples:
        sysview expose model.json Vehicle::engine
        sysview expose model.json Vehicle -a -r
        sysview expose model.json 'Vehicle::**'
    """
    store = _store_for(workspace_path)

    rule = parse_expose(target)
    if all_members or recursive:
        rule = ExposeRule(
            target=rule.target,
            all_members=rule.all_members or all_members,
            recursive=rule.recursive or recursive,
        )

    elements = ExposeResolver(store).resolve([rule])

    table = Table(title=f"Exposed by {rule.id} ({len(elements)})")
    table.add_column("Qualified name", style="cyan")
    table.add_column("Metaclass", style="magenta")
    for element in elements:
        table.add_row(element.qualified_name, element.metaclass)
    console.print(table)


@app.command()
@handle_view_errors
def views(
    views_path: Path = typer.Argument(..., help="Views file (YAML)"),
):
    """List the view definitions and usages of a views file."""
    catalog = ViewCatalog(ModelStore())
    catalog.load_file(views_path)

    table = Table(title=f"Views in {views_path.name}")
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("Details", style="dim")

    for info in catalog.list():
        if info['kind'] == 'definition':
            details = f"{info['view_type']}, {info['exposes']} exposes, {info['filters']} filters"
        else:
            overrides = ", ".join(info['overrides']) or "none"
            details = f"of {info['definition']}, overrides: {overrides}"
        table.add_row(info['name'], info['kind'], details)

    console.print(table)


def _print_resolved(resolved: ResolvedView) -> None:
    console.print(
        f"[bold cyan]{resolved.view.name}[/bold cyan] "
        f"({resolved.definition.view_type.value}, definition {resolved.definition.name})"
    )
    console.print(f"Exposed: {resolved.exposed_count}  Shown: {resolved.filtered_count}")

    nodes = Table(title="Nodes")
    nodes.add_column("Id", style="cyan")
    nodes.add_column("Type", style="magenta")
    nodes.add_column("Qualified name")
    for node in resolved.nodes:
        nodes.add_row(node.id, node.type, str(node.data.get('qualified_name', '')))
    console.print(nodes)

    if resolved.edges:
        edges = Table(title="Edges")
        edges.add_column("Type", style="magenta")
        edges.add_column("Source")
        edges.add_column("Target")
        for edge in resolved.edges:
            edges.add_row(edge.type or '', edge.source, edge.target)
        console.print(edges)


@app.command()
@handle_view_errors
def resolve(
    workspace_path: Path = typer.Argument(..., help="Workspace file (JSON or YAML)"),
    views_path: Path = typer.Argument(..., help="Views file (YAML)"),
    name: str = typer.Argument(..., help="View usage or definition name"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: table or json"),
    query: Optional[str] = typer.Option(None, "--query", "-q", help="JMESPath expression applied to the JSON output"),
):
    """
    Resolve a view against a workspace.

    Examples:
        sysview resolve model.json views.yaml vehicleParts
        sysview resolve model.json views.yaml vehicleParts -f json
        sysview resolve model.json views.yaml vehicleParts -q 'nodes[].id'
    """
    output_format = output_format or load_config().cli.output_format
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown format '{output_format}', expected one of {list(OUTPUT_FORMATS)}")

    catalog = ViewCatalog(_store_for(workspace_path))
    catalog.load_file(views_path)
    resolved = catalog.resolve(name)

    if query or output_format == "json":
        _print_json(resolved.to_dict(), query)
    else:
        _print_resolved(resolved)


@app.command()
@handle_view_errors
def suggest(
    workspace_path: Path = typer.Argument(..., help="Workspace file (JSON or YAML)"),
    targets: Optional[List[str]] = typer.Option(None, "--target", "-t", help="Expose target (repeatable); default is the whole model"),
):
    """
    Suggest a view category for a workspace or part of it.

    Examples:
        sysview suggest model.json
        sysview suggest model.json -t 'Vehicle::**' -t Controller
    """
    store = _store_for(workspace_path)

    if targets:
        elements = ExposeResolver(store).resolve([parse_expose(t) for t in targets])
    else:
        elements = list(store)

    view_type = suggest_view_type(elements)
    console.print(f"Suggested view: [bold cyan]{view_type.value}[/bold cyan] ({len(elements)} elements)")

    filters = default_filters(view_type)
    if filters:
        console.print("Default filters:")
        for expr in filters:
            console.print(f"  {describe_filter(expr)}")
    else:
        console.print("[dim]No default filters[/dim]")


@app.command()
@handle_view_errors
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    node_spacing: Optional[int] = typer.Option(None, "--node-spacing", help="Layout node spacing"),
    rank_spacing: Optional[int] = typer.Option(None, "--rank-spacing", help="Layout rank spacing"),
    direction: Optional[str] = typer.Option(None, "--direction", help="Layout direction: TB, BT, LR, RL"),
    placeholder_spacing: Optional[int] = typer.Option(None, "--placeholder-spacing", help="Spacing of placeholder positions"),
    edge_ids: Optional[str] = typer.Option(None, "--edge-ids", help="Edge id strategy: deterministic or sequential"),
    output_format: Optional[str] = typer.Option(None, "--output-format", help="Default output: table or json"),
):
    """
    Show or change configuration.

    Examples:
        sysview config --show
        sysview config --edge-ids sequential --output-format json
    """
    changes = dict(
        node_spacing=node_spacing,
        rank_spacing=rank_spacing,
        layout_direction=direction,
        placeholder_spacing=placeholder_spacing,
        edge_ids=edge_ids,
        output_format=output_format,
    )

    if any(value is not None for value in changes.values()):
        current = update_config(**changes)
        console.print("[green]✓ Configuration updated[/green]")
    else:
        current = load_config()
        show = True

    if show:
        _print_json(current.to_dict())


if __name__ == "__main__":
    app()
