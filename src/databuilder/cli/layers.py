"""
databuilder layers - Show the layered builder order of a flow file.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from databuilder.core.flow_loader import load_flow
from databuilder.exceptions import ConfigurationError

console = Console()


def layers(
    flow_file: Path = typer.Argument(..., help="YAML flow file"),
) -> None:
    """
    Display each layer of a flow with what its builders consume and produce.
    """
    try:
        flow = load_flow(flow_file)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    graph = flow.execution_graph
    console.print(f"\n[bold blue]{flow.name}[/bold blue]")
    if flow.description:
        console.print(f"[dim]{flow.description}[/dim]")
    console.print(
        f"target: {flow.target_data or '-'}  looping: {flow.looping_enabled}  "
        f"transients: {', '.join(sorted(flow.transients)) or '-'}"
    )

    table = Table(title=f"Builders ({len(graph)})", show_header=True)
    table.add_column("Layer", style="yellow")
    table.add_column("Builder", style="cyan")
    table.add_column("Consumes", style="dim")
    table.add_column("Produces", style="green")
    for layer_num, layer in enumerate(graph.layers):
        for meta in layer:
            table.add_row(str(layer_num), meta.name, ", ".join(sorted(meta.consumes)) or "-", meta.produces or "-")
    console.print(table)
