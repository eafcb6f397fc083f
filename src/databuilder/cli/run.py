"""
databuilder run - Execute a flow file once.

Feeds ``--data name=value`` items into a fresh instance of the flow and
prints every item the run produced.
"""

from pathlib import Path

import typer
import yaml
from rich.console import Console
from rich.table import Table

from databuilder.config.loader import CONFIG_FILE_NAME, Config, load_config
from databuilder.core.api import create_executor
from databuilder.core.flow_loader import load_flow
from databuilder.exceptions import ConfigurationError, FrameworkError
from databuilder.model.data import Data
from databuilder.model.flow import DataFlowInstance
from databuilder.utils.logging import get_logger, setup_logging, setup_logging_from_config

logger = get_logger("databuilder.cli.run")

console = Console()


def parse_data_option(option: str) -> Data:
    """Parse ``name=value``; the value is read as a YAML scalar (numbers, booleans, lists...)."""
    name, sep, raw_value = option.partition("=")
    name = name.strip()
    if not sep or not name:
        raise typer.BadParameter(f"Expected name=value, got '{option}'")
    try:
        value = yaml.safe_load(raw_value) if raw_value else None
    except yaml.YAMLError:
        value = raw_value
    return Data(name=name, value=value)


def run(
    flow_file: Path = typer.Argument(..., help="YAML flow file to run"),
    data: list[str] = typer.Option([], "--data", "-D", help="Input item as name=value (repeatable)"),
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
) -> None:
    """
    Run a flow once with the given input data.
    """
    try:
        if (project_dir / CONFIG_FILE_NAME).is_file():
            config = load_config(project_dir, env=env)
        else:
            config = Config({})
        if config.logging:
            setup_logging_from_config(config.data, project_dir=project_dir)
        else:
            setup_logging(level="DEBUG" if verbose else "WARNING")

        flow = load_flow(flow_file)
        executor = create_executor(config)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    items = [parse_data_option(option) for option in data]
    instance = DataFlowInstance(data_flow=flow)

    try:
        response = executor.run(instance, *items)
    except FrameworkError as e:
        typer.echo(f"Error: {e}", err=True)
        if e.details:
            typer.echo(f"Details: {e.details}", err=True)
        raise typer.Exit(1) from e

    console.print(f"Flow '{flow.name}' produced {len(response)} item(s)", soft_wrap=True)
    table = Table(show_header=True)
    table.add_column("Item", style="cyan")
    table.add_column("Builder", style="green")
    table.add_column("Value", style="dim")
    for name in sorted(response.names()):
        item = response.responses[name]
        table.add_row(name, item.generated_by or "-", repr(item.value))
    console.print(table)

    if flow.target_data is not None and flow.target_data not in response:
        console.print(f"[yellow]Target '{flow.target_data}' was not produced[/yellow]", soft_wrap=True)
