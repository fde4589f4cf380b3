"""
ToolHost CLI - MCP stdio server and local tool inspection.

Run `toolhost` (or `toolhost serve`) to serve tools over stdin/stdout.
Standard output belongs to the protocol; everything else goes to stderr.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from toolhost import __version__
from toolhost.validation.config import Config, ConfigError, ToolHostConfig

console = Console()
err_console = Console(stderr=True)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(level: str) -> None:
    """Send all diagnostics to stderr through rich."""
    handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=True)
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


def load_config(config_path: Optional[Path], log_level: Optional[str]) -> ToolHostConfig:
    """Load and validate configuration, exiting with status 1 on failure."""
    try:
        config = Config.load(config_path).merged
    except ConfigError as e:
        setup_logging(log_level or "WARNING")
        err_console.print(f"[red]Configuration error: {e}[/red]")
        sys.exit(1)

    setup_logging(log_level or config.logging.level)
    return config


config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: nearest .toolhost/config.yaml)",
)
log_level_option = click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Diagnostic log level (stderr)",
)


@click.group(invoke_without_command=True)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """
    ToolHost - MCP server for automation tools.

    Run without arguments to serve over stdio.

    \b
    Examples:
        toolhost                          # Serve with the nearest config
        toolhost serve -c ops.yaml        # Serve with an explicit config
        toolhost tools                    # List registered tools
        toolhost call Echo '{"Msg":"hi"}' # Run one tool locally
    """
    if version:
        console.print(f"ToolHost v{__version__}")
        return
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


@cli.command()
@config_option
@log_level_option
def serve(config_path: Optional[Path] = None, log_level: Optional[str] = None) -> None:
    """Serve tools over MCP on stdin/stdout until end of input."""
    from toolhost.mcp.server import MCPServer

    config = load_config(config_path, log_level)
    server = MCPServer.from_config(config)
    sys.exit(server.serve())


@cli.command()
@config_option
@log_level_option
def tools(config_path: Optional[Path], log_level: Optional[str]) -> None:
    """List the tools that would be served."""
    from toolhost.mcp.server import build_index

    config = load_config(config_path, log_level)
    index = build_index(config)

    if not index:
        console.print("[dim]No tools registered. Check registry.modules in config.yaml[/dim]")
        return

    table = Table(title=f"Available tools ({len(index)})")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Parameters")
    table.add_column("Description")
    for descriptor in index.descriptors():
        params = ", ".join(
            f"{name}: {schema.type}" + ("*" if name in descriptor.required else "")
            for name, schema in descriptor.parameters.items()
        )
        table.add_row(descriptor.name, params or "[dim](none)[/dim]", descriptor.description)
    console.print(table)


@cli.command()
@click.argument("name")
@click.argument("arguments", required=False, default="{}")
@config_option
@log_level_option
def call(name: str, arguments: str, config_path: Optional[Path], log_level: Optional[str]) -> None:
    """Invoke tool NAME once with a JSON object of ARGUMENTS."""
    from toolhost.mcp.executor import ToolExecutor
    from toolhost.mcp.marshal import InvalidArguments, marshal_arguments
    from toolhost.mcp.server import build_index
    from toolhost.tools.base import ToolContext

    config = load_config(config_path, log_level)
    index = build_index(config)

    descriptor = index.get(name)
    if descriptor is None:
        err_console.print(f"[red]Unknown tool: {name}[/red]")
        sys.exit(2)

    try:
        native = marshal_arguments(json.loads(arguments))
    except (json.JSONDecodeError, InvalidArguments) as e:
        err_console.print(f"[red]Invalid arguments: {e}[/red]")
        sys.exit(2)

    executor = ToolExecutor(
        ToolContext(
            server_name=config.server.name,
            server_version=config.server.version,
            settings=config.settings,
        )
    )
    result = executor.invoke(descriptor, native)
    text = "\n".join(part.text for part in result.content)
    if result.is_error:
        err_console.print(f"[red]{text}[/red]")
        sys.exit(1)
    click.echo(text)


@cli.command()
@click.option("--global", "global_", is_flag=True, help="Write ~/.toolhost/config.yaml")
def init(global_: bool) -> None:
    """Write a default configuration file."""
    path = Config.create_default(global_=global_)
    console.print(f"[green]Config at {path}[/green]")


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
