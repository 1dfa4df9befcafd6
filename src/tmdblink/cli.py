"""Command-line interface for tmdblink."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import LinkerConfig, create_sample_config, load_config
from .core.dispatcher import BatchSummary
from .core.orchestrator import run_batch
from .error_handling import ConfigurationError, TmdbLinkError, handle_error

console = Console()


def setup_logging(
    *,
    verbose: bool = False,
    config: LinkerConfig | None = None,
) -> None:
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    # Clean up existing handlers first to prevent resource leaks
    cleanup_logging()

    show_path = level == logging.DEBUG
    handlers: list[logging.Handler] = [
        RichHandler(console=console, rich_tracebacks=True, show_path=show_path),
    ]

    if config and config.log_dir:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = config.log_dir / "tmdblink.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            ),
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def cleanup_logging() -> None:
    """Clean up logging handlers to prevent ResourceWarnings."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            handler.close()
            root_logger.removeHandler(handler)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """tmdblink - link IMDb titles to TMDB movies as Turtle."""
    try:
        ctx.ensure_object(dict)
        loaded_config = load_config(config)
        ctx.obj["config"] = loaded_config
        ctx.obj["config_path"] = config
        ctx.obj["verbose"] = verbose

        setup_logging(verbose=verbose, config=loaded_config)
    except (OSError, ValueError) as e:
        config_error = ConfigurationError(
            f"Failed to load configuration: {e}",
            config_path=config,
        )
        console.print(f"[red]Configuration Error:[/red] {config_error}")
        sys.exit(1)


@cli.command()
@click.argument("token", required=False)
@click.option(
    "--input",
    "-i",
    "input_path",
    type=click.Path(path_type=Path),
    help="Turtle file to scan for imt:tt... identifiers",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(path_type=Path),
    help="Turtle file to create",
)
@click.option("--workers", "-w", type=int, help="Concurrent TMDB lookups")
@click.pass_context
def link(
    ctx: click.Context,
    token: str | None,
    input_path: Path | None,
    output_path: Path | None,
    workers: int | None,
) -> None:
    """Look up every IMDb id in the input on TMDB and write the matches."""
    config: LinkerConfig = ctx.obj["config"]

    if token is not None and not token.strip():
        ConfigurationError(
            "Please provide the TMDB API token as the first argument",
        ).display_to_user()
        sys.exit(1)

    overrides = {
        "tmdb_api_token": token,
        "input_path": input_path,
        "output_path": output_path,
        "max_workers": workers,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}

    try:
        config = LinkerConfig(**{**config.model_dump(), **overrides})
    except ValueError as e:
        ConfigurationError(
            f"Invalid settings: {e}",
            config_path=ctx.obj.get("config_path"),
        ).display_to_user()
        sys.exit(1)

    try:
        summary = run_batch(config)
    except TmdbLinkError as e:
        e.display_to_user()
        sys.exit(1)
    except OSError as e:
        handle_error(e)
        sys.exit(1)

    console.print(_summary_table(summary, config))


@cli.group("config")
def config_cmd() -> None:
    """Configuration management commands."""


@config_cmd.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config: LinkerConfig = ctx.obj["config"]

    table = Table()
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("Input File", str(config.input_path))
    table.add_row("Output File", str(config.output_path))
    table.add_row("Log Directory", str(config.log_dir or "Not configured"))
    table.add_row(
        "TMDB API Token",
        "***" if config.tmdb_api_token else "Not configured",
    )
    table.add_row("TMDB Base URL", config.tmdb_base_url)
    table.add_row("TMDB Language", config.tmdb_language or "Not configured")
    table.add_row("Request Timeout", f"{config.tmdb_request_timeout}s")
    table.add_row("Workers", str(config.max_workers))

    console.print(table)


@config_cmd.command("init")
@click.option(
    "--path",
    "-p",
    type=click.Path(path_type=Path),
    default=Path.home() / ".config" / "tmdblink" / "config.toml",
    help="Path for the configuration file",
)
def config_init(path: Path) -> None:
    """Create a sample configuration file."""
    try:
        create_sample_config(path)
        console.print(f"[green]Created sample configuration at {path}[/green]")
        console.print("Please edit the configuration file with your settings.")
    except OSError as e:
        console.print(f"[red]Error creating configuration: {e}[/red]")
        sys.exit(1)


def _summary_table(summary: BatchSummary, config: LinkerConfig) -> Table:
    table = Table(title="Batch Summary")
    table.add_column("Result")
    table.add_column("Count", justify="right")

    table.add_row("IMDb ids", str(summary.total))
    table.add_row("[green]Matched[/green]", str(summary.matched))
    table.add_row("[yellow]Failed[/yellow]", str(summary.failed))
    table.caption = f"Written to {config.output_path}"

    return table


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
