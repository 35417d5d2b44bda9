from typing import Optional

import click
from dotenv import load_dotenv, find_dotenv

# Load environment variables immediately
load_dotenv(find_dotenv())

from rich import box
from rich.markup import escape
from rich.table import Table

from .config import get_config, setup_config
from .constants import CONFIG_FILENAME
from .logging import ConfigError, console, get_logger, set_log_level
from .cli.names import names
from .cli.new import new
from .cli.scout import scout
from .cli.translate import translate

logger = get_logger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug output on the console.")
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False), default=None,
              help="JSON configuration file to use instead of the environment.")
def cli(verbose: bool, config_file: Optional[str]):
    """Honyaku: translate Japanese web novels with consistent character names."""
    if config_file:
        try:
            setup_config(config_file=config_file)
        except ConfigError as e:
            raise click.ClickException(str(e))
    log_config = get_config().logging
    set_log_level(log_config.file_level, handler_type="file")
    set_log_level("DEBUG" if verbose else log_config.console_level, handler_type="console")


@cli.command("config-check")
@click.option("--save", is_flag=True, help=f"Write the active configuration to {CONFIG_FILENAME}.")
def config_check(save: bool):
    """Show the active configuration and whether a run can start."""
    config = get_config()

    table = Table(title="Honyaku Configuration", box=box.ROUNDED)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Translation API", config.api.base_url)
    table.add_row("Translation model", config.api.model)
    table.add_row("Translation API key", "set" if config.api.is_configured() else "[red]missing[/red]")
    if config.scout_api is not None:
        table.add_row("Scout API", config.scout_api.base_url)
        table.add_row("Scout model", config.scout_api.model)
        table.add_row("Scout API key", "set" if config.scout_api.is_configured() else "[red]missing[/red]")
    table.add_row("Chunk size (translation)", str(config.translation.chunk_size_chars))
    table.add_row("History length", str(config.translation.history_length))
    table.add_row("Chunk size (scout)", str(config.name_scout.chunk_size_chars))
    table.add_row("Output directory", str(config.output_dir()))
    table.add_row("Names directory", str(config.names_dir()))
    console.print(table)

    if save:
        config.save_to_file(CONFIG_FILENAME)
        console.print(f"[dim]Saved to {CONFIG_FILENAME}[/dim]")

    try:
        config.validate_for_run(require_scout_api=True)
    except ConfigError as e:
        console.print(f"[bold red]✗ {escape(str(e))}[/bold red]")
        raise click.exceptions.Exit(1)

    console.print("[green]✓ Configuration is ready[/green]")


cli.add_command(translate)
cli.add_command(scout)
cli.add_command(names)
cli.add_command(new)


if __name__ == "__main__":
    cli()
