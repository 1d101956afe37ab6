"""Config command for viewing and managing netresim configuration."""

import typer

from ..app import app, console, get_json_mode
from ..utils import Output
from ...config import CONFIG_FILE, LOG_LEVELS, get_config, reset_config

VALID_KEYS = {
    "log_level",
    "run.ncores",
    "run.seed",
}


@app.command("config")
def config_command(
    action: str = typer.Argument(..., help="Action: show, set, reset"),
    key: str | None = typer.Argument(None, help="Config key (e.g. run.ncores)"),
    value: str | None = typer.Argument(None, help="Value to set"),
):
    """View or modify netresim configuration.

    Examples:
        netresim config show
        netresim config set run.ncores 4
        netresim config set log_level INFO
        netresim config reset
    """
    if action == "show":
        _show_config()
    elif action == "set":
        if not key or value is None:
            console.print("[red]Usage:[/red] netresim config set <key> <value>")
            console.print()
            console.print("Available keys:")
            for k in sorted(VALID_KEYS):
                console.print(f"  {k}")
            raise typer.Exit(1)
        _set_config(key, value)
    elif action == "reset":
        _reset_config()
    else:
        console.print(f"[red]Unknown action:[/red] {action}")
        console.print("Valid actions: show, set, reset")
        raise typer.Exit(1)


def _show_config():
    """Display current resolved configuration."""
    config = get_config()

    if get_json_mode():
        out = Output(console=console, json_mode=True)
        out.set_data("config", config.to_dict())
        out.set_data("config_file", str(CONFIG_FILE))
        raise typer.Exit(out.finish())

    console.print()
    console.print("[bold]netresim Configuration[/bold]")
    console.print("─" * 40)
    console.print(f"  log_level = {config.log_level}")
    console.print()
    console.print("[bold cyan]Run defaults[/bold cyan]")
    console.print(f"  ncores = {config.run.ncores}")
    console.print(f"  seed   = {config.run.seed if config.run.seed is not None else '[dim](random)[/dim]'}")
    console.print()
    if CONFIG_FILE.exists():
        console.print(f"Config file: {CONFIG_FILE}")
    else:
        console.print(f"Config file: [dim]not created yet[/dim] ({CONFIG_FILE})")
    console.print()


def _set_config(key: str, value: str):
    """Set a config value and save."""
    if key not in VALID_KEYS:
        console.print(f"[red]Unknown key:[/red] {key}")
        console.print()
        console.print("Available keys:")
        for k in sorted(VALID_KEYS):
            console.print(f"  {k}")
        raise typer.Exit(1)

    config = get_config()

    if key == "log_level":
        if value.upper() not in LOG_LEVELS:
            console.print(f"[red]Invalid log level:[/red] {value} (use {', '.join(LOG_LEVELS)})")
            raise typer.Exit(1)
        config.log_level = value.upper()
    else:
        field_name = key.split(".", 1)[1]
        try:
            parsed = int(value)
        except ValueError:
            console.print(f"[red]Invalid value for {key}:[/red] {value} (must be integer)")
            raise typer.Exit(1)
        if field_name == "ncores" and parsed < 1:
            console.print("[red]run.ncores must be >= 1[/red]")
            raise typer.Exit(1)
        setattr(config.run, field_name, parsed)

    config.save()
    reset_config()
    console.print(f"[green]✓[/green] Set {key} = {value}")


def _reset_config():
    """Delete the config file, restoring defaults."""
    if CONFIG_FILE.exists():
        CONFIG_FILE.unlink()
        console.print(f"[green]✓[/green] Removed {CONFIG_FILE}")
    else:
        console.print("[dim]No config file to remove[/dim]")
    reset_config()
