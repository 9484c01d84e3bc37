"""`qo config` commands: inspect and edit config.toml."""

from __future__ import annotations

import typer

from . import config, config_manager

config_app = typer.Typer(
    help="⚙️  Configuration — index and match settings.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@config_app.command("show")
def show_config():
    """Show effective settings and where they come from."""
    settings = config_manager.load_settings()
    exists = config.CONFIG_FILE.exists()

    typer.echo(typer.style("Quick open configuration", bold=True))
    source = str(config.CONFIG_FILE) if exists else "(defaults, no config file)"
    typer.echo(f"  Config    {typer.style(source, dim=True)}")

    for section in config_manager.SECTIONS:
        typer.echo("")
        typer.echo(typer.style(f"  [{section}]", fg=typer.colors.CYAN, bold=True))
        for key, value in getattr(settings, section).model_dump().items():
            typer.echo(f"  {key:<22}{value}")


@config_app.command("set")
def set_value(
    key: str = typer.Argument(..., help="Dotted key, e.g. match.match_on or index.max_files."),
    value: str = typer.Argument(..., help="New value, parsed as a TOML literal when possible."),
):
    """Set one setting.

    Examples:
      qo config set match.match_on path
      qo config set index.vcs_markers '[".git", ".jj"]'
    """
    section, _, name = key.partition(".")
    if not name:
        raise typer.BadParameter("Key must look like <section>.<name>, e.g. match.filter")
    try:
        config_manager.save_setting(section, name, value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    typer.echo(f"Set {section}.{name} = {value}")


@config_app.command("reset")
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
):
    """Delete the config file and go back to defaults."""
    if not config.CONFIG_FILE.exists():
        typer.echo("No config file found. Nothing to reset.")
        raise typer.Exit(code=0)
    if not yes and not typer.confirm(f"Delete {config.CONFIG_FILE}?", default=False):
        raise typer.Exit(code=1)
    config_manager.reset_config()
    typer.echo(f"Deleted {config.CONFIG_FILE}")
