"""agentboard CLI entrypoint."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from agentboard import __version__
from agentboard.cli_commands._runtime import BoardRuntime
from agentboard.config.loader import SettingsLoader
from agentboard.config.models import BoardSettings
from agentboard.errors import ConfigError


@click.group()
@click.version_option(version=__version__, prog_name="agentboard")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Settings YAML file.",
)
@click.option(
    "--store-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="JSON snapshot for the memory store, loaded before and saved after each command.",
)
@click.option("--instance", "instance_id", default=None, help="Instance id to scope writes to.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    store_file: str | None,
    instance_id: str | None,
    verbose: bool,
) -> None:
    """agentboard: a shared blackboard for cooperating agents."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    try:
        settings = SettingsLoader(Path(config_path)).load() if config_path else BoardSettings()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if store_file:
        if settings.store.backend != "memory":
            raise click.UsageError("--store-file requires the memory backend")
        settings.store.snapshot_path = store_file
    if instance_id:
        settings.instance_id = instance_id

    ctx.obj = BoardRuntime(settings)


# Register subcommands
from agentboard.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
