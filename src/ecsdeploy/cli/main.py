"""Command-line entry point for ecsdeploy."""

from __future__ import annotations

import click

from ecsdeploy import __version__
from ecsdeploy.cli.commands.deploy import deploy
from ecsdeploy.config.loader import DEFAULT_CONFIG_FILE


@click.group(name="ecsdeploy")
@click.version_option(version=__version__, prog_name="ecsdeploy")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Path to the deploy configuration file",
)
@click.option(
    "--envfile",
    type=click.Path(dir_okay=False),
    default=None,
    help="Load environment variables from a .env file before reading config",
)
@click.pass_context
def main(ctx: click.Context, config_path: str, envfile: str | None) -> None:
    """Deploy Amazon ECS services.

    Example:

        ecsdeploy deploy --tasks 3

        ecsdeploy --config prod.yml deploy --latest-task-definition --dry-run
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["envfile"] = envfile


main.add_command(deploy)


if __name__ == "__main__":
    main()
