# devdrive/cli.py
"""
devdrive - provision a dev drive on a Windows CI runner.
"""
import logging
import re
import sys
from typing import Optional

import click

from devdrive import __version__
from devdrive.core.config import ConfigManager
from devdrive.core.environment import GitHubEnvFile, StreamSink, derive_environment
from devdrive.core.exceptions import ConfigError, DevDriveError, handle_devdrive_error
from devdrive.core.powershell import PowerShell
from devdrive.core.provisioner import provision as provision_drive
from devdrive.core.volume import DEV_DRIVE_FILESYSTEM, DEV_DRIVE_PATH, DEV_DRIVE_SIZE
from devdrive.ui.console import ConsoleUI
from devdrive.utils.logging_setup import configure_logging, level_from_name
from devdrive.utils.platform import ensure_supported_platform, running_in_github_actions

ui = ConsoleUI()
logger = logging.getLogger(__name__)


def fail(error: DevDriveError) -> None:
    """Report an error and exit non-zero."""
    ui.print_error(handle_devdrive_error(error))
    if running_in_github_actions():
        # Workflow command; must go to stdout on a single line
        message = str(error).replace("\r", "").replace("\n", "%0A")
        click.echo(f"::error::{message}")
    sys.exit(1)


def make_sink(env_file: Optional[str]):
    if env_file == "-":
        return StreamSink(click.get_text_stream("stdout"))
    if not env_file:
        raise ConfigError(
            "No environment file to export to: set GITHUB_ENV or pass --env-file"
        )
    return GitHubEnvFile(env_file)


@click.group()
@click.version_option(version=__version__)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--config-file', type=click.Path(dir_okay=False),
              help='Path to YAML configuration file')
@click.pass_context
def cli(ctx, debug, config_file):
    """devdrive - provision a dev drive for build caches"""
    manager = ConfigManager(config_file=config_file)
    try:
        manager.load()
    except DevDriveError as e:
        fail(e)

    configure_logging(
        level_from_name(manager.get("logging.level", "INFO"), debug),
        log_file=manager.get("logging.file")
    )

    if not manager.validate():
        fail(ConfigError("Configuration validation failed"))

    ctx.ensure_object(dict)
    ctx.obj['DEBUG'] = debug
    ctx.obj['CONFIG'] = manager
    logger.debug("Debug mode enabled")


@cli.command()
@click.option('--env-file',
              help="Environment file to append to ('-' for stdout); defaults to GITHUB_ENV")
@click.option('--timeout', type=click.FloatRange(min=0, min_open=True),
              help='Timeout in seconds for each provisioning step')
@click.pass_context
def provision(ctx, env_file: Optional[str], timeout: Optional[float]):
    """Create, format and export the dev drive"""
    manager = ctx.obj['CONFIG']
    manager.cli_args.update({
        "environment.file": env_file,
        "powershell.step_timeout": timeout
    })
    try:
        manager.load()
        if not manager.validate():
            raise ConfigError("Configuration validation failed")
        ensure_supported_platform()
        sink = make_sink(manager.get("environment.file"))
        runner = PowerShell(
            executable=manager.get("powershell.executable"),
            timeout=float(manager.get("powershell.step_timeout"))
        )
        result = provision_drive(
            DEV_DRIVE_SIZE,
            DEV_DRIVE_PATH,
            DEV_DRIVE_FILESYSTEM,
            sink,
            runner=runner
        )
    except DevDriveError as e:
        if ctx.obj['DEBUG']:
            logger.exception("Provisioning failed")
        fail(e)

    ui.display_result(result)


@cli.command()
@click.argument('drive')
def env(drive: str):
    """Print the assignments exported for DRIVE (e.g. E:)"""
    match = re.fullmatch(r"([A-Za-z]):?", drive.rstrip("/\\"))
    if not match:
        raise click.BadParameter("expected a drive letter such as E:", param_hint="DRIVE")
    try:
        environment = derive_environment(f"{match.group(1).upper()}:")
    except DevDriveError as e:
        fail(e)

    for key, value in environment.items():
        click.echo(f"{key}={value}")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
