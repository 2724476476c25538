import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import click
from appdirs import user_log_dir
from rich.logging import RichHandler

from domain_manager.cli.commands import (
    console,
    run_create_domains,
    run_delete_domains,
    run_outputs,
    run_remove_mappings,
    run_setup_mappings,
    run_summary,
)
from domain_manager.cli.manifest import deployment_from_manifest, load_manifest
from domain_manager.exceptions import ConfigError
from domain_manager.manager import DomainManager

APP_NAME = "domain-manager"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
# one file per day, a week of history
LOG_BACKUP_DAYS = 7

package_logger = logging.getLogger("domain_manager")


def _setup_file_logging() -> Path:
    """Send every record of the package to the rotating log file and return its path."""
    log_path = Path(user_log_dir(APP_NAME)) / f"{APP_NAME}.log"
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(log_path),
        when="D",
        interval=1,
        backupCount=LOG_BACKUP_DAYS,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.setLevel(logging.DEBUG)
    package_logger.addHandler(handler)
    for noisy in ("botocore", "boto3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return log_path


log_file_path = _setup_file_logging()


def _attach_console_handler(verbose: int) -> None:
    console_handler = RichHandler(
        console=console,
        show_time=False,
        show_level=True,
        markup=False,
        tracebacks_suppress=[click],
        rich_tracebacks=True,
    )
    if verbose == 1:
        console_handler.setLevel(logging.INFO)
        console.print("[italic blue]Console verbosity: INFO[/]")
    else:
        console_handler.setLevel(logging.DEBUG)
        console.print("[italic green]Console verbosity: DEBUG[/]")
    console.print(f"[italic dim]Logs saved to: {log_file_path}[/]")
    package_logger.addHandler(console_handler)


@click.group()
@click.option(
    "--verbose", "-v", count=True, help="Increase verbosity. -v for INFO, -vv for DEBUG logs."
)
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON manifest with service, provider and custom sections.",
)
@click.option("--stage", default=None, help="Stage, overrides provider.stage.")
@click.option("--region", default=None, help="AWS region, overrides provider.region.")
@click.option("--profile", default=None, help="AWS profile, overrides provider.profile.")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: int,
    config_path: Path,
    stage: str | None,
    region: str | None,
    profile: str | None,
) -> None:
    """Manage API Gateway custom domains of a deployment."""
    if verbose > 0:
        _attach_console_handler(verbose)

    try:
        manifest = load_manifest(config_path)
        deployment = deployment_from_manifest(manifest, stage, region, profile)
    except ConfigError as e:
        raise click.ClickException(str(e)) from None
    ctx.obj = DomainManager(deployment, manifest.get("custom"), console=console)


@click.command("create-domain")
@click.pass_obj
def create_domain(manager: DomainManager) -> None:
    """Creates the custom domains and their DNS records."""
    run_create_domains(manager)


@click.command("delete-domain")
@click.pass_obj
def delete_domain(manager: DomainManager) -> None:
    """Deletes the custom domains and their DNS records."""
    run_delete_domains(manager)


@click.command("setup-mappings")
@click.pass_obj
def setup_mappings(manager: DomainManager) -> None:
    """Maps the deployed APIs to their custom domains."""
    run_setup_mappings(manager)


@click.command("remove-mappings")
@click.pass_obj
def remove_mappings(manager: DomainManager) -> None:
    """Removes the API mappings, and domains with autoDomain set."""
    run_remove_mappings(manager)


@click.command()
@click.pass_obj
def outputs(manager: DomainManager) -> None:
    """Prints the stack outputs for the custom domains as JSON."""
    run_outputs(manager)


@click.command()
@click.pass_obj
def summary(manager: DomainManager) -> None:
    """Shows target domain and hosted zone of every existing custom domain."""
    run_summary(manager)


cli.add_command(create_domain)
cli.add_command(delete_domain)
cli.add_command(setup_mappings)
cli.add_command(remove_mappings)
cli.add_command(outputs)
cli.add_command(summary)
