import asyncio
import json
import os
from collections.abc import Awaitable

from rich.console import Console

from domain_manager.exceptions import DomainManagerError, DomainOperationError
from domain_manager.manager import DomainManager

console = Console()


def _handle_error(error: DomainManagerError) -> None:
    if isinstance(error, DomainOperationError):
        console.print(f"\n[bold red]✗ Unable to {error.operation}[/bold red]")
        for name, domain_error in error.errors.items():
            console.print(f"  [cyan]{name}[/cyan]: {domain_error}", highlight=False)
    else:
        console.print(f"\n[bold red]✗ {error}[/bold red]", highlight=False)
    if os.getenv("DOMAIN_MANAGER_DEBUG", "0") == "1":
        raise error
    raise SystemExit(1) from None


def _run(operation: Awaitable[object], message: str) -> None:
    with console.status(message):
        try:
            asyncio.run(operation)
        except DomainManagerError as e:
            _handle_error(e)


def run_create_domains(manager: DomainManager) -> None:
    _run(manager.create_domains(), "Creating custom domains...")
    console.print("[bold green]✓[/bold green] Custom domains are in place")


def run_delete_domains(manager: DomainManager) -> None:
    _run(manager.delete_domains(), "Deleting custom domains...")
    console.print("[bold green]✓[/bold green] Custom domains deleted")


def run_setup_mappings(manager: DomainManager) -> None:
    _run(manager.setup_base_path_mappings(), "Setting up API mappings...")


def run_remove_mappings(manager: DomainManager) -> None:
    _run(manager.remove_base_path_mappings(), "Removing API mappings...")
    console.print("[bold green]✓[/bold green] API mappings removed")


def run_outputs(manager: DomainManager) -> None:
    _run(manager.create_or_get_domains_for_outputs(), "Resolving custom domains...")
    console.print_json(json.dumps(manager.deployment.template.get("Outputs", {})))


def run_summary(manager: DomainManager) -> None:
    _run(manager.domain_summaries(), "Fetching custom domains...")
