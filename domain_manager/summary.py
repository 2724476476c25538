from collections.abc import Iterable

from rich.console import Console

from domain_manager.constants import PLUGIN_NAME
from domain_manager.domain import Domain


def print_domain_summaries(domains: Iterable[Domain], console: Console) -> None:
    existing = [domain for domain in domains if domain.domain_info is not None]
    if not existing:
        return

    console.print(f"\n[bold]{PLUGIN_NAME} Summary[/bold]")
    for domain in existing:
        console.print("[bold]Distribution Domain Name[/bold]")
        console.print(f"  Domain Name: [cyan]{domain.name}[/cyan]", highlight=False)
        console.print(
            f"  Target Domain: [cyan]{domain.domain_info.domain_name}[/cyan]", highlight=False
        )
        console.print(
            f"  Hosted Zone Id: [cyan]{domain.domain_info.hosted_zone_id}[/cyan]",
            highlight=False,
        )
