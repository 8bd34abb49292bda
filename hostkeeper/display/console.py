"""Terminal rendering of the host registry."""

from __future__ import annotations

from typing import Iterable, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from hostkeeper.constants import FRAGMENT_TOKEN_USERNAME
from hostkeeper.registry.models import Host


def hosts_table(hosts: Iterable[Host], active: Optional[str]) -> Table:
    """Build a table of *hosts* with the active one marked."""
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("", width=1)
    table.add_column("Title", style="cyan")
    table.add_column("URL")
    table.add_column("Auth", style="dim")

    for host in hosts:
        marker = Text("●", style="bold bright_green") if host.url == active else Text("")
        if host.username is None:
            auth = ""
        elif host.username == FRAGMENT_TOKEN_USERNAME:
            auth = "token"
        else:
            auth = f"basic ({host.username})"
        table.add_row(marker, host.title, host.url, auth)
    return table


def print_hosts(hosts: Iterable[Host], active: Optional[str], console: Optional[Console] = None) -> None:
    console = console or Console()
    hosts = list(hosts)
    if not hosts:
        console.print("[dim]No hosts registered.[/dim]")
        return
    console.print(hosts_table(hosts, active))
