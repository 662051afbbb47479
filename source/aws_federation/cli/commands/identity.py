# ABOUTME: Identity command showing who the credentials of a profile belong to
# ABOUTME: Renders the identity record as a rich table

"""Identity command - Show the identity behind a profile."""

from cleo.commands.command import Command
from rich import box
from rich.console import Console
from rich.table import Table

from ...cache import CookieStore
from ...errors import FederationError
from ..utils.client import build_client, profile_option


class IdentityCommand(Command):
    name = "identity"
    description = "Show the identity used to obtain credentials for a profile"

    options = [profile_option()]

    def handle(self) -> int:
        """Execute the identity command."""
        console = Console()

        try:
            with CookieStore() as store:
                ident = build_client(self, cookie_store=store).identity()
        except FederationError as e:
            console.print(f"[red]Error: {e.message}[/red]")
            return 1

        table = Table(box=box.SIMPLE)
        table.add_column("Field", style="dim")
        table.add_column("Value")
        for key, value in ident.to_dict().items():
            if value:
                table.add_row(key, value)

        console.print(table)
        return 0
