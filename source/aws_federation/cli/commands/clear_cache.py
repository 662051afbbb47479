# ABOUTME: Clear-cache command removing cached credentials for a profile
# ABOUTME: Only the cache of the client resolved for the profile is removed

"""Clear-cache command - Remove cached credentials."""

from cleo.commands.command import Command
from rich.console import Console

from ...errors import FederationError
from ..utils.client import build_client, profile_option


class ClearCacheCommand(Command):
    name = "clear-cache"
    description = "Remove cached credentials for a profile"

    options = [profile_option()]

    def handle(self) -> int:
        """Execute the clear-cache command."""
        console = Console()

        try:
            build_client(self).clear_cache()
        except FederationError as e:
            console.print(f"[red]Error: {e.message}[/red]")
            return 1

        console.print("[green]✓ Cached credentials removed[/green]")
        return 0
