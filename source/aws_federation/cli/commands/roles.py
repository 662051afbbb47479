# ABOUTME: Roles command listing the roles a SAML identity may assume
# ABOUTME: Role ARNs come from the Role attribute of the SAML assertion

"""Roles command - List assumable roles."""

from cleo.commands.command import Command
from rich import box
from rich.console import Console
from rich.table import Table

from ...cache import CookieStore
from ...errors import FederationError
from ...utils.arn import parse_arn
from ..utils.client import build_client, profile_option


class RolesCommand(Command):
    name = "roles"
    description = "List the roles available from the SAML identity provider of a profile"

    options = [profile_option()]

    def handle(self) -> int:
        """Execute the roles command."""
        console = Console()

        try:
            with CookieStore() as store:
                roles = build_client(self, cookie_store=store).roles()
        except FederationError as e:
            console.print(f"[red]Error: {e.message}[/red]")
            return 1

        if not roles:
            console.print("[yellow]No roles found.[/yellow]")
            return 0

        table = Table(box=box.SIMPLE)
        table.add_column("Account", style="cyan")
        table.add_column("Role ARN")
        for role_arn in sorted(roles):
            table.add_row(parse_arn(role_arn)["account"], role_arn)

        console.print(table)
        return 0
