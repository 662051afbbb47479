# ABOUTME: Password command encoding an IdP password for the credentials file
# ABOUTME: The encoded value only decodes for the IdP URL it was encoded with

"""Password command - Encode an identity provider password."""

import questionary
from cleo.commands.command import Command
from cleo.helpers import option
from rich.console import Console

from ...config import CREDENTIALS_FILE
from ...password import PasswordEncoder
from ...utils.url_validation import is_http_url


class PasswordCommand(Command):
    name = "password"
    description = f"Encode an identity provider password for {CREDENTIALS_FILE}"

    options = [
        option("url", "u", description="SAML or web identity URL the password belongs to", flag=False),
    ]

    def handle(self) -> int:
        """Execute the password command."""
        console = Console(stderr=True)

        url = self.option("url") or questionary.text("Identity provider URL:").ask()
        if not url or not is_http_url(url):
            console.print(f"[red]Error: invalid identity provider URL '{url or ''}'[/red]")
            return 1

        password = questionary.password("Password:").ask()
        if not password:
            console.print("[yellow]No password entered.[/yellow]")
            return 1

        self.line(PasswordEncoder(url).encode(password))
        return 0
