# ABOUTME: Credentials command printing temporary AWS credentials
# ABOUTME: Output is credential_process JSON, or shell export lines with --env

"""Credentials command - Print temporary credentials for a profile."""

import json

from cleo.commands.command import Command
from cleo.helpers import option
from rich.console import Console

from ...cache import CookieStore
from ...errors import FederationError
from ..utils.client import build_client, profile_option


class CredentialsCommand(Command):
    name = "credentials"
    description = "Print temporary AWS credentials for a profile"

    options = [
        profile_option(),
        option("env", "e", description="Print shell export statements instead of JSON", flag=True),
        option("no-cache", description="Ignore and replace cached credentials", flag=True),
    ]

    def handle(self) -> int:
        """Execute the credentials command."""
        # stdout carries the credentials, everything else goes to stderr
        console = Console(stderr=True)

        try:
            with CookieStore() as store:
                client = build_client(self, cookie_store=store)
                if self.option("no-cache"):
                    client.clear_cache()
                creds = client.credentials()
        except FederationError as e:
            console.print(f"[red]Error: {e.message}[/red]")
            return 1

        if self.option("env"):
            for key, value in creds.to_env().items():
                self.line(f"export {key}='{value}'")
        else:
            self.line(json.dumps(creds.to_process_output(), indent=2))
        return 0
