# ABOUTME: CLI module for aws-federation
# ABOUTME: Provides the command-line interface printing credentials and identity details

"""Command-line interface for aws-federation."""

from cleo.application import Application

from .. import __version__
from .commands.clear_cache import ClearCacheCommand
from .commands.credentials import CredentialsCommand
from .commands.identity import IdentityCommand
from .commands.password import PasswordCommand
from .commands.roles import RolesCommand


def create_application() -> Application:
    """Create the CLI application."""
    application = Application("aws-federation", __version__)

    application.add(CredentialsCommand())
    application.add(IdentityCommand())
    application.add(RolesCommand())
    application.add(ClearCacheCommand())
    application.add(PasswordCommand())

    return application


def main():
    """Main entry point for the CLI."""
    application = create_application()
    application.run()


if __name__ == "__main__":
    main()
