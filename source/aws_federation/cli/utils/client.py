# ABOUTME: Shared client construction for CLI commands
# ABOUTME: Resolves the profile, configures logging and builds the client through the factory

"""Client construction shared by the CLI commands."""

from cleo.helpers import option

from ...clients import AwsClient
from ...config import ConfigResolver
from ...factory import ClientFactory, Options
from ...log import configure_logging


def profile_option():
    return option(
        "profile", "p", description="AWS profile name or role ARN (default: $AWS_PROFILE or default)", flag=False
    )


def build_client(command, enable_cache: bool = True, cookie_store=None) -> AwsClient:
    """Build the client for the profile selected on the command line.

    Raises FederationError subclasses for anything wrong with the configuration.
    """
    logger = configure_logging(verbose=command.io.is_verbose())

    resolver = ConfigResolver()
    cfg = resolver.config(command.option("profile"))

    options = Options(logger=logger, enable_cache=enable_cache, cookie_store=cookie_store)
    return ClientFactory(resolver, options).get(cfg)
