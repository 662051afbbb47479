# ABOUTME: aws-federation - temporary AWS credentials from SAML and OIDC identity providers
# ABOUTME: Main package exposing the client factory and configuration resolver

"""aws-federation - Federated AWS credential acquisition."""

from .clients import AssumeRoleClient, AwsClient, SamlRoleClient, SessionTokenClient, WebRoleClient
from .config import AwsConfig, AwsCredentials, ConfigResolver
from .credentials import Credentials
from .errors import FederationError
from .factory import ClientFactory, Options

__version__ = "1.0.0"
__all__ = [
    "AssumeRoleClient",
    "AwsClient",
    "AwsConfig",
    "AwsCredentials",
    "ClientFactory",
    "ConfigResolver",
    "Credentials",
    "FederationError",
    "Options",
    "SamlRoleClient",
    "SessionTokenClient",
    "WebRoleClient",
]
