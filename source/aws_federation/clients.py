# ABOUTME: Composed AWS clients pairing an identity source with an STS credential provider
# ABOUTME: SAML role, web identity role, assume role and session token variants share one contract

"""
AWS clients.

Every client answers identity(), roles(), credentials() and clear_cache(). IdP backed clients
check their credential cache before talking to the IdP, and always refresh the assertion or
token before a role assumption which the cache could not satisfy.
"""

import logging
from abc import ABC, abstractmethod

from .auth import OidcClient, SamlClient
from .context import Context
from .credentials import Credentials
from .errors import FederationError, UnsupportedOperationError
from .identity import PROVIDER_IAM, Identity, Roles
from .providers import AssumeRoleProvider, SamlRoleProvider, SessionTokenProvider, WebRoleProvider
from .tokens import OidcIdentityToken

logger = logging.getLogger(__name__)


class AwsClient(ABC):
    @abstractmethod
    def identity(self) -> Identity: ...

    @abstractmethod
    def roles(self) -> Roles: ...

    def credentials(self) -> Credentials:
        return self.credentials_with_context(None)

    @abstractmethod
    def credentials_with_context(self, ctx: Context | None) -> Credentials: ...

    @abstractmethod
    def clear_cache(self) -> None: ...


class AwsIdentityClient:
    """Identity of the IAM principal behind an STS client's credentials."""

    def __init__(self, sts):
        self.sts = sts
        self._identity: Identity | None = None

    def identity(self) -> Identity:
        if self._identity is None:
            res = self.sts.get_caller_identity()
            arn = res["Arn"]
            self._identity = Identity(
                username=arn.split("/")[-1],
                provider=PROVIDER_IAM,
                identity_type=arn.split(":")[-1].split("/")[0],
                account_id=res.get("Account", ""),
            )
        return self._identity

    def roles(self) -> Roles:
        raise UnsupportedOperationError("role listing is only available from a SAML identity provider")


class SessionTokenClient(AwsClient):
    """IAM credentials exchanged for (optionally MFA authenticated) session token credentials."""

    def __init__(self, sts, provider: SessionTokenProvider):
        self.sts = sts
        self.role_provider = provider
        self.ident = AwsIdentityClient(sts)

    def identity(self) -> Identity:
        return self.ident.identity()

    def roles(self) -> Roles:
        return self.ident.roles()

    def credentials_with_context(self, ctx: Context | None) -> Credentials:
        return self.role_provider.retrieve_with_context(ctx)

    def clear_cache(self) -> None:
        self.role_provider.clear_cache()


class AssumeRoleClient(AwsClient):
    """Assume role using whatever credentials the STS client was built with.

    `ident` answers identity() and roles(). In a role chain it is the upstream identity
    source, which is only read from, never refreshed or modified here. `upstream` is the
    federated client whose credentials sign the role assumption; it is asked for credentials
    before the role session name is derived, so a fresh SAML assertion can supply the name.
    """

    def __init__(self, sts, provider: AssumeRoleProvider, ident=None, upstream: AwsClient | None = None):
        self.sts = sts
        self.role_provider = provider
        self.ident = ident or AwsIdentityClient(sts)
        self.upstream = upstream

    def identity(self) -> Identity:
        return self.ident.identity()

    def roles(self) -> Roles:
        return self.ident.roles()

    def credentials_with_context(self, ctx: Context | None) -> Credentials:
        creds = self.role_provider.cached_credentials()
        if creds is not None:
            return creds

        if not self.role_provider.session_name:
            if self.upstream is not None:
                self.upstream.credentials_with_context(ctx)
            try:
                self.role_provider.session_name = self.identity().username
            except FederationError as e:
                logger.debug(f"unable to determine role session name from identity: {e}")

        return self.role_provider.retrieve_with_context(ctx)

    def clear_cache(self) -> None:
        self.role_provider.clear_cache()


class SamlRoleClient(AwsClient):
    """AssumeRoleWithSAML using an assertion from a SAML IdP."""

    def __init__(self, saml_client: SamlClient, provider: SamlRoleProvider):
        self.saml_client = saml_client
        self.role_provider = provider

    def identity(self) -> Identity:
        return self.saml_client.identity()

    def roles(self) -> Roles:
        return self.saml_client.roles()

    def credentials_with_context(self, ctx: Context | None) -> Credentials:
        creds = self.role_provider.cached_credentials()
        if creds is not None:
            return creds

        if ctx:
            ctx.check()
        self.role_provider.assertion = self.saml_client.saml_assertion()
        return self.role_provider.retrieve_with_context(ctx)

    def clear_cache(self) -> None:
        self.role_provider.clear_cache()


class WebRoleClient(AwsClient):
    """AssumeRoleWithWebIdentity using a token from an OIDC IdP."""

    def __init__(self, web_client: OidcClient, provider: WebRoleProvider):
        self.web_client = web_client
        self.role_provider = provider

    def identity(self) -> Identity:
        return self.web_client.identity()

    def roles(self) -> Roles:
        return self.web_client.roles()

    def fetch_token(self, ctx: Context | None = None) -> OidcIdentityToken:
        token = self.web_client.identity_token(ctx)
        self.role_provider.token = token
        return token

    def credentials_with_context(self, ctx: Context | None) -> Credentials:
        creds = self.role_provider.cached_credentials()
        if creds is not None:
            return creds

        self.fetch_token(ctx)
        return self.role_provider.retrieve_with_context(ctx)

    def clear_cache(self) -> None:
        self.role_provider.clear_cache()
