# ABOUTME: OAuth2/OIDC identity provider client using authorization code with PKCE
# ABOUTME: Produces the identity token used for AssumeRoleWithWebIdentity

from pathlib import Path

from ..context import Context
from ..errors import AssertionParseError, ConfigurationError, ProtocolError
from ..identity import Identity
from ..tokens import OidcIdentityToken
from .base import BaseClient, code_challenge, new_code_verifier


class OidcClient(BaseClient):
    """Client for an IdP issuing OIDC identity tokens."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.token: OidcIdentityToken | None = None

    def _held_token_valid(self) -> bool:
        if not self.token:
            return False
        try:
            return not self.token.is_expired()
        except AssertionParseError as e:
            self.logger.debug(f"discarding unreadable identity token: {e}")
            return False

    def identity_token(self, ctx: Context | None = None) -> OidcIdentityToken:
        """Return a valid identity token, running the authorization code flow when needed."""
        if self.config.web_identity_token_file:
            try:
                value = Path(self.config.web_identity_token_file).expanduser().read_text().strip()
            except OSError as e:
                raise ConfigurationError(f"unable to read web identity token file: {e}") from e
            self.token = OidcIdentityToken(value)
            return self.token

        if self._held_token_valid():
            return self.token

        if self.vendor.basic_auth:
            self.gather_credentials()

        verifier = new_code_verifier()
        params = self.pkce_authz_request(code_challenge(verifier))

        result = self.oauth_authorize(
            self.vendor.authorize_url(self.auth_url), params, self.vendor.follow_redirect, ctx=ctx
        )
        if result.get("state") != params["state"]:
            raise ProtocolError("oAuth authorize error: state mismatch")

        code = result.get("code")
        if not code:
            raise ProtocolError("oAuth authorize error: no authorization code returned")

        token = self.oauth_token(self.vendor.token_url(self.auth_url), code, verifier, ctx=ctx)
        value = token.id_token or token.access_token
        if not value:
            raise ProtocolError("oAuth token response has no identity or access token")

        self.token = OidcIdentityToken(value)
        return self.token

    def identity(self) -> Identity:
        if self.token and not self.config.username:
            try:
                return Identity(username=self.token.username(), provider=self.vendor.identity_provider)
            except AssertionParseError:
                pass
        return super().identity(self.vendor.identity_provider)
