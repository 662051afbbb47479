# ABOUTME: Shared identity provider primitives: SAML form retrieval and OAuth2 PKCE exchange
# ABOUTME: Also gathers missing username, password and MFA code through injected prompts

"""
Base identity provider client.

The SAML and OIDC clients are built on the primitives here. Nothing in this module retries;
transport failures are wrapped with the name of the step that failed and raised.
"""

import base64
import hashlib
import json
import logging
import random
import secrets
import time
from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlparse

from ..context import Context
from ..errors import (
    AssertionParseError,
    ConfigurationError,
    ProtocolError,
    RedirectError,
    TransportError,
    UnsupportedOperationError,
)
from ..identity import Identity, Roles
from ..log import redact
from ..prompts import CredentialInputProvider, MfaInputProvider, read_mfa_code, read_username_password
from ..tokens import SamlAssertion
from ..transport import HttpSession, check_response
from ..utils.url_validation import is_http_url
from .vendors import Vendor

MFA_TYPE_NONE = "none"
MFA_TYPE_CODE = "code"
MFA_TYPE_AUTO = "auto"
MFA_TYPES = (MFA_TYPE_NONE, MFA_TYPE_CODE, MFA_TYPE_AUTO)

TOKEN_RESPONSE_LIMIT = 64 * 1024


@dataclass
class AuthenticationConfig:
    """Per-client identity provider settings.

    Only gather_credentials() updates this after construction.
    """

    username: str = ""
    password: str = ""
    mfa_type: str = MFA_TYPE_AUTO
    mfa_code: str = ""
    mfa_input_provider: MfaInputProvider | None = read_mfa_code
    credential_input_provider: CredentialInputProvider | None = read_username_password
    identity_provider_name: str = ""
    federated_username: str = ""
    client_id: str = ""
    redirect_uri: str = ""
    scopes: list[str] = field(default_factory=list)
    web_identity_token_file: str = ""
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("aws_federation.auth"))

    @property
    def is_oidc(self) -> bool:
        return bool(self.client_id) and bool(self.redirect_uri)


@dataclass
class OAuthToken:
    access_token: str = ""
    id_token: str = ""
    token_type: str = ""
    expires_in: int = 0
    refresh_token: str = ""
    scope: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "OAuthToken":
        return cls(
            access_token=data.get("access_token", ""),
            id_token=data.get("id_token", ""),
            token_type=data.get("token_type", ""),
            expires_in=int(data.get("expires_in") or 0),
            refresh_token=data.get("refresh_token", ""),
            scope=data.get("scope", ""),
        )


def new_code_verifier() -> str:
    return base64.urlsafe_b64encode(secrets.token_bytes(32)).decode("utf-8").rstrip("=")


def code_challenge(verifier: str) -> str:
    """S256 PKCE code challenge for verifier."""
    return base64.urlsafe_b64encode(hashlib.sha256(verifier.encode("utf-8")).digest()).decode("utf-8").rstrip("=")


class BaseClient:
    def __init__(self, url: str, config: AuthenticationConfig, vendor: Vendor, http: HttpSession | None = None):
        if not is_http_url(url):
            raise ConfigurationError(f"invalid client URL '{url}'")

        self.auth_url = url
        self.config = config
        self.vendor = vendor
        self.logger = config.logger
        self.http = http or HttpSession(follow_redirects=vendor.follow_redirect)
        self.saml: SamlAssertion | None = None

    def set_cookie_jar(self, jar) -> None:
        """Share the given cookie jar with this client's transport."""
        self.http.cookies = jar

    def _basic_auth(self) -> tuple[str, str] | None:
        if self.vendor.basic_auth and self.config.username and self.config.password:
            return (self.config.username, self.config.password)
        return None

    def _mfa_params(self) -> dict[str, str]:
        if self.vendor.mfa_param and self.config.mfa_code:
            return {self.vendor.mfa_param: self.config.mfa_code}
        return {}

    def _held_assertion_valid(self) -> bool:
        if not self.saml:
            return False
        try:
            return not self.saml.is_expired()
        except AssertionParseError as e:
            self.logger.debug(f"discarding unreadable SAML assertion: {e}")
            return False

    def saml_request(self, url: str | None = None) -> None:
        """Fetch a SAML assertion unless the held one is still valid.

        The response is scanned for a SAMLResponse input. When there isn't one the held
        assertion is left unset, callers must check for an empty assertion before use.
        """
        if self._held_assertion_valid():
            return

        url = url or self.auth_url
        try:
            res = check_response(self.http.get(url, params=self._mfa_params() or None, auth=self._basic_auth()))
        except TransportError as e:
            raise TransportError(f"SAML request error: {e.message}", url=e.url, status=e.status) from e

        with res:
            self.handle_saml_response(res.text)

    def handle_saml_response(self, body: str) -> None:
        value = self.vendor.parse_saml_response(body)
        if value is None:
            self.logger.debug("no SAMLResponse found in IdP response")
            return

        self.saml = SamlAssertion(value)
        self.logger.debug(f"SAMLResponse: {redact(self.saml, 16)}")
        try:
            self.logger.debug(f"SAML Role Details: {[str(r) for r in self.saml.role_details()]}")
        except AssertionParseError as e:
            self.logger.debug(f"unable to read SAML role details: {e}")

    def identity(self, provider: str) -> Identity:
        """Identity of the authenticated user.

        The SAML role session name is preferred, then the configured federated username, then
        the IdP login name.
        """
        if not self.config.username and not self.config.federated_username:
            self.gather_credentials()

        ident = Identity(username=self.config.federated_username or self.config.username, provider=provider)

        if self.saml:
            try:
                ident.username = self.saml.role_session_name()
            except AssertionParseError:
                pass
        return ident

    def roles(self) -> Roles:
        if self.config.is_oidc:
            raise UnsupportedOperationError("OIDC clients are not role aware")

        if not self.saml:
            return Roles()
        return Roles([r.role_arn for r in self.saml.role_details()])

    def pkce_authz_request(self, pkce_challenge: str) -> dict[str, str]:
        """Query parameters for an authorization code request bound to pkce_challenge."""
        # round trip token only, no need for crypto-strength random
        state = f"{time.time_ns()}.{random.randint(0, 2**63)}.{pkce_challenge}"  # noqa: S311

        scopes = ["openid"] + [s for s in self.config.scopes if s != "openid"]
        return {
            "client_id": self.config.client_id,
            "code_challenge": pkce_challenge,
            "code_challenge_method": "S256",
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            # recommended by OpenID Connect, required for Okta
            "state": base64.b64encode(state.encode("utf-8")).decode("ascii").rstrip("="),
            "scope": " ".join(scopes),
        }

    def oauth_authorize(
        self, endpoint: str, params: dict[str, str], follow_redirect: bool, ctx: Context | None = None
    ) -> dict[str, str]:
        """Request an authorization code, returning the query parameters of the final redirect.

        Without follow_redirect the IdP must answer with a 302 whose Location carries the
        result. With follow_redirect the redirects are followed until the hop to the (usually
        unreachable) redirect URI fails; that failure is the expected outcome and its target URL
        carries the result. Any other failure is fatal.
        """
        if ctx:
            ctx.check()

        http = self.http.with_redirects(follow_redirect)
        try:
            res = http.get(endpoint, params={**params, **self._mfa_params()}, auth=self._basic_auth())
        except RedirectError as e:
            if self.config.redirect_uri and e.url.startswith(self.config.redirect_uri):
                return self._check_authorize_result(_query(e.url))
            raise TransportError(f"oAuth authorize request error: {e.message}", url=e.url) from e
        except TransportError as e:
            raise TransportError(f"oAuth authorize request error: {e.message}", url=e.url) from e

        with res:
            if res.status_code != 302:
                raise ProtocolError(f"oAuth authorize request error: http status {res.status_code} {res.reason}")

            location = res.headers.get("location", "")
            if not location.startswith(self.config.redirect_uri):
                raise ProtocolError("oAuth authorize request error: unexpected redirect target")
            return self._check_authorize_result(_query(location))

    def _check_authorize_result(self, result: dict[str, str]) -> dict[str, str]:
        if "error" in result:
            raise ProtocolError(f"oAuth authorize error: {result.get('error_description', result['error'])}")
        return result

    def oauth_token(self, endpoint: str, code: str, verifier: str, ctx: Context | None = None) -> OAuthToken:
        """Exchange an authorization code for tokens."""
        if ctx:
            ctx.check()

        data = {
            "client_id": self.config.client_id,
            "code": code,
            "code_verifier": verifier,
            "grant_type": "authorization_code",
            "redirect_uri": self.config.redirect_uri,
        }

        try:
            res = check_response(
                self.http.post(
                    endpoint,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded", "Accept": "application/json"},
                    stream=True,
                )
            )
        except TransportError as e:
            raise TransportError(f"oAuth token request error: {e.message}", url=e.url, status=e.status) from e

        with res:
            body = b""
            for chunk in res.iter_content(chunk_size=8192):
                body += chunk
                if len(body) > TOKEN_RESPONSE_LIMIT:
                    raise ProtocolError("oAuth token response exceeds 64 KiB")

        try:
            data = json.loads(body)
        except ValueError as e:
            raise ProtocolError(f"invalid oAuth token response: {e}") from e

        if not isinstance(data, dict):
            raise ProtocolError("invalid oAuth token response: not a JSON object")
        return OAuthToken.from_dict(data)

    def gather_credentials(self) -> None:
        """Prompt for whatever username, password or MFA code is still missing."""
        cfg = self.config

        if not cfg.username or not cfg.password:
            if cfg.credential_input_provider is None:
                raise ConfigurationError("username and password required, but no input provider is configured")
            cfg.username, cfg.password = cfg.credential_input_provider(cfg.username, cfg.password)

        if cfg.mfa_type == MFA_TYPE_CODE and not cfg.mfa_code:
            if not self.vendor.mfa_param:
                self.logger.debug(f"{self.vendor.display_name} does not accept an MFA code, not prompting")
            elif cfg.mfa_input_provider is not None:
                cfg.mfa_code = cfg.mfa_input_provider()


def _query(url: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}
