# ABOUTME: Role assumption adapters turning assertions, tokens and IAM keys into temporary credentials
# ABOUTME: Each provider consults its cache before calling STS and stores new credentials best-effort

"""
STS credential providers.

A provider holds the proof it exchanges (SAML assertion, identity token or the IAM
credentials of its STS client) and an optional cache. Credentials are returned from memory
or the cache while unexpired; otherwise STS is called and the result cached.
"""

import logging
import re
import time
from datetime import datetime

from botocore.exceptions import BotoCoreError, ClientError

from .cache import FileCredentialCache, KeyringCredentialCache
from .context import Context
from .credentials import ASSUME_ROLE_DURATION_DEFAULT, SESSION_TOKEN_DURATION_DEFAULT, Credentials
from .errors import AssertionParseError, CredentialProviderError
from .prompts import MfaInputProvider
from .tokens import OidcIdentityToken, SamlAssertion

CredentialCache = FileCredentialCache | KeyringCredentialCache

_SESSION_NAME_INVALID = re.compile(r"[^\w+=,.@-]")


def role_session_name(name: str | None) -> str:
    """Sanitize name into a valid RoleSessionName, generating one if there's nothing left."""
    name = _SESSION_NAME_INVALID.sub("-", name or "")[:64]
    if len(name) < 2:
        name = f"aws-federation-{int(time.time())}"
    return name


class RoleProvider:
    PROVIDER_NAME = ""

    def __init__(
        self,
        sts,
        cache: CredentialCache | None = None,
        duration: int | None = None,
        logger: logging.Logger | None = None,
    ):
        self.sts = sts
        self.cache = cache
        self.duration = duration or ASSUME_ROLE_DURATION_DEFAULT
        self.logger = logger or logging.getLogger(__name__)
        self._creds: Credentials | None = None

    def cached_credentials(self) -> Credentials | None:
        """Unexpired credentials from memory or the cache, without calling STS."""
        if self._creds and not self._creds.is_expired():
            return self._creds

        if self.cache is not None:
            creds = self.cache.load()
            if creds is not None:
                self.logger.debug(f"{self.PROVIDER_NAME}: using cached credentials from {self.cache!r}")
                self._creds = creds
                return creds
        return None

    def retrieve(self) -> Credentials:
        return self.retrieve_with_context(None)

    def retrieve_with_context(self, ctx: Context | None) -> Credentials:
        creds = self.cached_credentials()
        if creds is not None:
            return creds

        if ctx:
            ctx.check()

        self.logger.debug(f"{self.PROVIDER_NAME}: requesting new credentials")
        try:
            creds = self._fetch()
        except ClientError as e:
            error = e.response.get("Error", {})
            raise CredentialProviderError(
                f"{self.PROVIDER_NAME}: {error.get('Message', str(e))}", code=error.get("Code")
            ) from e
        except BotoCoreError as e:
            raise CredentialProviderError(f"{self.PROVIDER_NAME}: {e}") from e

        self._creds = creds
        if self.cache is not None:
            self.cache.store(creds)
        return creds

    def _fetch(self) -> Credentials:
        raise NotImplementedError

    def expires_at(self) -> datetime | None:
        return self._creds.expiration if self._creds else None

    def is_expired(self) -> bool:
        return self._creds is None or self._creds.is_expired()

    def clear_cache(self) -> None:
        self._creds = None
        if self.cache is not None:
            self.cache.clear()


class SamlRoleProvider(RoleProvider):
    PROVIDER_NAME = "SAMLRoleProvider"

    def __init__(self, sts, role_arn: str, assertion: SamlAssertion | None = None, **kwargs):
        super().__init__(sts, **kwargs)
        self.role_arn = role_arn
        self.assertion = assertion or SamlAssertion("")

    def _fetch(self) -> Credentials:
        if not self.assertion:
            raise CredentialProviderError(f"{self.PROVIDER_NAME}: no SAML assertion, IdP authentication required")

        principal = self.assertion.provider_arn(self.role_arn)
        if not principal:
            raise CredentialProviderError(f"{self.PROVIDER_NAME}: role {self.role_arn} not found in SAML assertion")

        res = self.sts.assume_role_with_saml(
            RoleArn=self.role_arn,
            PrincipalArn=principal,
            SAMLAssertion=str(self.assertion),
            DurationSeconds=self.duration,
        )
        return Credentials.from_sts(res["Credentials"], self.PROVIDER_NAME)


class WebRoleProvider(RoleProvider):
    PROVIDER_NAME = "WebIdentityRoleProvider"

    def __init__(
        self, sts, role_arn: str, token: OidcIdentityToken | None = None, session_name: str = "", **kwargs
    ):
        super().__init__(sts, **kwargs)
        self.role_arn = role_arn
        self.token = token or OidcIdentityToken("")
        self.session_name = session_name

    def _fetch(self) -> Credentials:
        if not self.token:
            raise CredentialProviderError(f"{self.PROVIDER_NAME}: no identity token, IdP authentication required")

        name = self.session_name
        if not name:
            try:
                name = self.token.username()
            except AssertionParseError:
                name = ""

        res = self.sts.assume_role_with_web_identity(
            RoleArn=self.role_arn,
            RoleSessionName=role_session_name(name),
            WebIdentityToken=str(self.token),
            DurationSeconds=self.duration,
        )
        return Credentials.from_sts(res["Credentials"], self.PROVIDER_NAME)


class _MfaMixin:
    serial_number: str
    token_code: str
    token_provider: MfaInputProvider | None

    def _mfa_params(self) -> dict[str, str]:
        if not self.serial_number:
            return {}

        code = self.token_code
        if not code and self.token_provider is not None:
            code = self.token_provider()
        if not code:
            raise CredentialProviderError("MFA code required, but none provided")
        return {"SerialNumber": self.serial_number, "TokenCode": code}


class AssumeRoleProvider(_MfaMixin, RoleProvider):
    PROVIDER_NAME = "AssumeRoleProvider"

    def __init__(
        self,
        sts,
        role_arn: str,
        session_name: str = "",
        external_id: str = "",
        serial_number: str = "",
        token_code: str = "",
        token_provider: MfaInputProvider | None = None,
        **kwargs,
    ):
        super().__init__(sts, **kwargs)
        self.role_arn = role_arn
        self.session_name = session_name
        self.external_id = external_id
        self.serial_number = serial_number
        self.token_code = token_code
        self.token_provider = token_provider

    def _fetch(self) -> Credentials:
        params = {
            "RoleArn": self.role_arn,
            "RoleSessionName": role_session_name(self.session_name),
            "DurationSeconds": self.duration,
        }
        if self.external_id:
            params["ExternalId"] = self.external_id
        params.update(self._mfa_params())

        res = self.sts.assume_role(**params)
        return Credentials.from_sts(res["Credentials"], self.PROVIDER_NAME)


class SessionTokenProvider(_MfaMixin, RoleProvider):
    PROVIDER_NAME = "SessionTokenProvider"

    def __init__(
        self,
        sts,
        serial_number: str = "",
        token_code: str = "",
        token_provider: MfaInputProvider | None = None,
        duration: int | None = None,
        **kwargs,
    ):
        super().__init__(sts, duration=duration or SESSION_TOKEN_DURATION_DEFAULT, **kwargs)
        self.serial_number = serial_number
        self.token_code = token_code
        self.token_provider = token_provider

    def _fetch(self) -> Credentials:
        res = self.sts.get_session_token(DurationSeconds=self.duration, **self._mfa_params())
        return Credentials.from_sts(res["Credentials"], self.PROVIDER_NAME)
