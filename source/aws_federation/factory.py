# ABOUTME: Client factory selecting and composing the AWS client for a resolved profile
# ABOUTME: Handles SAML and web identity federation, role chaining and session token seeding

"""
Client factory.

The factory is the preferred way to obtain an AwsClient, since it knows about the advanced
scenarios: assuming a final role through a federated "jump" role, and seeding short-lived
assume role credentials from MFA authenticated session token credentials. Clients can be
built directly, but should be reserved for the most customized use cases.
"""

import logging
from dataclasses import dataclass, field

from .auth import AuthenticationConfig, get_oidc_client, get_saml_client
from .aws import sts_client
from .cache import (
    ASSUME_ROLE_PREFIX,
    SAML_ROLE_PREFIX,
    SESSION_TOKEN_PREFIX,
    WEB_ROLE_PREFIX,
    CookieStore,
    FileCredentialCache,
    KeyringCredentialCache,
    cache_file_name,
)
from .clients import AssumeRoleClient, AwsClient, SamlRoleClient, SessionTokenClient, WebRoleClient
from .config import AwsConfig, AwsCredentials, ConfigResolver
from .credentials import ASSUME_ROLE_DURATION_DEFAULT
from .errors import ConfigurationError
from .log import LOGGER_NAME
from .password import PasswordEncoder
from .prompts import CredentialInputProvider, MfaInputProvider, read_mfa_code, read_username_password
from .providers import AssumeRoleProvider, SamlRoleProvider, SessionTokenProvider, WebRoleProvider
from .utils.arn import is_arn

# AWS limits role chained credentials to 1 hour
CHAINED_ROLE_DURATION_MAX = ASSUME_ROLE_DURATION_DEFAULT


@dataclass
class Options:
    """Factory behavior which isn't part of a profile's configuration."""

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(LOGGER_NAME))
    enable_cache: bool = True
    mfa_input_provider: MfaInputProvider | None = read_mfa_code
    credential_input_provider: CredentialInputProvider | None = read_username_password
    command_credentials: AwsCredentials | None = None
    cookie_store: CookieStore | None = None
    scopes: list[str] = field(default_factory=list)


class ClientFactory:
    def __init__(self, resolver: ConfigResolver, options: Options | None = None):
        self.resolver = resolver
        self.options = options or Options()
        self.logger = self.options.logger

    def get(self, cfg: AwsConfig) -> AwsClient:
        """Return an AwsClient for a resolved configuration.

        A SAML URL selects a SAML client, then a web identity URL selects a web identity
        (OIDC) client. Otherwise a role ARN selects an assume role client using IAM
        credentials, and with none of the above a session token client is returned.
        """
        if cfg is None:
            raise ConfigurationError("invalid configuration")

        if is_arn(cfg.profile_name):
            cfg.role_arn = cfg.profile_name
            cfg.profile_name = ""

        cfg.validate()
        self.logger.debug(f"CLIENT CONFIG: { {k: v for k, v in cfg.to_dict().items() if k != 'mfa_code'} }")

        if cfg.saml_url:
            creds = self._idp_credentials(cfg.saml_url)
            return self.saml_client(cfg, creds)

        if cfg.web_identity_url:
            creds = self._idp_credentials(cfg.web_identity_url)
            return self.web_client(cfg, creds)

        if cfg.role_arn:
            return self.role_client(cfg)

        return self.session_client(cfg)

    def _idp_credentials(self, url: str) -> AwsCredentials:
        try:
            creds = self.resolver.credentials(url)
        except ConfigurationError as e:
            # non-fatal, the user is prompted for anything missing
            self.logger.debug(f"no stored credentials for {url}: {e}")
            creds = AwsCredentials()
        creds.merge_in(self.options.command_credentials)
        return creds

    def _auth_config(self, **kwargs) -> AuthenticationConfig:
        return AuthenticationConfig(
            mfa_input_provider=self.options.mfa_input_provider,
            credential_input_provider=self.options.credential_input_provider,
            logger=self.logger,
            **kwargs,
        )

    def _cache(self, cfg: AwsConfig, prefix: str, profile: str, role: str):
        if not self.options.enable_cache:
            return None

        path = cache_file_name(prefix, profile, role)
        if cfg.credential_storage == "keyring":
            return KeyringCredentialCache(path.name)
        return FileCredentialCache(path)

    def _chain(self, cfg: AwsConfig, base: SamlRoleClient | WebRoleClient, ident) -> AssumeRoleClient:
        """Assume the configured role using the credentials of a federated base client."""
        self.logger.debug("configuring assume role client as role client")

        provider = AssumeRoleProvider(
            sts_client(cfg.region, credential_source=base.credentials),
            cfg.role_arn,
            session_name=cfg.role_session_name,
            external_id=cfg.external_id,
            cache=self._cache(cfg, ASSUME_ROLE_PREFIX, cfg.profile_name, cfg.role_arn),
            duration=min(cfg.role_credential_duration(), CHAINED_ROLE_DURATION_MAX),
            logger=self.logger,
        )
        return AssumeRoleClient(provider.sts, provider, ident=ident, upstream=base)

    def saml_client(self, cfg: AwsConfig, creds: AwsCredentials) -> AwsClient:
        self.logger.debug("configuring SAML client")

        auth_cfg = self._auth_config(
            username=cfg.saml_username,
            password=self.decode_password(cfg.saml_url, creds.saml_password),
            mfa_code=cfg.mfa_code,
            mfa_type=cfg.mfa_type,
            identity_provider_name=cfg.saml_provider,
            federated_username=cfg.federated_username,
        )
        idp = get_saml_client(cfg.saml_url, auth_cfg)
        if self.options.cookie_store is not None:
            idp.set_cookie_jar(self.options.cookie_store.jar)

        role_arn, profile = cfg.role_arn, cfg.profile_name
        if cfg.jump_role_arn:
            self.logger.debug("jump role found, configuring SAML client as base client")
            role_arn, profile = cfg.jump_role_arn, ""

        provider = SamlRoleProvider(
            sts_client(cfg.region, unsigned=True),
            role_arn,
            cache=self._cache(cfg, SAML_ROLE_PREFIX, profile, role_arn),
            duration=cfg.role_credential_duration(),
            logger=self.logger,
        )
        client = SamlRoleClient(idp, provider)

        if cfg.jump_role_arn:
            return self._chain(cfg, client, ident=idp)

        self.logger.debug("no jump role found, only configuring SAML client")
        return client

    def web_client(self, cfg: AwsConfig, creds: AwsCredentials) -> AwsClient:
        self.logger.debug("configuring Web Identity client")

        auth_cfg = self._auth_config(
            username=cfg.web_identity_username,
            password=self.decode_password(cfg.web_identity_url, creds.web_identity_password),
            mfa_code=cfg.mfa_code,
            mfa_type=cfg.mfa_type,
            identity_provider_name=cfg.web_identity_provider,
            federated_username=cfg.federated_username,
            client_id=cfg.web_identity_client_id,
            redirect_uri=cfg.web_identity_redirect_uri,
            web_identity_token_file=cfg.web_identity_token_file,
            scopes=list(self.options.scopes),
        )
        idp = get_oidc_client(cfg.web_identity_url, auth_cfg)
        if self.options.cookie_store is not None:
            idp.set_cookie_jar(self.options.cookie_store.jar)

        role_arn, profile = cfg.role_arn, cfg.profile_name
        if cfg.jump_role_arn:
            self.logger.debug("jump role found, configuring Web Identity client as base client")
            role_arn, profile = cfg.jump_role_arn, ""

        provider = WebRoleProvider(
            sts_client(cfg.region, unsigned=True),
            role_arn,
            session_name=cfg.role_session_name,
            cache=self._cache(cfg, WEB_ROLE_PREFIX, profile, role_arn),
            duration=cfg.role_credential_duration(),
            logger=self.logger,
        )
        client = WebRoleClient(idp, provider)

        if cfg.jump_role_arn:
            return self._chain(cfg, client, ident=idp)

        self.logger.debug("no jump role found, only configuring Web Identity client")
        return client

    def role_client(self, cfg: AwsConfig) -> AssumeRoleClient:
        self.logger.debug("configuring Assume Role client")

        # a profile holding role_arn can't be the credential source, the SDK would assume the role itself
        session_profile = cfg.src_profile or ""
        if session_profile:
            self.logger.debug("found source profile, setting as session profile")

        provider = AssumeRoleProvider(
            None,
            cfg.role_arn,
            session_name=cfg.role_session_name,
            external_id=cfg.external_id,
            serial_number=cfg.mfa_serial,
            token_code=cfg.mfa_code,
            token_provider=self.options.mfa_input_provider,
            cache=self._cache(cfg, ASSUME_ROLE_PREFIX, cfg.profile_name, cfg.role_arn),
            duration=cfg.role_credential_duration(),
            logger=self.logger,
        )

        if cfg.role_credential_duration() <= ASSUME_ROLE_DURATION_DEFAULT:
            self.logger.debug("detected default or lower role credential duration, using session token credentials")
            # MFA is now the concern of the session token client
            provider.serial_number = ""

            sc = self.session_client(cfg, session_profile=session_profile)
            provider.sts = sts_client(cfg.region, credential_source=sc.credentials)
            return AssumeRoleClient(provider.sts, provider, ident=sc.ident)

        provider.sts = sts_client(cfg.region, profile=session_profile)
        return AssumeRoleClient(provider.sts, provider)

    def session_client(self, cfg: AwsConfig, session_profile: str | None = None) -> SessionTokenClient:
        self.logger.debug("configuring Session Token client")

        if session_profile is None:
            session_profile = cfg.profile_name
        sts = sts_client(cfg.region, profile=session_profile)

        # session token credentials are shared by every profile using the same source profile
        provider = SessionTokenProvider(
            sts,
            serial_number=cfg.mfa_serial,
            token_code=cfg.mfa_code,
            token_provider=self.options.mfa_input_provider,
            cache=self._cache(cfg, SESSION_TOKEN_PREFIX, session_profile or cfg.profile_name or "default", ""),
            duration=cfg.session_token_duration,
            logger=self.logger,
        )
        return SessionTokenClient(sts, provider)

    def decode_password(self, url: str, password: str) -> str:
        if not password:
            return ""
        try:
            return PasswordEncoder(url).decode(password)
        except ValueError as e:
            self.logger.debug(f"error decoding password: {e}")
            return password
