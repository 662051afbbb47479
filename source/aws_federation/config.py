# ABOUTME: Configuration for federated credential clients
# ABOUTME: Profile settings from the AWS shared config file, IdP passwords, and validation

"""Configuration management for aws-federation."""

import configparser
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from .auth.base import MFA_TYPE_AUTO, MFA_TYPES
from .credentials import (
    ASSUME_ROLE_DURATION_DEFAULT,
    ASSUME_ROLE_DURATION_MAX,
    ASSUME_ROLE_DURATION_MIN,
    SESSION_TOKEN_DURATION_DEFAULT,
    SESSION_TOKEN_DURATION_MAX,
    SESSION_TOKEN_DURATION_MIN,
)
from .errors import ConfigurationError
from .utils.arn import is_arn
from .utils.url_validation import is_http_url

CREDENTIALS_FILE = ".aws_runas.credentials"

# AWS shared config keys -> AwsConfig fields
CONFIG_KEY_ALIASES = {
    "source_profile": "src_profile",
    "duration_seconds": "duration",
    "credentials_duration": "duration",
    "saml_auth_url": "saml_url",
    "web_identity_auth_url": "web_identity_url",
}


@dataclass
class AwsConfig:
    """Resolved configuration of one profile."""

    profile_name: str = ""
    region: str = ""
    role_arn: str = ""
    jump_role_arn: str = ""
    src_profile: str = ""
    external_id: str = ""
    role_session_name: str = ""
    mfa_serial: str = ""
    mfa_code: str = ""
    mfa_type: str = MFA_TYPE_AUTO
    duration: int = 0  # role credential duration, seconds
    session_token_duration: int = SESSION_TOKEN_DURATION_DEFAULT
    saml_url: str = ""
    saml_username: str = ""
    saml_provider: str = ""
    web_identity_url: str = ""
    web_identity_username: str = ""
    web_identity_client_id: str = ""
    web_identity_redirect_uri: str = ""
    web_identity_provider: str = ""
    web_identity_token_file: str = ""
    federated_username: str = ""
    credential_storage: str = "file"  # "file" or "keyring"

    def role_credential_duration(self) -> int:
        return self.duration or ASSUME_ROLE_DURATION_DEFAULT

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AwsConfig":
        """Create a config from AWS shared config style keys, ignoring unknown ones."""
        known = {f.name: f for f in fields(cls)}
        values = {}

        for key, value in data.items():
            name = CONFIG_KEY_ALIASES.get(key, key)
            if name not in known or value is None:
                continue

            if known[name].type in (int, "int"):
                try:
                    value = int(value)
                except (TypeError, ValueError) as e:
                    raise ConfigurationError(f"invalid value for {key}: {value}") from e
            else:
                value = str(value).strip()
            values[name] = value

        return cls(**values)

    def validate(self) -> None:
        """Raise ConfigurationError if this configuration can't be used."""
        if self.saml_url and self.web_identity_url:
            raise ConfigurationError("saml_auth_url and web_identity_auth_url are mutually exclusive")

        for name in ("saml_url", "web_identity_url"):
            url = getattr(self, name)
            if url and not is_http_url(url):
                raise ConfigurationError(f"invalid {name} '{url}'")

        for name in ("role_arn", "jump_role_arn"):
            value = getattr(self, name)
            if value and not is_arn(value):
                raise ConfigurationError(f"invalid {name} '{value}'")

        if self.jump_role_arn and not (self.saml_url or self.web_identity_url):
            raise ConfigurationError("jump_role_arn requires saml_auth_url or web_identity_auth_url")

        if self.web_identity_url and not (self.web_identity_client_id and self.web_identity_redirect_uri):
            raise ConfigurationError("web identity requires web_identity_client_id and web_identity_redirect_uri")

        if self.mfa_type not in MFA_TYPES:
            raise ConfigurationError(f"invalid mfa_type '{self.mfa_type}', valid types: {', '.join(MFA_TYPES)}")

        if self.duration and not ASSUME_ROLE_DURATION_MIN <= self.duration <= ASSUME_ROLE_DURATION_MAX:
            raise ConfigurationError(
                f"role credential duration must be between {ASSUME_ROLE_DURATION_MIN} and {ASSUME_ROLE_DURATION_MAX}"
            )

        if not SESSION_TOKEN_DURATION_MIN <= self.session_token_duration <= SESSION_TOKEN_DURATION_MAX:
            raise ConfigurationError(
                f"session token duration must be between {SESSION_TOKEN_DURATION_MIN} "
                f"and {SESSION_TOKEN_DURATION_MAX}"
            )

        if self.credential_storage not in ("file", "keyring"):
            raise ConfigurationError(f"invalid credential_storage '{self.credential_storage}'")


@dataclass
class AwsCredentials:
    """IdP passwords, possibly encoded."""

    saml_password: str = ""
    web_identity_password: str = ""

    def merge_in(self, other: "AwsCredentials | None") -> None:
        if other is None:
            return
        if other.saml_password:
            self.saml_password = other.saml_password
        if other.web_identity_password:
            self.web_identity_password = other.web_identity_password


def config_file_path() -> Path:
    return Path(os.getenv("AWS_CONFIG_FILE") or Path.home() / ".aws" / "config").expanduser()


class ConfigResolver:
    """Reads profiles from the AWS shared config file and IdP passwords from the file beside it."""

    def __init__(self, config_file: str | Path | None = None, credentials_file: str | Path | None = None):
        self.config_file = Path(config_file) if config_file else config_file_path()
        self.credentials_file = Path(credentials_file) if credentials_file else self.config_file.parent / CREDENTIALS_FILE

    @staticmethod
    def _read(path: Path) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(interpolation=None)
        try:
            parser.read(path)
        except configparser.Error as e:
            raise ConfigurationError(f"unable to parse {path}: {e}") from e
        return parser

    def _section(self, parser: configparser.ConfigParser, profile: str) -> dict[str, str] | None:
        for name in (f"profile {profile}", profile):
            if parser.has_section(name):
                return dict(parser.items(name))
        if profile == "default" and parser.defaults():
            return dict(parser.defaults())
        return None

    def config(self, profile: str | None = None) -> AwsConfig:
        """Resolve a profile. IdP settings are inherited from a source_profile."""
        profile = profile or os.getenv("AWS_PROFILE") or "default"

        if is_arn(profile):
            cfg = AwsConfig(profile_name=profile)
        else:
            parser = self._read(self.config_file)
            data = self._section(parser, profile)
            if data is None:
                raise ConfigurationError(f"profile '{profile}' not found in {self.config_file}")

            src = data.get("source_profile")
            if src and src != profile:
                src_data = self._section(parser, src) or {}
                for key, value in src_data.items():
                    if key.startswith(("saml_", "web_identity_", "federated_")) or key in ("region", "mfa_serial"):
                        data.setdefault(key, value)

            cfg = AwsConfig.from_dict(data)
            cfg.profile_name = profile

        if not cfg.region:
            cfg.region = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or ""
        return cfg

    def credentials(self, url: str) -> AwsCredentials:
        """IdP passwords stored for url, raising ConfigurationError when there are none."""
        parser = self._read(self.credentials_file)
        if not parser.has_section(url):
            raise ConfigurationError(f"no credentials found for {url}")

        return AwsCredentials(
            saml_password=parser.get(url, "saml_password", fallback=""),
            web_identity_password=parser.get(url, "web_identity_password", fallback=""),
        )
