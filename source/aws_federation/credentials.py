# ABOUTME: Temporary AWS credential value type and STS duration limits
# ABOUTME: Converts STS responses to credentials and renders credential_process output

"""Temporary AWS credentials."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .tokens import parse_timestamp

# STS limits, in seconds
ASSUME_ROLE_DURATION_MIN = 900
ASSUME_ROLE_DURATION_DEFAULT = 3600  # also the ceiling for chained role credentials
ASSUME_ROLE_DURATION_MAX = 43200
SESSION_TOKEN_DURATION_MIN = 900
SESSION_TOKEN_DURATION_DEFAULT = 43200
SESSION_TOKEN_DURATION_MAX = 129600


@dataclass(frozen=True)
class Credentials:
    """Immutable temporary AWS credentials."""

    access_key_id: str
    secret_access_key: str
    session_token: str
    expiration: datetime
    provider_name: str = ""

    def __repr__(self) -> str:
        return (
            f"Credentials(access_key_id={self.access_key_id[:8]}***, "
            f"expiration={self.expiration.isoformat()}, provider_name={self.provider_name!r})"
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        """Credentials expiring exactly now are expired."""
        now = now or datetime.now(timezone.utc)
        return self.expiration <= now

    @classmethod
    def from_sts(cls, creds: dict[str, Any], provider_name: str) -> "Credentials":
        """Build credentials from the Credentials element of an STS response."""
        expiration = creds["Expiration"]
        if isinstance(expiration, str):
            expiration = parse_timestamp(expiration)
        elif expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)

        return cls(
            access_key_id=creds["AccessKeyId"],
            secret_access_key=creds["SecretAccessKey"],
            session_token=creds["SessionToken"],
            expiration=expiration,
            provider_name=provider_name,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "AccessKeyId": self.access_key_id,
            "SecretAccessKey": self.secret_access_key,
            "SessionToken": self.session_token,
            "Expiration": self.expiration.astimezone(timezone.utc).isoformat(),
            "ProviderName": self.provider_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Credentials":
        return cls(
            access_key_id=data["AccessKeyId"],
            secret_access_key=data["SecretAccessKey"],
            session_token=data["SessionToken"],
            expiration=parse_timestamp(data["Expiration"]),
            provider_name=data.get("ProviderName", ""),
        )

    def to_process_output(self) -> dict[str, Any]:
        """Format for the AWS CLI credential_process contract."""
        return {
            "Version": 1,
            "AccessKeyId": self.access_key_id,
            "SecretAccessKey": self.secret_access_key,
            "SessionToken": self.session_token,
            "Expiration": self.expiration.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        }

    def to_env(self) -> dict[str, str]:
        return {
            "AWS_ACCESS_KEY_ID": self.access_key_id,
            "AWS_SECRET_ACCESS_KEY": self.secret_access_key,
            "AWS_SESSION_TOKEN": self.session_token,
            "AWS_CREDENTIAL_EXPIRATION": self.expiration.astimezone(timezone.utc).isoformat(),
        }

    def to_botocore_metadata(self) -> dict[str, str]:
        """Format expected by botocore RefreshableCredentials."""
        return {
            "access_key": self.access_key_id,
            "secret_key": self.secret_access_key,
            "token": self.session_token,
            "expiry_time": self.expiration.astimezone(timezone.utc).isoformat(),
        }
