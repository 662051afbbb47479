# ABOUTME: boto3 session and STS client construction
# ABOUTME: Lets one credential provider act as the AWS API credential source of another

"""AWS SDK helpers."""

import logging

import boto3
import botocore.session
from botocore import UNSIGNED
from botocore.config import Config
from botocore.credentials import CredentialProvider, RefreshableCredentials

logger = logging.getLogger(__name__)


class ProviderCredentialSource(CredentialProvider):
    """botocore credential provider backed by another client's credentials.

    `fetch` is a zero argument callable returning Credentials, usually the credentials method
    of an upstream client. The botocore credentials refresh through it, so a session built on
    it always signs with the upstream client's current credentials.
    """

    METHOD = "aws-federation"
    CANONICAL_NAME = "custom-aws-federation"

    def __init__(self, fetch):
        super().__init__()
        self._fetch_credentials = fetch

    def _fetch(self) -> dict[str, str]:
        return self._fetch_credentials().to_botocore_metadata()

    def load(self) -> RefreshableCredentials:
        return RefreshableCredentials.create_from_metadata(
            metadata=self._fetch(),
            refresh_using=self._fetch,
            method=self.METHOD,
        )


def new_session(region: str | None = None, profile: str | None = None, credential_source=None) -> boto3.Session:
    """Build a boto3 session from a named profile, or from a credential_source callable."""
    if credential_source is None:
        return boto3.Session(profile_name=profile or None, region_name=region or None)

    bc = botocore.session.get_session()
    bc.get_component("credential_provider").insert_before("env", ProviderCredentialSource(credential_source))
    return boto3.Session(botocore_session=bc, region_name=region or None)


class LazyClient:
    """Defers client creation, and so credential resolution, until the first API call."""

    def __init__(self, factory):
        self._factory = factory
        self._client = None

    def __getattr__(self, name):
        if self._client is None:
            self._client = self._factory()
        return getattr(self._client, name)


def sts_client(region: str | None = None, profile: str | None = None, credential_source=None, unsigned: bool = False):
    """STS client; federation calls (SAML, web identity) need no AWS credentials and are unsigned."""

    def factory():
        if unsigned:
            return boto3.client("sts", region_name=region or None, config=Config(signature_version=UNSIGNED))

        session = new_session(region, profile=profile, credential_source=credential_source)
        logger.debug(f"creating STS client, region={session.region_name} profile={profile or ''}")
        return session.client("sts")

    return LazyClient(factory)
