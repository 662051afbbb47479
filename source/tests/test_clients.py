# ABOUTME: Tests for the composed AWS clients
# ABOUTME: Identity sources are faked so IdP traffic can be counted

from unittest.mock import Mock

import pytest

from aws_federation.auth import OidcClient, SamlClient
from aws_federation.cache import FileCredentialCache
from aws_federation.clients import (
    AssumeRoleClient,
    AwsIdentityClient,
    SamlRoleClient,
    SessionTokenClient,
    WebRoleClient,
)
from aws_federation.errors import InputError, UnsupportedOperationError
from aws_federation.identity import Identity, Roles
from aws_federation.providers import AssumeRoleProvider, SamlRoleProvider, SessionTokenProvider, WebRoleProvider
from aws_federation.tokens import OidcIdentityToken, SamlAssertion
from conftest import ROLE_ARN, FakeSTSClient, build_assertion, build_token


def fake_saml_client(assertion=None):
    client = Mock(spec=SamlClient)
    client.saml_assertion.return_value = SamlAssertion(assertion if assertion is not None else build_assertion())
    client.identity.return_value = Identity(username="alice@example.com", provider="OktaIdentityProvider")
    client.roles.return_value = Roles([ROLE_ARN])
    return client


class TestSamlRoleClient:
    def test_fetches_assertion_then_assumes_role(self, fake_sts):
        idp = fake_saml_client()
        client = SamlRoleClient(idp, SamlRoleProvider(fake_sts, ROLE_ARN))

        creds = client.credentials()
        assert creds.provider_name == "SAMLRoleProvider"
        idp.saml_assertion.assert_called_once_with()
        assert fake_sts.operations() == ["assume_role_with_saml"]

    def test_warm_cache_means_no_idp_traffic(self, fake_sts, tmp_path):
        cache = FileCredentialCache(tmp_path / "saml")
        SamlRoleClient(fake_saml_client(), SamlRoleProvider(fake_sts, ROLE_ARN, cache=cache)).credentials()

        idp = fake_saml_client()
        SamlRoleClient(idp, SamlRoleProvider(fake_sts, ROLE_ARN, cache=cache)).credentials()
        idp.saml_assertion.assert_not_called()
        assert len(fake_sts.calls) == 1

    def test_assertion_refreshed_after_cache_cleared(self, fake_sts):
        idp = fake_saml_client()
        client = SamlRoleClient(idp, SamlRoleProvider(fake_sts, ROLE_ARN))

        client.credentials()
        client.clear_cache()
        client.credentials()
        assert idp.saml_assertion.call_count == 2
        assert len(fake_sts.calls) == 2

    def test_identity_and_roles_delegate(self, fake_sts):
        client = SamlRoleClient(fake_saml_client(), SamlRoleProvider(fake_sts, ROLE_ARN))
        assert client.identity().username == "alice@example.com"
        assert ROLE_ARN in client.roles()


class TestWebRoleClient:
    def test_token_fetched_for_role_assumption(self, fake_sts):
        token = OidcIdentityToken(build_token(preferred_username="alice"))
        idp = Mock(spec=OidcClient)
        idp.identity_token.return_value = token
        client = WebRoleClient(idp, WebRoleProvider(fake_sts, ROLE_ARN))

        client.credentials()
        idp.identity_token.assert_called_once_with(None)
        assert fake_sts.calls[0][1]["WebIdentityToken"] == token


class TestAwsIdentityClient:
    def test_user_identity(self):
        ident = AwsIdentityClient(FakeSTSClient(arn="arn:aws:iam::123456789012:user/alice")).identity()
        assert ident.to_dict() == {
            "IdentityType": "user",
            "Provider": "AwsIdentityProvider",
            "Username": "alice",
            "AccountId": "123456789012",
        }

    def test_assumed_role_identity(self):
        sts = FakeSTSClient(arn="arn:aws:sts::123456789012:assumed-role/Admin/bob")
        ident = AwsIdentityClient(sts).identity()
        assert (ident.identity_type, ident.username) == ("assumed-role", "bob")

    def test_identity_cached(self, fake_sts):
        client = AwsIdentityClient(fake_sts)
        client.identity()
        client.identity()
        assert fake_sts.operations() == ["get_caller_identity"]

    def test_roles_unsupported(self, fake_sts):
        with pytest.raises(UnsupportedOperationError):
            AwsIdentityClient(fake_sts).roles()


class TestAssumeRoleClient:
    def test_session_name_from_identity(self, fake_sts):
        client = AssumeRoleClient(fake_sts, AssumeRoleProvider(fake_sts, ROLE_ARN))
        client.credentials()

        assert fake_sts.operations() == ["get_caller_identity", "assume_role"]
        assert fake_sts.calls[1][1]["RoleSessionName"] == "alice"

    def test_configured_session_name_kept(self, fake_sts):
        client = AssumeRoleClient(fake_sts, AssumeRoleProvider(fake_sts, ROLE_ARN, session_name="ops"))
        client.credentials()
        assert fake_sts.operations() == ["assume_role"]

    def test_identity_delegated_to_upstream(self, fake_sts):
        upstream = fake_saml_client()
        client = AssumeRoleClient(fake_sts, AssumeRoleProvider(fake_sts, ROLE_ARN), ident=upstream)

        assert client.identity().provider == "OktaIdentityProvider"
        assert list(client.roles()) == [ROLE_ARN]
        client.credentials()
        assert fake_sts.calls[0][1]["RoleSessionName"] == "alice@example.com"
        upstream.saml_assertion.assert_not_called()

    def test_upstream_credentials_fetched_before_session_name(self):
        calls = []
        idp = fake_saml_client()
        idp.identity.side_effect = lambda: Identity(
            username="alice@example.com" if idp.saml_assertion.called else "alice", provider="OktaIdentityProvider"
        )
        base = SamlRoleClient(idp, SamlRoleProvider(FakeSTSClient(calls=calls), ROLE_ARN))
        sts = FakeSTSClient(calls=calls, credential_source=base.credentials)
        client = AssumeRoleClient(sts, AssumeRoleProvider(sts, ROLE_ARN), ident=idp, upstream=base)

        client.credentials()
        assert [op for op, _ in calls] == ["assume_role_with_saml", "assume_role"]
        assert calls[1][1]["RoleSessionName"] == "alice@example.com"
        idp.saml_assertion.assert_called_once_with()

    def test_configured_session_name_skips_upstream_prefetch(self, fake_sts):
        upstream = Mock()
        provider = AssumeRoleProvider(fake_sts, ROLE_ARN, session_name="ops")
        client = AssumeRoleClient(fake_sts, provider, upstream=upstream)

        client.credentials()
        upstream.credentials_with_context.assert_not_called()

    def test_identity_failure_is_not_fatal(self, fake_sts):
        upstream = Mock()
        upstream.identity.side_effect = InputError("no username provided")
        client = AssumeRoleClient(fake_sts, AssumeRoleProvider(fake_sts, ROLE_ARN), ident=upstream)

        client.credentials()
        assert fake_sts.calls[0][1]["RoleSessionName"].startswith("aws-federation-")


class TestSessionTokenClient:
    def test_credentials_and_identity(self, fake_sts):
        client = SessionTokenClient(fake_sts, SessionTokenProvider(fake_sts))
        client.credentials()
        assert client.identity().username == "alice"
        assert fake_sts.operations() == ["get_session_token", "get_caller_identity"]
