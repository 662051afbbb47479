# ABOUTME: Tests for SAML assertion and OIDC token parsing
# ABOUTME: Covers expiry, role extraction and session names

import base64
from datetime import datetime, timedelta, timezone

import pytest

from aws_federation.errors import AssertionParseError
from aws_federation.tokens import OidcIdentityToken, SamlAssertion, SamlRole, parse_timestamp
from conftest import PROVIDER_ARN, ROLE_ARN, build_assertion, build_token


class TestParseTimestamp:
    def test_fractional_seconds_and_zulu(self):
        ts = parse_timestamp("2026-10-19T12:30:00.123456Z")
        assert ts == datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_timestamp("2026-10-19T12:30:00").tzinfo == timezone.utc

    def test_offset_preserved(self):
        ts = parse_timestamp("2026-10-19T14:30:00+02:00")
        assert ts == datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)


class TestSamlAssertion:
    def test_expires_at_from_conditions(self):
        expires = datetime(2030, 1, 1, 8, 0, 0, 500000, tzinfo=timezone.utc)
        saml = SamlAssertion(build_assertion(expires=expires))
        assert saml.expires_at() == expires.replace(microsecond=0)
        assert not saml.is_expired()

    def test_expired_at_exact_instant(self):
        expires = datetime(2030, 1, 1, tzinfo=timezone.utc)
        saml = SamlAssertion(build_assertion(expires=expires))
        assert saml.is_expired(now=expires)
        assert not saml.is_expired(now=expires - timedelta(seconds=1))

    def test_empty_assertion_is_expired(self):
        assert SamlAssertion("").is_expired()

    def test_role_details(self):
        saml = SamlAssertion(build_assertion())
        assert saml.role_details() == [SamlRole(ROLE_ARN, PROVIDER_ARN)]
        assert saml.provider_arn(ROLE_ARN) == PROVIDER_ARN
        assert saml.provider_arn("arn:aws:iam::123456789012:role/Other") is None

    def test_role_details_reversed_pair(self):
        saml = SamlAssertion(build_assertion(roles=[f"{PROVIDER_ARN},{ROLE_ARN}"]))
        assert saml.role_details() == [SamlRole(ROLE_ARN, PROVIDER_ARN)]

    def test_role_session_name(self):
        saml = SamlAssertion(build_assertion(session_name="bob@example.com"))
        assert saml.role_session_name() == "bob@example.com"

    def test_decode(self):
        assert "RoleSessionName" in SamlAssertion(build_assertion()).decode()

    def test_malformed_xml(self):
        saml = SamlAssertion(base64.b64encode(b"<not-closed").decode())
        with pytest.raises(AssertionParseError):
            saml.expires_at()

    def test_missing_expiry(self):
        xml = b'<saml:Assertion xmlns:saml="urn:oasis:names:tc:SAML:2.0:assertion"/>'
        saml = SamlAssertion(base64.b64encode(xml).decode())
        with pytest.raises(AssertionParseError, match="no expiration"):
            saml.is_expired()


class TestOidcIdentityToken:
    def test_claims_without_signature_check(self):
        token = OidcIdentityToken(build_token(email="alice@example.com"))
        assert token.claims["email"] == "alice@example.com"
        assert not token.is_expired()

    def test_expired_token(self):
        token = OidcIdentityToken(build_token(expires_in=-60))
        assert token.is_expired()

    def test_username_preference(self):
        assert OidcIdentityToken(build_token(preferred_username="alice", email="a@x.com")).username() == "alice"
        assert OidcIdentityToken(build_token(email="a@x.com")).username() == "a@x.com"
        assert OidcIdentityToken(build_token()).username() == "00u1234"

    def test_invalid_token(self):
        with pytest.raises(AssertionParseError):
            OidcIdentityToken("not-a-jwt").claims
