# ABOUTME: Value types for SAML assertions and OIDC identity tokens
# ABOUTME: Derives expiry, session name and assumable roles without validating signatures

"""
SAML assertion and OIDC token value types.

Both types are plain strings as received from the identity provider. Derived fields are
parsed lazily on first access; the identity provider is trusted to have signed the data,
STS performs the actual validation when the assertion or token is exchanged.
"""

import base64
import binascii
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import cached_property

import jwt

from .errors import AssertionParseError

SAML_NS = "{urn:oasis:names:tc:SAML:2.0:assertion}"
ROLE_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/Role"
ROLE_SESSION_NAME_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/RoleSessionName"

_FRACTION = re.compile(r"\.\d+")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp as found in SAML documents, always returning an aware datetime."""
    # fractional seconds vary in precision between IdPs, drop them
    ts = datetime.fromisoformat(_FRACTION.sub("", value.strip()).replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class SamlRole:
    """An assumable role advertised in a SAML assertion."""

    role_arn: str
    provider_arn: str

    def __str__(self) -> str:
        return f"{self.role_arn},{self.provider_arn}"


class SamlAssertion(str):
    """A base64 encoded SAML assertion as found in the SAMLResponse form field."""

    @cached_property
    def _document(self) -> ET.Element:
        if not self:
            raise AssertionParseError("empty SAML assertion")

        try:
            xml = base64.b64decode(self, validate=False)
            return ET.fromstring(xml)
        except (binascii.Error, ValueError, ET.ParseError) as e:
            raise AssertionParseError(f"invalid SAML assertion: {e}") from e

    def decode(self) -> str:
        """Return the decoded XML document."""
        try:
            return base64.b64decode(self).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise AssertionParseError(f"invalid SAML assertion: {e}") from e

    def _attribute_values(self, name: str) -> list[str]:
        values = []
        for attr in self._document.iter(f"{SAML_NS}Attribute"):
            if attr.get("Name") == name:
                for value in attr.iter(f"{SAML_NS}AttributeValue"):
                    if value.text:
                        values.append(value.text.strip())
        return values

    def expires_at(self) -> datetime:
        """Return the NotOnOrAfter time of the assertion.

        The assertion Conditions element is preferred, the subject confirmation data is used
        when an IdP omits the conditions.
        """
        for tag in ("Conditions", "SubjectConfirmationData"):
            for elem in self._document.iter(f"{SAML_NS}{tag}"):
                value = elem.get("NotOnOrAfter")
                if value:
                    try:
                        return parse_timestamp(value)
                    except ValueError as e:
                        raise AssertionParseError(f"invalid NotOnOrAfter value '{value}'") from e
        raise AssertionParseError("SAML assertion has no expiration")

    def is_expired(self, now: datetime | None = None) -> bool:
        if not self:
            return True
        now = now or datetime.now(timezone.utc)
        return self.expires_at() <= now

    def role_session_name(self) -> str:
        values = self._attribute_values(ROLE_SESSION_NAME_ATTRIBUTE)
        if not values:
            raise AssertionParseError("RoleSessionName attribute not found in SAML assertion")
        return values[0]

    def role_details(self) -> list[SamlRole]:
        """Return the roles in the assertion, in document order.

        Role attribute values should be "role,principal", although plenty of IdP documentation
        lists them the other way around, so the pair is normalized.
        """
        roles = []
        for value in self._attribute_values(ROLE_ATTRIBUTE):
            parts = [p.strip() for p in value.split(",")]
            if len(parts) != 2:
                continue

            role, principal = parts
            if ":saml-provider/" in role:
                role, principal = principal, role
            roles.append(SamlRole(role, principal))
        return roles

    def provider_arn(self, role_arn: str) -> str | None:
        """Return the SAML provider ARN paired with role_arn in this assertion."""
        for r in self.role_details():
            if r.role_arn == role_arn:
                return r.provider_arn
        return None


class OidcIdentityToken(str):
    """An OIDC identity (or JWT access) token returned by the token endpoint."""

    @cached_property
    def claims(self) -> dict:
        if not self:
            raise AssertionParseError("empty identity token")

        try:
            return jwt.decode(self, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            raise AssertionParseError(f"invalid identity token: {e}") from e

    def expires_at(self) -> datetime:
        exp = self.claims.get("exp")
        if exp is None:
            raise AssertionParseError("identity token has no exp claim")
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)

    def is_expired(self, now: datetime | None = None) -> bool:
        if not self:
            return True
        now = now or datetime.now(timezone.utc)
        return self.expires_at() <= now

    def username(self) -> str:
        claims = self.claims
        return claims.get("preferred_username") or claims.get("email") or claims.get("sub", "")
