# ABOUTME: Shared fixtures for the aws-federation test suite
# ABOUTME: Builds SAML assertions, identity tokens, fake STS clients and HTTP responses

import base64
import io
from datetime import datetime, timedelta, timezone

import jwt
import pytest
import requests

ROLE_ARN = "arn:aws:iam::123456789012:role/Admin"
JUMP_ROLE_ARN = "arn:aws:iam::111111111111:role/Jump"
PROVIDER_ARN = "arn:aws:iam::123456789012:saml-provider/ExampleIdP"
JWT_KEY = "test-signing-key-with-enough-bytes-0123456789"


def build_assertion(roles=None, expires=None, session_name="alice@example.com") -> str:
    """Base64 encoded SAML response granting each (role, provider) pair in roles."""
    roles = roles if roles is not None else [f"{ROLE_ARN},{PROVIDER_ARN}"]
    expires = expires or datetime.now(timezone.utc) + timedelta(minutes=5)

    values = "".join(f"<saml:AttributeValue>{r}</saml:AttributeValue>" for r in roles)
    xml = f"""<samlp:Response xmlns:samlp="urn:oasis:names:tc:SAML:2.0:protocol"
    xmlns:saml="urn:oasis:names:tc:SAML:2.0:assertion">
  <saml:Assertion>
    <saml:Conditions NotOnOrAfter="{expires.strftime('%Y-%m-%dT%H:%M:%S.%fZ')}"/>
    <saml:AttributeStatement>
      <saml:Attribute Name="https://aws.amazon.com/SAML/Attributes/RoleSessionName">
        <saml:AttributeValue>{session_name}</saml:AttributeValue>
      </saml:Attribute>
      <saml:Attribute Name="https://aws.amazon.com/SAML/Attributes/Role">{values}</saml:Attribute>
    </saml:AttributeStatement>
  </saml:Assertion>
</samlp:Response>"""
    return base64.b64encode(xml.encode("utf-8")).decode("ascii")


def saml_form(assertion: str) -> str:
    return (
        '<html><body><form method="post" action="https://signin.aws.amazon.com/saml">'
        f'<input type="hidden" name="SAMLResponse" value="{assertion}"/>'
        "</form></body></html>"
    )


def build_token(expires_in: int = 300, **claims) -> str:
    payload = {"sub": "00u1234", "exp": int(datetime.now(timezone.utc).timestamp()) + expires_in}
    payload.update(claims)
    return jwt.encode(payload, JWT_KEY, algorithm="HS256")


def make_response(status=200, body=b"", headers=None, url="https://idp.example.com/", reason="OK"):
    """A real requests.Response reading its body from memory."""
    if isinstance(body, str):
        body = body.encode("utf-8")

    res = requests.Response()
    res.status_code = status
    res.reason = reason
    res.raw = io.BytesIO(body)
    res.headers.update(headers or {})
    res.url = url
    return res


def sts_credentials(expiration=None, key_id="ASIAEXAMPLE"):
    return {
        "Credentials": {
            "AccessKeyId": key_id,
            "SecretAccessKey": "secret",
            "SessionToken": "session-token",
            "Expiration": expiration or datetime.now(timezone.utc) + timedelta(hours=1),
        }
    }


class FakeSTSClient:
    """Records calls and answers with fresh credentials, or raises `error`.

    Clients may share one `calls` list to record the order of operations across a role chain.
    A `credential_source` is called before each operation, the way botocore resolves
    credentials to sign a request.
    """

    def __init__(self, error=None, arn="arn:aws:iam::123456789012:user/alice", calls=None, credential_source=None):
        self.calls: list[tuple[str, dict]] = calls if calls is not None else []
        self.error = error
        self.arn = arn
        self.credential_source = credential_source

    def _respond(self, operation, kwargs):
        if self.credential_source is not None:
            self.credential_source()
        self.calls.append((operation, kwargs))
        if self.error is not None:
            raise self.error
        return sts_credentials(key_id=f"ASIA{len(self.calls):04d}")

    def assume_role_with_saml(self, **kwargs):
        return self._respond("assume_role_with_saml", kwargs)

    def assume_role_with_web_identity(self, **kwargs):
        return self._respond("assume_role_with_web_identity", kwargs)

    def assume_role(self, **kwargs):
        return self._respond("assume_role", kwargs)

    def get_session_token(self, **kwargs):
        return self._respond("get_session_token", kwargs)

    def get_caller_identity(self):
        self.calls.append(("get_caller_identity", {}))
        return {"Arn": self.arn, "Account": self.arn.split(":")[4], "UserId": "AIDAEXAMPLE"}

    def operations(self) -> list[str]:
        return [op for op, _ in self.calls]


@pytest.fixture
def aws_dir(tmp_path, monkeypatch):
    """Point AWS_CONFIG_FILE, and so every cache file, at a temporary directory."""
    config_file = tmp_path / "config"
    config_file.touch()
    monkeypatch.setenv("AWS_CONFIG_FILE", str(config_file))
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("AWS_REGION", raising=False)
    monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
    return tmp_path


@pytest.fixture
def fake_sts():
    return FakeSTSClient()
