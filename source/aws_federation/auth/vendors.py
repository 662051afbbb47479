# ABOUTME: Identity provider vendor profiles: redirect policy, OAuth endpoints and SAML parsing
# ABOUTME: Vendors are data, composed over the shared SAML and PKCE primitives

"""
Identity provider vendors.

IdP vendors differ in how their authorization redirects may be followed: some must be
followed automatically until the (unreachable) OAuth redirect URI is hit, others must not be
followed at all and answer with a 302 to the redirect URI. Each vendor records which mode
works, along with its endpoints relative to the configured IdP URL.
"""

from collections.abc import Callable
from dataclasses import dataclass

from bs4 import BeautifulSoup

from ..errors import ConfigurationError
from ..utils.url_validation import detect_provider_type_secure


def find_saml_response(html: str) -> str | None:
    """Return the value of the first SAMLResponse input in an HTML document."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all("input"):
        if tag.get("name") == "SAMLResponse":
            return tag.get("value", "")
    return None


@dataclass(frozen=True)
class Vendor:
    name: str
    display_name: str
    follow_redirect: bool
    authorize_endpoint: str = "/authorize"
    token_endpoint: str = "/token"
    basic_auth: bool = False  # send username and password as HTTP basic auth
    mfa_param: str = ""  # request parameter carrying an MFA code, empty if the vendor takes none
    parse_saml_response: Callable[[str], str | None] = find_saml_response

    @property
    def identity_provider(self) -> str:
        return f"{self.display_name.replace(' ', '')}IdentityProvider"

    def authorize_url(self, base_url: str) -> str:
        return base_url.rstrip("/") + self.authorize_endpoint

    def token_url(self, base_url: str) -> str:
        return base_url.rstrip("/") + self.token_endpoint


VENDORS = {
    "okta": Vendor(
        name="okta",
        display_name="Okta",
        follow_redirect=True,
        authorize_endpoint="/oauth2/v1/authorize",
        token_endpoint="/oauth2/v1/token",
    ),
    "onelogin": Vendor(
        name="onelogin",
        display_name="OneLogin",
        follow_redirect=True,
        authorize_endpoint="/oidc/2/auth",
        token_endpoint="/oidc/2/token",
    ),
    "auth0": Vendor(
        name="auth0",
        display_name="Auth0",
        follow_redirect=False,
        authorize_endpoint="/authorize",
        token_endpoint="/oauth/token",
    ),
    "azure": Vendor(
        name="azure",
        display_name="Azure AD",
        follow_redirect=False,
        authorize_endpoint="/oauth2/v2.0/authorize",
        token_endpoint="/oauth2/v2.0/token",
    ),
    "cognito": Vendor(
        name="cognito",
        display_name="Cognito",
        follow_redirect=False,
        authorize_endpoint="/oauth2/authorize",
        token_endpoint="/oauth2/token",
    ),
    "keycloak": Vendor(
        name="keycloak",
        display_name="Keycloak",
        follow_redirect=False,
        authorize_endpoint="/protocol/openid-connect/auth",
        token_endpoint="/protocol/openid-connect/token",
    ),
    "generic": Vendor(
        name="generic",
        display_name="Generic",
        follow_redirect=False,
        basic_auth=True,
        mfa_param="otp",
    ),
}


def get_vendor(name: str | None, url: str) -> Vendor:
    """Look up a vendor by configured name, falling back to detection from the IdP URL."""
    if name:
        key = name.lower()
        if key in ("azuread", "microsoft"):
            key = "azure"
        if key not in VENDORS:
            raise ConfigurationError(f"Unknown identity provider '{name}'. Valid providers: {', '.join(VENDORS.keys())}")
        return VENDORS[key]
    return VENDORS[detect_provider_type_secure(url, default="generic")]
