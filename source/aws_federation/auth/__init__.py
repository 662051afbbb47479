# ABOUTME: Identity provider clients for SAML and OIDC federation
# ABOUTME: Selects the vendor profile for a client from configuration or the IdP URL

"""Identity provider clients."""

from ..transport import HttpSession
from .base import MFA_TYPE_AUTO, MFA_TYPE_CODE, MFA_TYPE_NONE, MFA_TYPES, AuthenticationConfig, BaseClient, OAuthToken
from .oidc import OidcClient
from .saml import SamlClient
from .vendors import VENDORS, Vendor, get_vendor


def get_saml_client(url: str, config: AuthenticationConfig, http: HttpSession | None = None) -> SamlClient:
    return SamlClient(url, config, get_vendor(config.identity_provider_name, url), http=http)


def get_oidc_client(url: str, config: AuthenticationConfig, http: HttpSession | None = None) -> OidcClient:
    return OidcClient(url, config, get_vendor(config.identity_provider_name, url), http=http)


__all__ = [
    "AuthenticationConfig",
    "BaseClient",
    "MFA_TYPES",
    "MFA_TYPE_AUTO",
    "MFA_TYPE_CODE",
    "MFA_TYPE_NONE",
    "OAuthToken",
    "OidcClient",
    "SamlClient",
    "VENDORS",
    "Vendor",
    "get_oidc_client",
    "get_saml_client",
    "get_vendor",
]
