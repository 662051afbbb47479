# ABOUTME: SAML identity provider client
# ABOUTME: Retrieves and holds the SAML assertion used for AssumeRoleWithSAML

from ..identity import Identity, Roles
from ..tokens import SamlAssertion
from .base import BaseClient


class SamlClient(BaseClient):
    """Client for an IdP which hands out SAML assertions from its SSO URL."""

    def saml_assertion(self) -> SamlAssertion:
        """Return a valid SAML assertion, contacting the IdP only when the held one has expired.

        An empty assertion means the IdP response held no SAMLResponse, i.e. the user is not
        (yet) authenticated.
        """
        if self.vendor.basic_auth and not self._held_assertion_valid():
            self.gather_credentials()

        self.saml_request()
        return self.saml or SamlAssertion("")

    def identity(self) -> Identity:
        return super().identity(self.vendor.identity_provider)

    def roles(self) -> Roles:
        """Roles advertised in the SAML assertion, fetching one if none is held."""
        self.saml_assertion()
        return super().roles()
