# ABOUTME: Exception hierarchy for federated credential acquisition
# ABOUTME: Separates configuration, transport, protocol, input and STS failures

"""Custom exceptions for identity provider and credential operations."""


class FederationError(Exception):
    """Base exception for all federation operations."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(FederationError):
    """Raised when the resolved configuration is unusable."""

    pass


class TransportError(FederationError):
    """Raised when an HTTP round trip to the identity provider fails."""

    def __init__(self, message: str, url: str | None = None, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class RedirectError(TransportError):
    """Raised when a redirect target could not be requested.

    The `url` attribute holds the redirect target which failed, including its query string.
    """

    def __init__(self, url: str, cause: Exception):
        super().__init__(f"redirect to {url} failed: {cause}", url=url)
        self.cause = cause


class ProtocolError(FederationError):
    """Raised when an identity provider response does not have the expected shape."""

    pass


class AssertionParseError(ProtocolError):
    """Raised when a SAML assertion can not be decoded."""

    pass


class UnsupportedOperationError(FederationError):
    """Raised when a client is asked for something its protocol can not provide."""

    pass


class InputError(FederationError):
    """Raised when interactive input could not be read."""

    pass


class CredentialProviderError(FederationError):
    """Raised when the role assumption or session token call fails."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


class OperationCancelledError(FederationError):
    """Raised when a cancelled context is observed between round trips."""

    pass
