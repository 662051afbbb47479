# ABOUTME: Secure identity provider detection from an IdP URL
# ABOUTME: Matches on parsed hostnames so path or prefix tricks can't select a vendor

from urllib.parse import urlparse

# hostname suffix -> vendor
KNOWN_PROVIDER_DOMAINS = {
    "okta.com": "okta",
    "oktapreview.com": "okta",
    "onelogin.com": "onelogin",
    "auth0.com": "auth0",
    "microsoftonline.com": "azure",
    "windows.net": "azure",
    "amazoncognito.com": "cognito",
}


def detect_provider_type_secure(url: str, default: str = "generic") -> str:
    """
    Securely detect the identity provider vendor from its URL.

    Uses proper URL parsing to prevent security vulnerabilities like:
    - Path injection (evil.com/okta.com)
    - Subdomain bypass (okta.com.evil.com)
    - Prefix attacks (not-okta.com)

    Args:
        url: The identity provider URL or hostname
        default: Vendor returned when the hostname is not recognized

    Returns:
        Provider type: "okta", "onelogin", "auth0", "azure", "cognito", or `default`
    """
    if not url:
        return default

    # Handle both full URLs and domain-only inputs
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"

    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return default

    if not hostname:
        return default

    hostname_lower = hostname.lower()

    # Using endswith with leading dot prevents bypass attacks
    for domain, provider in KNOWN_PROVIDER_DOMAINS.items():
        if hostname_lower == domain or hostname_lower.endswith(f".{domain}"):
            return provider
    return default


def is_http_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)
