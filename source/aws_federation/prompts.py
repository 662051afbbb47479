# ABOUTME: Interactive username, password and MFA code prompts
# ABOUTME: Single-method input providers injected into IdP and STS clients

"""Interactive input providers."""

from collections.abc import Callable

import questionary

from .errors import InputError

# (username, password) -> (username, password)
CredentialInputProvider = Callable[[str, str], tuple[str, str]]
# () -> code
MfaInputProvider = Callable[[], str]


def _ask(question: questionary.Question, what: str) -> str:
    # ask() returns None on ctrl-c or a closed input stream
    answer = question.ask()
    if answer is None:
        raise InputError(f"no {what} provided")
    return answer


def read_username_password(username: str = "", password: str = "") -> tuple[str, str]:
    """Prompt for whichever of username and password are not already known."""
    if not username:
        username = _ask(questionary.text("Username:"), "username")

    if not password:
        password = _ask(questionary.password("Password:"), "password")

    return username.strip(), password


def read_mfa_code() -> str:
    code = _ask(questionary.text("Enter MFA Code:"), "MFA code")
    return code.strip()
