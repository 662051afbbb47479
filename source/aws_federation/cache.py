# ABOUTME: On-disk and keyring caches for temporary credentials, plus the IdP cookie store
# ABOUTME: Writes are atomic, and unreadable entries are treated as cache misses

"""
Credential and cookie caches.

Cache entries live beside the AWS shared config file, one file per client kind and resolved
profile or role. A missing, corrupt or expired entry is a miss, never an error; a failed write
is logged and otherwise ignored.
"""

import json
import logging
import os
import platform
import tempfile
from http.cookiejar import Cookie
from pathlib import Path

import keyring
from keyring.errors import KeyringError
from requests.cookies import RequestsCookieJar

from .credentials import Credentials
from .utils.arn import is_arn, parse_arn

logger = logging.getLogger(__name__)

KEYRING_SERVICE = "aws-federation"
COOKIE_FILE = ".aws_runas.cookies"

SESSION_TOKEN_PREFIX = ".aws_session_token"
ASSUME_ROLE_PREFIX = ".aws_assume_role"
SAML_ROLE_PREFIX = ".aws_saml_role"
WEB_ROLE_PREFIX = ".aws_web_role"


def cache_path() -> Path:
    """Directory holding cache files, the directory of the AWS shared config file."""
    config_file = os.getenv("AWS_CONFIG_FILE") or str(Path.home() / ".aws" / "config")
    return Path(config_file).expanduser().parent


def cache_key(profile: str | None, role: str | None) -> str:
    """Derive the cache key for a profile or role.

    An explicit profile is used verbatim. Without one, a role ARN becomes
    "{account id}-{last resource path segment}" so every configuration that resolves to the
    same role shares one cache entry.
    """
    if not profile and is_arn(role):
        role_arn = parse_arn(role)
        name = role_arn["resource"].split("/")[-1]
        return f"{role_arn['account']}-{name}"
    return profile or ""


def cache_file_name(prefix: str, profile: str | None, role: str | None) -> Path:
    return cache_path() / f"{prefix}_{cache_key(profile, role)}"


class FileCredentialCache:
    """Credential cache backed by a JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"FileCredentialCache({str(self.path)!r})"

    def load(self) -> Credentials | None:
        """Return the cached credentials, or None if absent, unreadable or expired."""
        try:
            with open(self.path) as f:
                creds = Credentials.from_dict(json.load(f))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.debug(f"ignoring unreadable credential cache {self.path}: {e}")
            return None

        if creds.is_expired():
            logger.debug(f"cached credentials in {self.path} expired at {creds.expiration.isoformat()}")
            return None
        return creds

    def store(self, creds: Credentials) -> None:
        try:
            _atomic_write(self.path, json.dumps(creds.to_dict()))
        except OSError as e:
            logger.debug(f"could not write credential cache {self.path}: {e}")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class KeyringCredentialCache:
    """Credential cache stored in the OS keyring."""

    def __init__(self, name: str, service: str = KEYRING_SERVICE):
        self.name = name
        self.service = service

    def __repr__(self) -> str:
        return f"KeyringCredentialCache({self.name!r})"

    def _entries(self) -> list[str]:
        # Windows Credential Manager limits entry size, so the session token is split in two
        if platform.system() == "Windows":
            return [f"{self.name}-keys", f"{self.name}-token1", f"{self.name}-token2"]
        return [f"{self.name}-credentials"]

    def load(self) -> Credentials | None:
        try:
            if platform.system() == "Windows":
                keys_json, token1, token2 = (keyring.get_password(self.service, e) for e in self._entries())
                if not all([keys_json, token1, token2]):
                    return None
                data = json.loads(keys_json)
                data["SessionToken"] = token1 + token2
            else:
                creds_json = keyring.get_password(self.service, self._entries()[0])
                if not creds_json:
                    return None
                data = json.loads(creds_json)

            creds = Credentials.from_dict(data)
        except (KeyringError, ValueError, KeyError, TypeError) as e:
            logger.debug(f"ignoring unreadable keyring entry {self.name}: {e}")
            return None

        if creds.is_expired():
            return None
        return creds

    def store(self, creds: Credentials) -> None:
        data = creds.to_dict()
        try:
            if platform.system() == "Windows":
                token = data.pop("SessionToken")
                mid = len(token) // 2
                keys, token1, token2 = self._entries()
                keyring.set_password(self.service, keys, json.dumps(data))
                keyring.set_password(self.service, token1, token[:mid])
                keyring.set_password(self.service, token2, token[mid:])
            else:
                keyring.set_password(self.service, self._entries()[0], json.dumps(data))
        except KeyringError as e:
            logger.debug(f"could not write keyring entry {self.name}: {e}")

    def clear(self) -> None:
        for entry in self._entries():
            try:
                keyring.delete_password(self.service, entry)
            except KeyringError as e:
                # nothing stored, or no usable keyring backend
                logger.debug(f"could not delete keyring entry {entry}: {e}")


class CookieStore:
    """Disk persisted cookie jar shared by every IdP client of one installation.

    Use as a context manager to guarantee the jar is flushed:

        with CookieStore(path) as store:
            session = HttpSession(cookies=store.jar)
    """

    _COOKIE_ATTRS = (
        "version",
        "name",
        "value",
        "port",
        "port_specified",
        "domain",
        "domain_specified",
        "domain_initial_dot",
        "path",
        "path_specified",
        "secure",
        "expires",
        "discard",
        "comment",
        "comment_url",
        "rfc2109",
    )

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else cache_path() / COOKIE_FILE
        self.jar = RequestsCookieJar()

    def __enter__(self) -> "CookieStore":
        self.load()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.flush()

    def load(self) -> RequestsCookieJar:
        """Load non-expired cookies from disk into the jar."""
        try:
            with open(self.path) as f:
                saved = json.load(f)
        except FileNotFoundError:
            return self.jar
        except (OSError, ValueError) as e:
            logger.debug(f"ignoring unreadable cookie store {self.path}: {e}")
            return self.jar

        for item in saved if isinstance(saved, list) else []:
            try:
                params = {k: item.get(k) for k in self._COOKIE_ATTRS}
                cookie = Cookie(rest=item.get("rest") or {}, **params)
            except (AttributeError, TypeError) as e:
                logger.debug(f"skipping malformed cookie: {e}")
                continue

            if not cookie.is_expired():
                self.jar.set_cookie(cookie)
        return self.jar

    def flush(self) -> None:
        saved = []
        for cookie in self.jar:
            if cookie.is_expired():
                continue
            item = {k: getattr(cookie, k) for k in self._COOKIE_ATTRS}
            item["rest"] = getattr(cookie, "_rest", {})
            saved.append(item)

        try:
            _atomic_write(self.path, json.dumps(saved))
        except OSError as e:
            logger.debug(f"could not write cookie store {self.path}: {e}")


def _atomic_write(path: Path, data: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(data)
        os.chmod(tmp, 0o600)
        os.replace(tmp, path)
    except OSError:
        Path(tmp).unlink(missing_ok=True)
        raise
