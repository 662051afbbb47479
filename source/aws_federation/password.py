# ABOUTME: Obfuscation codec for IdP passwords kept in the credentials file
# ABOUTME: AES-GCM keyed by the IdP URL, so a stored value only decodes for its own IdP

"""
Password obfuscation.

This keeps plain text passwords out of the credentials file; it is not a substitute for a
secret store, since the key is derived from the (non-secret) IdP URL.
"""

import base64
import binascii
import hashlib
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_SIZE = 12


class PasswordEncoder:
    def __init__(self, key: str | bytes):
        if isinstance(key, str):
            key = key.encode("utf-8")
        self._aesgcm = AESGCM(hashlib.sha256(key).digest())

    def encode(self, password: str) -> str:
        nonce = secrets.token_bytes(NONCE_SIZE)
        ct = self._aesgcm.encrypt(nonce, password.encode("utf-8"), None)
        return base64.urlsafe_b64encode(nonce + ct).decode("ascii")

    def decode(self, encoded: str) -> str:
        """Decode a value produced by encode(), raising ValueError if that's impossible."""
        try:
            raw = base64.urlsafe_b64decode(encoded.encode("ascii"))
        except (binascii.Error, UnicodeEncodeError) as e:
            raise ValueError(f"invalid encoded password: {e}") from e

        if len(raw) <= NONCE_SIZE:
            raise ValueError("invalid encoded password: too short")

        try:
            return self._aesgcm.decrypt(raw[:NONCE_SIZE], raw[NONCE_SIZE:], None).decode("utf-8")
        except (InvalidTag, UnicodeDecodeError) as e:
            raise ValueError("invalid encoded password: decryption failed") from e
