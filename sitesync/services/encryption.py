"""Encryption of credential values cached in the local store."""

import base64
import hashlib

from cryptography.fernet import Fernet

from sitesync.config import Settings


def cache_key(settings: Settings) -> bytes:
    """Fernet key for the credential cache of ``settings``.

    ``token_encryption_key`` is used as-is when set. Otherwise the key is
    derived from ``secret_key``, so the same settings always read back what
    they wrote.
    """
    if settings.token_encryption_key:
        return settings.token_encryption_key.encode()
    # SHA-256 gives the 32 bytes Fernet wants, base64-encoded
    digest = hashlib.sha256(settings.secret_key.encode()).digest()
    return base64.urlsafe_b64encode(digest)


class ValueCipher:
    """Encrypts cache values with one Fernet key."""

    def __init__(self, key: bytes):
        self._fernet = Fernet(key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ValueCipher":
        return cls(cache_key(settings))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a stored value.

        Raises:
            cryptography.fernet.InvalidToken: If the value was not written
                with this key.
        """
        return self._fernet.decrypt(ciphertext.encode()).decode()
