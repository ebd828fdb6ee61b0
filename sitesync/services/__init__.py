"""Application services."""

from sitesync.services.encryption import ValueCipher, cache_key
from sitesync.services.credential_cache import CredentialCache, auth_namespace

__all__ = [
    "ValueCipher",
    "cache_key",
    "CredentialCache",
    "auth_namespace",
]
