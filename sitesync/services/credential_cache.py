"""Namespaced credential cache backed by the local store."""

import fnmatch
import logging

from cryptography.fernet import InvalidToken
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from sitesync.models import CacheEntry
from sitesync.services.encryption import ValueCipher

logger = logging.getLogger(__name__)


def auth_namespace(provider_name: str) -> str:
    """Namespace holding the auth values of one provider."""
    return f"sitesync-auth-{provider_name}"


class CredentialCache:
    """Key/value cache of credentials and session values.

    Entries are keyed by (name, namespace). Store failures are logged and
    reported as missing values; they never propagate.
    """

    def __init__(self, session_factory: sessionmaker[Session], cipher: ValueCipher):
        self._session_factory = session_factory
        self._cipher = cipher

    def get(self, key: str, namespace: str) -> str | None:
        """Return the cached value, or None when absent or unreadable."""
        try:
            with self._session_factory() as db:
                entry = db.execute(
                    select(CacheEntry).where(
                        CacheEntry.name == key, CacheEntry.namespace == namespace
                    )
                ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read {namespace}/{key} from cache: {e}")
            return None

        if entry is None:
            return None
        try:
            return self._cipher.decrypt(entry.value_encrypted)
        except InvalidToken:
            logger.warning(f"Cached value {namespace}/{key} could not be decrypted")
            return None

    def set(self, key: str, namespace: str, value: str) -> bool:
        """Store ``value``, replacing any existing entry."""
        return self.replace(namespace, {key: value}, clear_pattern=None)

    def clear(self, pattern: str, namespace: str) -> bool:
        """Delete every entry in ``namespace`` whose name matches ``pattern``."""
        return self.replace(namespace, {}, clear_pattern=pattern)

    def replace(
        self,
        namespace: str,
        values: dict[str, str],
        clear_pattern: str | None = "*",
    ) -> bool:
        """Clear matching entries and write ``values`` in one transaction.

        Either every change lands or none does.

        Returns:
            True if the transaction committed.
        """
        with self._session_factory() as db:
            try:
                entries = db.execute(
                    select(CacheEntry).where(CacheEntry.namespace == namespace)
                ).scalars().all()
                existing = {}
                for entry in entries:
                    if clear_pattern is not None and fnmatch.fnmatchcase(
                        entry.name, clear_pattern
                    ):
                        db.delete(entry)
                    else:
                        existing[entry.name] = entry
                db.flush()

                for key, value in values.items():
                    entry = existing.get(key)
                    if entry is None:
                        entry = CacheEntry(name=key, namespace=namespace)
                        db.add(entry)
                    entry.value_encrypted = self._cipher.encrypt(value)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to update cache namespace {namespace}: {e}")
                return False
        return True
