"""Tests for the namespaced credential cache."""

import unittest
from unittest.mock import MagicMock

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy import create_engine, select
from sqlalchemy.exc import OperationalError

from sitesync.cloud.interfaces import AuthSession
from sitesync.config import Settings
from sitesync.context import InventoryContext
from sitesync.models import CacheEntry
from sitesync.services.credential_cache import CredentialCache, auth_namespace
from sitesync.services.encryption import ValueCipher, cache_key
from tests.base import InventoryTestCase

NAMESPACE = auth_namespace("acquia")


class TestCredentialCache(InventoryTestCase):
    """Tests for get/set/clear."""

    def setUp(self):
        super().setUp()
        self.cache = self.context.cache

    def test_namespace_format(self):
        self.assertEqual(NAMESPACE, "sitesync-auth-acquia")

    def test_missing_value(self):
        self.assertIsNone(self.cache.get("email", NAMESPACE))

    def test_set_then_get(self):
        self.assertTrue(self.cache.set("email", NAMESPACE, "me@example.com"))
        self.assertEqual(self.cache.get("email", NAMESPACE), "me@example.com")

    def test_set_overwrites(self):
        self.cache.set("email", NAMESPACE, "old@example.com")
        self.cache.set("email", NAMESPACE, "new@example.com")

        self.assertEqual(self.cache.get("email", NAMESPACE), "new@example.com")
        with self.context.store() as db:
            count = len(db.execute(select(CacheEntry)).scalars().all())
        self.assertEqual(count, 1)

    def test_namespaces_are_isolated(self):
        self.cache.set("email", NAMESPACE, "acquia@example.com")
        self.cache.set("email", auth_namespace("pantheon"), "pantheon@example.com")

        self.assertEqual(self.cache.get("email", NAMESPACE), "acquia@example.com")
        self.cache.clear("*", auth_namespace("pantheon"))
        self.assertEqual(self.cache.get("email", NAMESPACE), "acquia@example.com")

    def test_clear_by_pattern(self):
        self.cache.set("session", NAMESPACE, "s")
        self.cache.set("session_expiry", NAMESPACE, "e")
        self.cache.set("email", NAMESPACE, "me@example.com")

        self.cache.clear("session*", NAMESPACE)

        self.assertIsNone(self.cache.get("session", NAMESPACE))
        self.assertIsNone(self.cache.get("session_expiry", NAMESPACE))
        self.assertEqual(self.cache.get("email", NAMESPACE), "me@example.com")

    def test_values_encrypted_at_rest(self):
        self.cache.set("password", NAMESPACE, "secret-key")

        with self.context.store() as db:
            entry = db.execute(select(CacheEntry)).scalar_one()
        self.assertNotIn("secret-key", entry.value_encrypted)

    def test_undecryptable_value_reads_as_missing(self):
        with self.context.store() as db:
            db.add(CacheEntry(name="session", namespace=NAMESPACE, value_encrypted="junk"))
            db.commit()

        with self.assertLogs("sitesync.services.credential_cache", level="WARNING"):
            self.assertIsNone(self.cache.get("session", NAMESPACE))

    def test_replace_is_wholesale(self):
        self.cache.set("password", NAMESPACE, "old")
        self.cache.replace(NAMESPACE, {"email": "me@example.com"})

        self.assertIsNone(self.cache.get("password", NAMESPACE))
        self.assertEqual(self.cache.get("email", NAMESPACE), "me@example.com")


class TestCacheKeys(InventoryTestCase):
    """Tests that each context encrypts with the key from its own settings."""

    def _stored_value(self, context: InventoryContext) -> str:
        context.cache.set("password", NAMESPACE, "secret-key")
        with context.store() as db:
            return db.execute(select(CacheEntry)).scalar_one().value_encrypted

    def _context(self, settings: Settings) -> InventoryContext:
        engine = create_engine("sqlite://")
        self.addCleanup(engine.dispose)
        context = InventoryContext(
            settings=settings, engine=engine, http_client=self.http, trace=self.trace
        )
        self.addCleanup(context.close)
        return context

    def test_key_derived_from_context_secret(self):
        settings = Settings(_env_file=None, secret_key="context-secret")
        stored = self._stored_value(self._context(settings))

        self.assertEqual(ValueCipher.from_settings(settings).decrypt(stored), "secret-key")
        with self.assertRaises(InvalidToken):
            ValueCipher.from_settings(
                Settings(_env_file=None, secret_key="other-secret")
            ).decrypt(stored)

    def test_explicit_encryption_key_wins(self):
        key = Fernet.generate_key()
        settings = Settings(
            _env_file=None, secret_key="context-secret", token_encryption_key=key.decode()
        )
        stored = self._stored_value(self._context(settings))

        self.assertEqual(cache_key(settings), key)
        self.assertEqual(Fernet(key).decrypt(stored.encode()), b"secret-key")


class TestCredentialCacheFailures(unittest.TestCase):
    """Tests that store failures do not propagate."""

    def setUp(self):
        db = MagicMock()
        db.__enter__.return_value = db
        db.execute.side_effect = OperationalError("SELECT", {}, Exception("locked"))
        cipher = ValueCipher(Fernet.generate_key())
        self.cache = CredentialCache(MagicMock(return_value=db), cipher)

    def test_get_failure_returns_none(self):
        with self.assertLogs("sitesync.services.credential_cache", level="ERROR"):
            self.assertIsNone(self.cache.get("email", NAMESPACE))

    def test_replace_failure_returns_false(self):
        with self.assertLogs("sitesync.services.credential_cache", level="ERROR"):
            self.assertFalse(self.cache.replace(NAMESPACE, {"email": "x"}))


class TestAuthSession(InventoryTestCase):
    """Tests for loading and storing provider auth state."""

    def test_static_credentials_are_valid(self):
        auth = AuthSession(provider="acquia", email="me@example.com", password="k")
        self.assertTrue(auth.is_valid)

    def test_partial_session_is_invalid(self):
        auth = AuthSession(provider="pantheon", session="SSESSabc=xyz")
        self.assertFalse(auth.is_valid)

    def test_store_and_load(self):
        auth = AuthSession(
            provider="pantheon",
            email="me@example.com",
            session="SSESSabc=xyz",
            user_uuid="1234abcd-1234-1234-1234-1234567890ab",
        )
        self.assertTrue(auth.store(self.context.cache))

        self.assertEqual(AuthSession.load(self.context.cache, "pantheon"), auth)


if __name__ == "__main__":
    unittest.main()
