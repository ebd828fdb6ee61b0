"""Per-invocation inventory context."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from sqlalchemy.engine import Engine

from sitesync.cloud.dispatcher import RequestDispatcher
from sitesync.config import Settings, SettingsOptionSource, get_settings
from sitesync.db import init_db, make_engine, make_session_factory
from sitesync.services import CredentialCache, ValueCipher
from sitesync.tracing import EventTracer, Session

if TYPE_CHECKING:
    from sitesync.cloud.interfaces import Provider
    from sitesync.inventory import Site

logger = logging.getLogger(__name__)


class OptionSource(Protocol):
    """Source of invocation options such as ``refresh``."""

    def get(self, name: str) -> Any:
        ...


class InventoryContext:
    """Everything one invocation needs, passed explicitly to each operation.

    Owns the registered providers, the sites known per provider, the local
    store, the credential cache, the HTTP client and the trace session.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        engine: Engine | None = None,
        http_client: httpx.Client | None = None,
        trace: Session | None = None,
        options: OptionSource | None = None,
    ):
        self.settings = settings or get_settings()
        self.engine = engine or make_engine(self.settings)
        init_db(self.engine)
        self.store = make_session_factory(self.engine)
        self.cache = CredentialCache(
            self.store, ValueCipher.from_settings(self.settings)
        )

        self._owns_http_client = http_client is None
        self.http = http_client or httpx.Client(timeout=self.settings.http_timeout)
        self.dispatcher = RequestDispatcher(self.http)

        self.trace = trace or EventTracer.get_instance().create_session()
        self.options = options or SettingsOptionSource(self.settings)

        self.providers: dict[str, "Provider"] = {}
        self.sites: dict[str, dict[str, "Site"]] = {}

    def register(self, provider: "Provider") -> "Provider":
        self.providers[provider.name] = provider
        self.sites.setdefault(provider.name, {})
        return provider

    def provider(self, name: str) -> "Provider":
        """Return the named provider, registering it on first use.

        Raises:
            ValidationError: If no provider has that name.
        """
        from sitesync.cloud.factory import create_provider

        if name not in self.providers:
            self.register(create_provider(name, self))
        return self.providers[name]

    def close(self) -> None:
        self.trace.finalize()
        if self._owns_http_client:
            self.http.close()

    def __enter__(self) -> "InventoryContext":
        return self

    def __exit__(self, exc_type, exc_value, tb) -> None:
        self.close()
