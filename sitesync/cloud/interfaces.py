"""Abstract interfaces for hosting providers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from sitesync.errors import SitesyncError
from sitesync.services.credential_cache import CredentialCache, auth_namespace
from sitesync.tracing import Session

if TYPE_CHECKING:
    from sitesync.context import InventoryContext
    from sitesync.inventory import Environment, Site

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    """States of a session login."""

    ANONYMOUS = "anonymous"
    FORM_RETRIEVED = "form_retrieved"
    AUTHENTICATING = "authenticating"
    SESSION_ESTABLISHED = "session_established"
    FAILED = "failed"


class LoginFailure(str, Enum):
    """Why a login ended in the FAILED state."""

    ENDPOINT_UNAVAILABLE = "endpoint_unavailable"
    LOGIN_UNAVAILABLE = "login_unavailable"
    LOGIN_FAILURE = "login_failure"
    NO_SESSION = "no_session"
    NO_UUID = "no_uuid"
    STORE_FAILURE = "store_failure"


@dataclass
class ResourceRequest:
    """Description of one outbound API call, relative to a provider endpoint."""

    method: str
    resource: str  # e.g. "/sites"
    segments: tuple[str, ...] = ()
    data: dict[str, str] | None = None


@dataclass
class LoginResult:
    """Terminal outcome of a login attempt."""

    state: AuthState
    failure: LoginFailure | None = None
    message: str = ""
    session: str | None = None
    user_uuid: str | None = None

    @property
    def ok(self) -> bool:
        return self.state == AuthState.SESSION_ESTABLISHED


@dataclass
class AuthSession:
    """Cached login/credential state of one provider."""

    provider: str
    email: str | None = None
    password: str | None = None
    session: str | None = None
    user_uuid: str | None = None

    KEYS = ("email", "password", "session", "user_uuid")

    @property
    def namespace(self) -> str:
        return auth_namespace(self.provider)

    @property
    def is_valid(self) -> bool:
        """True when a static credential pair or a full session is present."""
        if self.session or self.user_uuid:
            return bool(self.session and self.user_uuid)
        return bool(self.email and self.password)

    @classmethod
    def load(cls, cache: CredentialCache, provider: str) -> "AuthSession":
        namespace = auth_namespace(provider)
        return cls(
            provider=provider,
            **{key: cache.get(key, namespace) for key in cls.KEYS},
        )

    def store(self, cache: CredentialCache) -> bool:
        """Replace everything cached for this provider with this session."""
        values = {key: getattr(self, key) for key in self.KEYS}
        return cache.replace(
            self.namespace, {k: v for k, v in values.items() if v is not None}
        )


@dataclass
class SiteData:
    """One site as parsed from a provider's list response."""

    name: str
    values: dict[str, Any] = field(default_factory=dict)


class Provider(ABC):
    """Abstract interface for a hosting provider.

    Subclasses set ``name``, ``label``, ``homepage`` and ``endpoint`` and
    implement the request/parse half of each operation. Registration of
    parsed sites and environments in the context is shared here.
    """

    name: str = ""
    label: str = ""
    homepage: str = ""
    endpoint: str = ""

    def __init__(self, context: "InventoryContext", endpoint: str | None = None):
        self.context = context
        if endpoint:
            self.endpoint = endpoint.rstrip("/")

    @property
    def sites(self) -> dict[str, "Site"]:
        """Sites of this provider known to the current invocation, by name."""
        return self.context.sites.setdefault(self.name, {})

    @property
    def cache(self) -> CredentialCache:
        return self.context.cache

    @property
    def namespace(self) -> str:
        return auth_namespace(self.name)

    @abstractmethod
    def fetch_site_list(self, session: Session | None = None) -> list[SiteData]:
        """Request the remote site list and parse it."""
        ...

    @abstractmethod
    def field_fetch(self, site_name: str, field_name: str) -> Any | None:
        """Fetch one field of one site. Returns None when unavailable."""
        ...

    @abstractmethod
    def auth_options(self) -> dict[str, Any]:
        """Transport parameters merged into every outbound call."""
        ...

    def fetch_environment_list(self, site: "Site") -> dict[str, dict[str, Any]]:
        """Request the remote environments of ``site``, keyed by name."""
        return {}

    def list_sites(self, session: Session | None = None) -> dict[str, "Site"]:
        """Sync the remote site list into the context and the local store.

        Raises:
            TransportError: If the list request fails.
            ParseError: If the response has an unexpected shape.
        """
        session = session or self.context.trace
        with session.span(f"{self.name}: list sites"):
            for data in self.fetch_site_list(session=session):
                site = self.site(data.name)
                for key, value in data.values.items():
                    site.set(key, value)
                site.save()
                session.log("Synced site", provider=self.name, site=site.name)
        return self.sites

    def list_environments(self, site: "Site") -> dict[str, "Environment"]:
        """Sync the remote environments of ``site`` into it and the store."""
        from sitesync.inventory import Environment

        if site.id is None:
            site.save()
        for env_name, values in self.fetch_environment_list(site).items():
            environment = site.environments.get(env_name)
            if environment is None:
                environment = Environment.load(self.context, site, env_name)
            for key, value in values.items():
                environment.set(key, value)
            environment.save()
            site.environment_add(environment)
        return site.environments

    def environment_field_fetch(
        self, site_name: str, environment_name: str, field_name: str
    ) -> Any | None:
        """Fetch one field of one environment. Returns None when unavailable."""
        try:
            environments = self.list_environments(self.site(site_name))
        except SitesyncError as e:
            logger.warning(
                f"Could not fetch {field_name} of {site_name}.{environment_name} "
                f"from {self.name}: {e}"
            )
            return None
        environment = environments.get(environment_name)
        if environment is None:
            return None
        return environment.cached(field_name)

    def site(self, site_name: str) -> "Site":
        """Return the named site, loading it from the store on first use."""
        from sitesync.inventory import Site

        if site_name not in self.sites:
            self.sites[site_name] = Site.load(self.context, self.name, site_name)
        return self.sites[site_name]

    def auth_session(self) -> AuthSession:
        return AuthSession.load(self.cache, self.name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} {self.endpoint}>"


class Authenticatable(ABC):
    """Optional capability of providers with a session login."""

    @abstractmethod
    def login(
        self, email: str, password: str, session: Session | None = None
    ) -> LoginResult:
        """Log in and cache the resulting session. Never raises."""
        ...

    @abstractmethod
    def is_logged_in(self) -> bool:
        """Whether a session token is cached. Does not contact the provider."""
        ...

    @abstractmethod
    def logout(self) -> None:
        """Forget every cached auth value of this provider."""
        ...


def supports_login(provider: Provider) -> bool:
    """Whether ``provider`` implements the Authenticatable capability."""
    return isinstance(provider, Authenticatable)
