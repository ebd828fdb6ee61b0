"""Remote site structure."""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from sitesync.errors import ValidationError
from sitesync.inventory.record import PersistentRecord, RecordSpec
from sitesync.models import EnvironmentRow, SiteRow

if TYPE_CHECKING:
    from sitesync.cloud.interfaces import Provider
    from sitesync.context import InventoryContext
    from sitesync.inventory.environment import Environment

logger = logging.getLogger(__name__)

SITE_RECORD = RecordSpec(
    model=SiteRow,
    scope_field="provider",
    fields=(
        "uuid",
        "realm",
        "title",
        "unix_username",
        "vcs_url",
        "vcs_type",
        "vcs_protocol",
        "ssh_port",
    ),
)


class Site:
    """A hosted application tracked on one provider.

    Field reads go through :meth:`get`. A value missing from the local store
    is fetched from the provider the site belongs to, which is registered in
    the context the first time it is needed.
    """

    def __init__(self, context: "InventoryContext", provider: str, name: str):
        self.context = context
        self.record = PersistentRecord(SITE_RECORD, context.store, name, provider)
        self.environments: dict[str, "Environment"] = {}

    @classmethod
    def load(cls, context: "InventoryContext", provider: str, name: str) -> "Site":
        """Load a site and its environments from the store.

        Returns an empty shell carrying only the name and provider when the
        site has never been saved.
        """
        site = cls(context, provider, name)
        site.read()
        return site

    @property
    def id(self) -> int | None:
        return self.record.id

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def provider(self) -> str:
        return self.record.scope_value

    def linked_provider(self) -> "Provider | None":
        """The provider this site belongs to, registering it on first use.

        Returns None when no provider of that name exists.
        """
        try:
            return self.context.provider(self.provider)
        except ValidationError:
            return None

    def get(self, field_name: str) -> Any:
        provider = self.linked_provider()
        fetch = None
        if provider is not None:
            fetch = partial(provider.field_fetch, self.name)
        return self.record.get(
            field_name,
            fetch=fetch,
            force=bool(self.context.options.get("refresh")),
            trace=self.context.trace,
        )

    def cached(self, field_name: str) -> Any:
        return self.record.cached(field_name)

    def set(self, field_name: str, value: Any) -> None:
        self.record.set(field_name, value)

    def save(self) -> bool:
        return self.record.save()

    def read(self) -> None:
        """Read the site's own row, then every environment scoped to it.

        Environments are not fetched from the provider here; each one fills
        in its own missing fields on demand.
        """
        from sitesync.inventory.environment import Environment

        if not self.record.read():
            return
        try:
            with self.context.store() as db:
                rows = db.execute(
                    select(EnvironmentRow)
                    .where(EnvironmentRow.site_id == self.id)
                    .order_by(EnvironmentRow.id)
                ).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read environments of site {self.name!r}: {e}")
            return
        for row in rows:
            environment = Environment(self.context, self, row.name)
            environment.record.populate(row)
            self.environment_add(environment)

    def environment_add(self, environment: "Environment") -> None:
        self.environments[environment.name] = environment

    def environment_remove(self, environment: "Environment") -> None:
        self.environments.pop(environment.name, None)

    def sync_environments(self) -> dict[str, "Environment"]:
        """Pull this site's environments from its provider.

        Raises:
            ValidationError: If the site's provider is not registered.
        """
        return self.context.provider(self.provider).list_environments(self)

    def get_vcs_url(self) -> str:
        """Build a full VCS connection URL."""
        url = ""
        if self.get("vcs_protocol") == "ssh":
            url += "ssh://"
        url += self.get("vcs_url") or ""
        return url

    def to_dict(self) -> dict[str, Any]:
        """Scalar fields only; environments are rendered separately."""
        return self.record.to_dict()

    def __repr__(self) -> str:
        return f"<Site {self.name} ({self.provider})>"
