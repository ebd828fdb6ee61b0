"""Deployment environment of a site."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Any

from sitesync.inventory.record import PersistentRecord, RecordSpec
from sitesync.models import EnvironmentRow

if TYPE_CHECKING:
    from sitesync.context import InventoryContext
    from sitesync.inventory.site import Site

ENVIRONMENT_RECORD = RecordSpec(
    model=EnvironmentRow,
    scope_field="site_id",
    fields=("host", "username", "branch"),
)


class Environment:
    """One deployment target (dev, test, live...) of a site.

    Scoped in the store by the owning site's id, so the site/environment
    relationship needs no separate bookkeeping.
    """

    def __init__(self, context: "InventoryContext", site: "Site", name: str):
        self.context = context
        self.site = site
        self.record = PersistentRecord(
            ENVIRONMENT_RECORD, context.store, name, site.id
        )

    @classmethod
    def load(
        cls, context: "InventoryContext", site: "Site", name: str
    ) -> "Environment":
        environment = cls(context, site, name)
        environment.record.read()
        return environment

    @property
    def id(self) -> int | None:
        return self.record.id

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def site_id(self) -> int | None:
        return self.record.scope_value

    def get(self, field_name: str) -> Any:
        provider = self.site.linked_provider()
        fetch = None
        if provider is not None:
            fetch = partial(
                provider.environment_field_fetch, self.site.name, self.name
            )
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
        # The site may have been saved after this environment was created
        if self.record.scope_value is None:
            self.record.scope_value = self.site.id
        return self.record.save()

    def to_dict(self) -> dict[str, Any]:
        return self.record.to_dict()

    def __repr__(self) -> str:
        return f"<Environment {self.name} (site {self.site_id})>"
