"""Store-backed record capability shared by sites and environments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from sitesync.errors import ValidationError
from sitesync.models import Base
from sitesync.tracing import Session as TraceSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordSpec:
    """Describes how one entity kind is kept in the local store."""

    model: type[Base]
    scope_field: str
    fields: tuple[str, ...]

    @property
    def table_name(self) -> str:
        return self.model.__tablename__


class PersistentRecord:
    """Cached row of one entity, keyed by (name, scope value).

    Entities embed a record rather than inheriting from it. Reads go through
    :meth:`get`, which falls back to a provider fetch when the cached value
    is missing.
    """

    def __init__(
        self,
        spec: RecordSpec,
        store: sessionmaker[Session],
        name: str,
        scope_value: Any,
    ):
        self.spec = spec
        self._store = store
        self.id: int | None = None
        self.name = name
        self.scope_value = scope_value
        self.values: dict[str, Any] = {f: None for f in spec.fields}
        # Fields read from the store, set or fetched; only these are saved
        self._assigned: set[str] = set()
        # Fields already fetched from the provider by this record
        self._fetched: set[str] = set()

    def _check_field(self, field_name: str) -> None:
        if field_name not in self.values:
            raise ValidationError(
                f"{self.spec.table_name} has no field {field_name!r}"
            )

    def _scope_clause(self):
        model = self.spec.model
        return (
            model.name == self.name,
            getattr(model, self.spec.scope_field) == self.scope_value,
        )

    def populate(self, row: Base) -> None:
        """Copy id and declared fields from a store row."""
        self.id = row.id
        for field_name in self.spec.fields:
            self.values[field_name] = getattr(row, field_name)
            self._assigned.add(field_name)

    def read(self) -> bool:
        """Load the matching row, if any.

        Returns:
            True if a row was found.
        """
        try:
            with self._store() as db:
                row = db.execute(
                    select(self.spec.model).where(*self._scope_clause())
                ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to read {self.spec.table_name} row {self.name!r}: {e}"
            )
            return False
        if row is None:
            return False
        self.populate(row)
        return True

    def save(self) -> bool:
        """Upsert this record's row.

        Only fields that were read, set or fetched are written, so a record
        built without loading never blanks columns it knows nothing about.
        Store failures are logged and reported as False; the in-memory values
        stay as they are.
        """
        if self.scope_value is None:
            logger.warning(
                f"Not saving {self.spec.table_name} row {self.name!r}: "
                f"{self.spec.scope_field} is unset"
            )
            return False

        with self._store() as db:
            try:
                row = db.execute(
                    select(self.spec.model).where(*self._scope_clause())
                ).scalar_one_or_none()
                if row is None:
                    row = self.spec.model(name=self.name)
                    setattr(row, self.spec.scope_field, self.scope_value)
                    db.add(row)
                for field_name in self.spec.fields:
                    if field_name in self._assigned:
                        setattr(row, field_name, self.values[field_name])
                db.commit()
                self.id = row.id
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(
                    f"Failed to save {self.spec.table_name} row {self.name!r}: {e}"
                )
                return False
        return True

    def cached(self, field_name: str) -> Any:
        """Return the in-memory value without contacting any provider."""
        self._check_field(field_name)
        return self.values[field_name]

    def set(self, field_name: str, value: Any) -> None:
        self._check_field(field_name)
        self.values[field_name] = value
        self._assigned.add(field_name)

    def get(
        self,
        field_name: str,
        fetch: Callable[[str], Any] | None = None,
        force: bool = False,
        trace: TraceSession | None = None,
    ) -> Any:
        """Return a field, fetching it through ``fetch`` when missing.

        A field is fetched at most once per record unless ``force`` is set.
        A fetched value that differs from the cached one is saved.
        """
        value = self.cached(field_name)
        if value is not None and not force:
            return value
        if fetch is None or (field_name in self._fetched and not force):
            return value

        if trace is not None:
            trace.log(
                f"{self.name} is missing value for {field_name}",
                table=self.spec.table_name,
                refresh=force,
            )
        self._fetched.add(field_name)
        fetched = fetch(field_name)
        if fetched is not None and fetched != value:
            self.values[field_name] = fetched
            self._assigned.add(field_name)
            self.save()
        return fetched

    def to_dict(self) -> dict[str, Any]:
        """Ordered mapping of every declared scalar field."""
        return {
            "id": self.id,
            "name": self.name,
            self.spec.scope_field: self.scope_value,
            **self.values,
        }
