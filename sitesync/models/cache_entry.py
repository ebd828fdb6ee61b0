"""Credential cache entry model."""

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sitesync.models.base import Base, SurrogateIdMixin, TimestampMixin


class CacheEntry(Base, SurrogateIdMixin, TimestampMixin):
    """One cached credential or session value.

    Values are encrypted at rest using Fernet encryption.
    """

    __tablename__ = "cache_entries"
    __table_args__ = (
        UniqueConstraint("name", "namespace", name="uq_cache_entry_name_namespace"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # e.g. "sitesync-auth-pantheon"
    namespace: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    value_encrypted: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<CacheEntry {self.namespace}/{self.name}>"
