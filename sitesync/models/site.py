"""Site model."""

from sqlalchemy import Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sitesync.models.base import Base, SurrogateIdMixin, TimestampMixin


class SiteRow(Base, SurrogateIdMixin, TimestampMixin):
    """Cached copy of a site hosted by one provider."""

    __tablename__ = "sites"
    __table_args__ = (
        UniqueConstraint("name", "provider", name="uq_site_name_provider"),
        {"sqlite_autoincrement": True},
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    provider: Mapped[str] = mapped_column(String(50), nullable=False)

    # Remote attributes, filled in lazily
    uuid: Mapped[str | None] = mapped_column(String(64))
    realm: Mapped[str | None] = mapped_column(String(255))
    title: Mapped[str | None] = mapped_column(String(255))
    unix_username: Mapped[str | None] = mapped_column(String(255))
    vcs_url: Mapped[str | None] = mapped_column(Text)
    vcs_type: Mapped[str | None] = mapped_column(String(50))
    vcs_protocol: Mapped[str | None] = mapped_column(String(50))
    ssh_port: Mapped[int | None] = mapped_column(Integer)

    def __repr__(self) -> str:
        return f"<SiteRow {self.name} ({self.provider})>"
