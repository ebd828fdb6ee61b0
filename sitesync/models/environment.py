"""Environment model."""

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sitesync.models.base import Base, SurrogateIdMixin, TimestampMixin


class EnvironmentRow(Base, SurrogateIdMixin, TimestampMixin):
    """Cached copy of one deployment target of a site.

    ``site_id`` is the owning site's surrogate id; there is no foreign key
    because rows are never deleted by this package.
    """

    __tablename__ = "environments"
    __table_args__ = (
        UniqueConstraint("name", "site_id", name="uq_environment_name_site"),
        {"sqlite_autoincrement": True},
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    site_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    host: Mapped[str | None] = mapped_column(String(255))
    username: Mapped[str | None] = mapped_column(String(255))
    branch: Mapped[str | None] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"<EnvironmentRow {self.name} (site {self.site_id})>"
