"""SQLAlchemy models."""

from sitesync.models.base import Base
from sitesync.models.site import SiteRow
from sitesync.models.environment import EnvironmentRow
from sitesync.models.cache_entry import CacheEntry

__all__ = [
    "Base",
    "SiteRow",
    "EnvironmentRow",
    "CacheEntry",
]
