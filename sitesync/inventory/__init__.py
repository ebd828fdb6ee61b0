"""Cached inventory entities."""

from sitesync.inventory.record import PersistentRecord, RecordSpec
from sitesync.inventory.site import SITE_RECORD, Site
from sitesync.inventory.environment import ENVIRONMENT_RECORD, Environment

__all__ = [
    "PersistentRecord",
    "RecordSpec",
    "Site",
    "SITE_RECORD",
    "Environment",
    "ENVIRONMENT_RECORD",
]
