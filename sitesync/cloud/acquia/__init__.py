"""Acquia provider implementation."""

from sitesync.cloud.acquia.provider import AcquiaProvider

__all__ = ["AcquiaProvider"]
