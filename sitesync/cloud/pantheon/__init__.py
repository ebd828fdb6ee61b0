"""Pantheon provider implementation."""

from sitesync.cloud.pantheon.auth import PantheonLogin
from sitesync.cloud.pantheon.provider import PantheonProvider

__all__ = ["PantheonLogin", "PantheonProvider"]
