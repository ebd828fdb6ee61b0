"""Hosting provider abstraction layer."""

from sitesync.cloud.interfaces import (
    AuthSession,
    AuthState,
    Authenticatable,
    LoginFailure,
    LoginResult,
    Provider,
    ResourceRequest,
    SiteData,
    supports_login,
)
from sitesync.cloud.dispatcher import RequestDispatcher, check_response
from sitesync.cloud.factory import create_provider, get_providers

__all__ = [
    "AuthSession",
    "AuthState",
    "Authenticatable",
    "LoginFailure",
    "LoginResult",
    "Provider",
    "ResourceRequest",
    "SiteData",
    "supports_login",
    "RequestDispatcher",
    "check_response",
    "create_provider",
    "get_providers",
]
