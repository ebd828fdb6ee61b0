"""Composition and execution of outbound provider API calls."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from sitesync.cloud.interfaces import ResourceRequest
from sitesync.errors import TransportError

if TYPE_CHECKING:
    from sitesync.cloud.interfaces import Provider

logger = logging.getLogger(__name__)


def check_response(response: httpx.Response) -> httpx.Response:
    """Raise TransportError unless ``response`` has a 2xx status."""
    if not response.is_success:
        raise TransportError(
            f"{response.request.method} {response.request.url} "
            f"returned {response.status_code}",
            status_code=response.status_code,
        )
    return response


class RequestDispatcher:
    """Send ResourceRequests to a provider's endpoint.

    The raw response is returned for the caller to interpret; nothing is
    parsed or retried here.
    """

    def __init__(self, client: httpx.Client):
        self.client = client

    @staticmethod
    def build_url(provider: "Provider", request: ResourceRequest) -> str:
        url = provider.endpoint + request.resource
        for segment in request.segments:
            url += "/" + segment
        return url

    @staticmethod
    def merge_options(
        auth_options: dict[str, Any], overrides: dict[str, Any]
    ) -> dict[str, Any]:
        """Merge caller overrides over auth options; headers are merged key by key."""
        options = {**auth_options, **overrides}
        if "headers" in auth_options and "headers" in overrides:
            options["headers"] = {**auth_options["headers"], **overrides["headers"]}
        return options

    def dispatch(
        self,
        provider: "Provider",
        request: ResourceRequest,
        authenticate: bool = True,
        **overrides: Any,
    ) -> httpx.Response:
        """Execute ``request`` against ``provider``.

        Args:
            provider: Provider whose endpoint and auth options are used.
            request: Method, resource path and extra path segments.
            authenticate: Whether to attach the provider's auth options.
            **overrides: Transport options such as ``follow_redirects``.

        Raises:
            TransportError: If the call could not be completed.
        """
        url = self.build_url(provider, request)
        auth_options = provider.auth_options() if authenticate else {}
        options = self.merge_options(auth_options, overrides)
        if request.data is not None:
            options["data"] = request.data

        # Auth comes from auth_options() alone, never from cookies the
        # client picked up on earlier responses
        self.client.cookies.clear()

        logger.debug(f"{request.method} {url}")
        try:
            return self.client.request(request.method, url, **options)
        except httpx.HTTPError as e:
            logger.warning(f"{request.method} {url} failed: {e}")
            raise TransportError(f"{request.method} {url} failed: {e}") from e
