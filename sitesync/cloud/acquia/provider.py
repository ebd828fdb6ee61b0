"""Acquia Cloud provider implementation."""

import logging
from typing import Any

from sitesync.cloud.dispatcher import check_response
from sitesync.cloud.interfaces import Provider, ResourceRequest, SiteData
from sitesync.errors import ParseError, SitesyncError
from sitesync.tracing import FunctionTrace, Session

logger = logging.getLogger(__name__)


class AcquiaProvider(Provider):
    """Acquia Cloud API v1, authenticated with a static e-mail/key pair.

    Sites are listed as ``"<realm>:<name>"`` strings and addressed the same
    way in per-site resources.
    """

    name = "acquia"
    label = "Acquia"
    homepage = "http://www.acquia.com/"
    endpoint = "https://cloudapi.acquia.com/v1"

    SSH_PORT = 22

    def __init__(self, context, endpoint: str | None = None):
        super().__init__(context, endpoint=endpoint)
        # Site detail responses by site name, reused for the whole invocation
        self._details: dict[str, dict[str, Any]] = {}

    def auth_options(self) -> dict[str, Any]:
        email = self.cache.get("email", self.namespace)
        password = self.cache.get("password", self.namespace)
        if not email or not password:
            return {}
        return {"auth": (email, password)}

    def store_credentials(self, email: str, password: str) -> bool:
        """Cache the e-mail and API key used for basic auth."""
        return self.cache.replace(
            self.namespace, {"email": email, "password": password}
        )

    def fetch_site_list(self, session: Session | None = None) -> list[SiteData]:
        with FunctionTrace(session, "Listing Acquia sites") as trace:
            response = check_response(
                self.context.dispatcher.dispatch(
                    self, ResourceRequest(method="GET", resource="/sites")
                )
            )
            try:
                site_names = response.json()
            except ValueError as e:
                raise ParseError(f"Acquia site list is not JSON: {e}") from e
            if not isinstance(site_names, list):
                raise ParseError("Acquia site list is not an array")

            sites = []
            for site_data in site_names:
                realm, sep, site_name = str(site_data).partition(":")
                if not sep or not site_name:
                    raise ParseError(f"Malformed Acquia site name {site_data!r}")
                sites.append(SiteData(name=site_name, values={"realm": realm}))
            trace.log("Acquia sites listed", count=len(sites))
        return sites

    def _site_path(self, site_name: str) -> str:
        realm = self.site(site_name).cached("realm")
        if not realm:
            self.list_sites()
            realm = self.site(site_name).cached("realm")
        if not realm:
            raise ParseError(f"Acquia site {site_name!r} has no realm")
        return f"{realm}:{site_name}"

    def _get_json(self, *segments: str) -> Any:
        response = check_response(
            self.context.dispatcher.dispatch(
                self,
                ResourceRequest(method="GET", resource="/sites", segments=segments),
            )
        )
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Acquia response is not JSON: {e}") from e

    def _site_details(self, site_name: str) -> dict[str, Any]:
        """Detail resource of one site, requested once per invocation.

        Raises:
            TransportError: If the request fails.
            ParseError: If the site has no realm or the body is not an object.
        """
        if site_name not in self._details:
            details = self._get_json(self._site_path(site_name))
            if not isinstance(details, dict):
                raise ParseError(f"Acquia details of {site_name!r} are not an object")
            self._details[site_name] = details
        return self._details[site_name]

    def field_fetch(self, site_name: str, field_name: str) -> Any | None:
        if field_name == "realm":
            # Only the site list carries realms
            try:
                self.list_sites()
            except SitesyncError as e:
                logger.warning(f"Could not list Acquia sites: {e}")
                return None
            return self.site(site_name).cached("realm")

        try:
            details = self._site_details(site_name)
        except SitesyncError as e:
            logger.warning(f"Could not fetch {field_name} of Acquia site {site_name}: {e}")
            return None

        vcs_type = details.get("vcs_type")
        fields = {
            "uuid": details.get("uuid"),
            "title": details.get("title"),
            "unix_username": details.get("unix_username"),
            "vcs_url": details.get("vcs_url"),
            "vcs_type": vcs_type,
            # Acquia git URLs are scp-style and used without a scheme
            "vcs_protocol": vcs_type,
            "ssh_port": self.SSH_PORT,
        }
        return fields.get(field_name)

    def fetch_environment_list(self, site) -> dict[str, dict[str, Any]]:
        environments = self._get_json(self._site_path(site.name), "envs")
        if not isinstance(environments, list):
            raise ParseError("Acquia environment list is not an array")

        result = {}
        for data in environments:
            if not isinstance(data, dict) or not data.get("name"):
                raise ParseError(f"Malformed Acquia environment {data!r}")
            env_name = data["name"]
            result[env_name] = {
                "host": data.get("ssh_host"),
                "username": data.get("unix_username") or f"{site.name}.{env_name}",
                "branch": data.get("vcs_path"),
            }
        return result
