"""Pantheon provider implementation."""

import logging
from typing import Any

from sitesync.cloud.dispatcher import check_response
from sitesync.cloud.interfaces import (
    Authenticatable,
    LoginResult,
    Provider,
    ResourceRequest,
    SiteData,
)
from sitesync.cloud.pantheon.auth import PantheonLogin
from sitesync.errors import ParseError, SitesyncError, ValidationError
from sitesync.tracing import FunctionTrace, Session

logger = logging.getLogger(__name__)


class PantheonProvider(Provider, Authenticatable):
    """Pantheon (Terminus API), authenticated with a dashboard session cookie.

    Sites are listed per user as a mapping of site UUID to site information.
    Code and shell access go through per-site codeserver/appserver hosts
    derived from the site UUID.
    """

    name = "pantheon"
    label = "Pantheon"
    homepage = "https://www.getpantheon.com/"
    endpoint = "https://terminus.getpantheon.com"

    SSH_PORT = 2222

    def auth_options(self) -> dict[str, Any]:
        session = self.cache.get("session", self.namespace)
        if not session:
            return {}
        return {"headers": {"Cookie": session}}

    def login(
        self, email: str, password: str, session: Session | None = None
    ) -> LoginResult:
        return PantheonLogin(self, email, password).run(
            session=session or self.context.trace
        )

    def is_logged_in(self) -> bool:
        return bool(self.cache.get("session", self.namespace))

    def logout(self) -> None:
        self.cache.clear("*", self.namespace)

    def _get_json(self, request: ResourceRequest) -> Any:
        response = check_response(self.context.dispatcher.dispatch(self, request))
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Pantheon response is not JSON: {e}") from e

    def fetch_site_list(self, session: Session | None = None) -> list[SiteData]:
        user_uuid = self.cache.get("user_uuid", self.namespace)
        if not user_uuid:
            raise ValidationError("No Pantheon user UUID cached; log in first")

        with FunctionTrace(session, "Listing Pantheon sites", user_uuid=user_uuid) as trace:
            site_metadata = self._get_json(
                ResourceRequest(
                    method="GET", resource="/sites/user", segments=(user_uuid,)
                )
            )
            if not isinstance(site_metadata, dict):
                raise ParseError("Pantheon site list is not an object")

            sites = []
            for uuid, data in site_metadata.items():
                try:
                    information = data["information"]
                    site_name = information["name"]
                except (KeyError, TypeError) as e:
                    raise ParseError(f"Malformed Pantheon site {uuid!r}") from e
                sites.append(
                    SiteData(
                        name=site_name,
                        values={
                            "uuid": uuid,
                            "realm": information.get("preferred_zone"),
                        },
                    )
                )
            trace.log("Pantheon sites listed", count=len(sites))
        return sites

    def derived_fields(self, site_name: str, uuid: str) -> dict[str, Any]:
        """Fields Pantheon does not report but which follow from the UUID."""
        codeserver = f"codeserver.dev.{uuid}"
        return {
            "uuid": uuid,
            "title": site_name,
            "unix_username": codeserver,
            "vcs_url": f"{codeserver}@{codeserver}.drush.in:{self.SSH_PORT}/~/repository.git",
            "vcs_type": "git",
            "vcs_protocol": "ssh",
            "ssh_port": self.SSH_PORT,
        }

    def field_fetch(self, site_name: str, field_name: str) -> Any | None:
        try:
            sites = self.list_sites()
        except SitesyncError as e:
            logger.warning(
                f"Could not fetch {field_name} of Pantheon site {site_name}: {e}"
            )
            return None

        site = sites.get(site_name)
        if site is None or not site.cached("uuid"):
            return None
        if field_name == "realm":
            return site.cached("realm")
        return self.derived_fields(site_name, site.cached("uuid")).get(field_name)

    def fetch_environment_list(self, site) -> dict[str, dict[str, Any]]:
        uuid = site.get("uuid")
        if not uuid:
            raise ValidationError(f"Pantheon site {site.name!r} has no UUID")

        environments = self._get_json(
            ResourceRequest(
                method="GET", resource="/sites", segments=(uuid, "environments")
            )
        )
        if not isinstance(environments, dict):
            raise ParseError("Pantheon environment list is not an object")

        return {
            env_name: {
                "host": f"appserver.{env_name}.{uuid}.drush.in",
                "username": f"{env_name}.{site.name}",
                "branch": "master",
            }
            for env_name in environments
        }
