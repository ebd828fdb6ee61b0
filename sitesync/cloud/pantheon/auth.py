"""Pantheon dashboard login.

Pantheon has no API keys; a session is obtained by submitting the
dashboard's login form the way a browser would, then reusing the session
cookie it hands back.
"""

from __future__ import annotations

import logging
import re
from html.parser import HTMLParser
from typing import TYPE_CHECKING

from sitesync.cloud.interfaces import (
    AuthSession,
    AuthState,
    LoginFailure,
    LoginResult,
    ResourceRequest,
)
from sitesync.errors import ParseError, TransportError, ValidationError
from sitesync.tracing import FunctionTrace, Session

if TYPE_CHECKING:
    from sitesync.cloud.pantheon.provider import PantheonProvider

logger = logging.getLogger(__name__)

LOGIN_FORM_ELEMENT_ID = "atlas-login-form"
LOGIN_FORM_ID = "atlas_login_form"
LOGIN_OP = "Login"
SESSION_COOKIE_PREFIX = "SSESS"

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class _LoginFormParser(HTMLParser):
    """Collect the ``form_build_id`` input inside the login form container."""

    def __init__(self) -> None:
        super().__init__()
        self.found_container = False
        self.form_build_id: str | None = None
        self._container_tag: str | None = None
        self._depth = 0

    def handle_starttag(self, tag, attrs):
        attributes = dict(attrs)
        if self._container_tag is None:
            if attributes.get("id") == LOGIN_FORM_ELEMENT_ID and not self.found_container:
                self.found_container = True
                self._container_tag = tag
                self._depth = 1
            return

        if tag == self._container_tag:
            self._depth += 1
        elif tag == "input" and attributes.get("name") == "form_build_id":
            if self.form_build_id is None:
                self.form_build_id = attributes.get("value") or ""

    def handle_endtag(self, tag):
        if self._container_tag is not None and tag == self._container_tag:
            self._depth -= 1
            if self._depth == 0:
                self._container_tag = None


def parse_form_build_id(html: str) -> str:
    """Extract the one-time form token from the login page.

    Raises:
        ParseError: If the login form or its ``form_build_id`` input is missing.
    """
    if not html:
        raise ParseError("Login page is empty")
    parser = _LoginFormParser()
    parser.feed(html)
    parser.close()
    if not parser.found_container:
        raise ParseError(f"Login page has no #{LOGIN_FORM_ELEMENT_ID} element")
    if not parser.form_build_id:
        raise ParseError("Login form has no form_build_id")
    return parser.form_build_id


def session_from_headers(set_cookie_headers: list[str]) -> str:
    """Pick the session cookie out of ``set-cookie`` header values.

    Every header is split on ``"; "``; the last segment, in header then
    segment order, starting with the session prefix wins.

    Raises:
        ParseError: If no segment carries the prefix.
    """
    session = None
    for header in set_cookie_headers:
        for cookie in header.split("; "):
            if cookie.startswith(SESSION_COOKIE_PREFIX):
                session = cookie
    if session is None:
        raise ParseError("No session cookie in login response")
    return session


def validate_uuid(value: str | None) -> str:
    """Return ``value`` if it looks like a UUID.

    Raises:
        ValidationError: If it does not.
    """
    if not value or not UUID_PATTERN.match(value):
        raise ValidationError(f"Not a UUID: {value!r}")
    return value


def uuid_from_location(location: str | None) -> str:
    """The trailing path segment of a redirect target, validated as a UUID."""
    if not location:
        raise ValidationError("Login response has no Location header")
    return validate_uuid(location.split("/")[-1])


class PantheonLogin:
    """One run of the login state machine.

    ``state`` moves ANONYMOUS -> FORM_RETRIEVED -> AUTHENTICATING ->
    SESSION_ESTABLISHED, or to FAILED at the first step that goes wrong.
    Nothing is cached unless the final state is SESSION_ESTABLISHED.
    """

    def __init__(self, provider: "PantheonProvider", email: str, password: str):
        self.provider = provider
        self.email = email
        self.password = password
        self.state = AuthState.ANONYMOUS

    def _fail(self, failure: LoginFailure, message: str) -> LoginResult:
        self.state = AuthState.FAILED
        logger.warning(f"Pantheon login failed ({failure.value}): {message}")
        return LoginResult(state=self.state, failure=failure, message=message)

    def run(self, session: Session | None = None) -> LoginResult:
        dispatcher = self.provider.context.dispatcher
        login_request = ResourceRequest(method="GET", resource="/login")

        with FunctionTrace(session, "Logging in to Pantheon", email=self.email) as trace:
            try:
                response = dispatcher.dispatch(
                    self.provider, login_request, authenticate=False
                )
            except TransportError as e:
                return self._fail(
                    LoginFailure.ENDPOINT_UNAVAILABLE,
                    f"Pantheon endpoint unavailable: {e}",
                )

            try:
                form_build_id = parse_form_build_id(response.text)
            except ParseError as e:
                return self._fail(
                    LoginFailure.LOGIN_UNAVAILABLE, f"Pantheon login unavailable: {e}"
                )
            self.state = AuthState.FORM_RETRIEVED
            trace.log("Login form retrieved")

            self.state = AuthState.AUTHENTICATING
            submit = ResourceRequest(
                method="POST",
                resource="/login",
                data={
                    "email": self.email,
                    "password": self.password,
                    "form_build_id": form_build_id,
                    "form_id": LOGIN_FORM_ID,
                    "op": LOGIN_OP,
                },
            )
            try:
                response = dispatcher.dispatch(
                    self.provider, submit, authenticate=False, follow_redirects=False
                )
            except TransportError as e:
                return self._fail(
                    LoginFailure.LOGIN_FAILURE, f"Pantheon login failure: {e}"
                )

            try:
                session_token = session_from_headers(
                    response.headers.get_list("set-cookie")
                )
            except ParseError:
                return self._fail(
                    LoginFailure.NO_SESSION,
                    "Pantheon session not found; please check your credentials "
                    "and try again.",
                )

            try:
                user_uuid = uuid_from_location(response.headers.get("location"))
            except ValidationError:
                return self._fail(
                    LoginFailure.NO_UUID,
                    "Pantheon user UUID not found; please check your credentials "
                    "and try again.",
                )

            auth = AuthSession(
                provider=self.provider.name,
                email=self.email,
                session=session_token,
                user_uuid=user_uuid,
            )
            if not auth.store(self.provider.cache):
                return self._fail(
                    LoginFailure.STORE_FAILURE, "Pantheon session could not be cached"
                )

            self.state = AuthState.SESSION_ESTABLISHED
            trace.log("Pantheon session established", user_uuid=user_uuid)
            return LoginResult(
                state=self.state,
                message="Logged in to Pantheon",
                session=session_token,
                user_uuid=user_uuid,
            )
