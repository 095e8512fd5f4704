"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of ALMREST, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Session establishment against an ALM server.

ALM uses a challenge/response handshake. ``qcbin/rest/is-authenticated``
answers 200 for a live session, or 401 with a ``WWW-Authenticate`` header
naming the authentication point. Basic credentials presented there make the
server set session cookies, which the connector's cookie jar then carries on
every later request.
"""

from enum import Enum
from urllib.parse import urlsplit

import requests
from pydantic import BaseModel, model_validator

from almrest.alm_connector import RestConnector
from almrest.core.logging import get_logger, log_operation
from almrest.exceptions import ProtocolError

logger = get_logger(__name__)

IS_AUTHENTICATED_PATH = "qcbin/rest/is-authenticated"
LOGOUT_PATH = "qcbin/authentication-point/logout"
AUTHENTICATE_SUFFIX = "/authenticate"


class AuthenticationState(str, Enum):
    AUTHENTICATED = "authenticated"
    CHALLENGED = "challenged"


class ProbeResult(BaseModel):
    """
    Outcome of the is-authenticated probe.

    ``authentication_point`` is set exactly when the server challenged the
    client; it is where ``login_at`` must present the credentials.
    """

    state: AuthenticationState
    authentication_point: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_authentication_point(self):
        if self.state == AuthenticationState.CHALLENGED and not self.authentication_point:
            raise ValueError("A challenged probe result needs an authentication point")
        if self.state == AuthenticationState.AUTHENTICATED and self.authentication_point:
            raise ValueError("An authenticated probe result has no authentication point")
        return self

    @classmethod
    def authenticated(cls) -> "ProbeResult":
        return cls(state=AuthenticationState.AUTHENTICATED)

    @classmethod
    def challenged(cls, authentication_point: str) -> "ProbeResult":
        return cls(state=AuthenticationState.CHALLENGED, authentication_point=authentication_point)

    @property
    def is_authenticated(self) -> bool:
        return self.state == AuthenticationState.AUTHENTICATED


def parse_authentication_point(header_value: str) -> str:
    """Derive the authentication point from a ``WWW-Authenticate`` header value.

    ``Basic realm="http://host/qcbin/authentication-point"`` becomes
    ``http://host/qcbin/authentication-point/authenticate``.

    Only the text between the first and second ``=`` is kept, so a value
    carrying several parameters, or a URL with a query string, is cut short.
    Servers seen so far send a single realm.
    """
    parts = header_value.split("=")
    if len(parts) < 2:
        raise ProtocolError(f"Invalid authentication point: {header_value!r}")
    return parts[1].replace('"', "") + AUTHENTICATE_SUFFIX


def authentication_point_path(authentication_point: str) -> str:
    """Return the path component of the authentication point URI.

    Raises:
        ProtocolError: If the value cannot be parsed as a URI
    """
    if any(char.isspace() or ord(char) < 0x20 for char in authentication_point):
        raise ProtocolError(f"Malformed authentication point URI: {authentication_point!r}")
    try:
        parts = urlsplit(authentication_point)
        # Accessing the port validates it
        parts.port
    except ValueError as e:
        raise ProtocolError(f"Malformed authentication point URI: {authentication_point!r}") from e

    if not parts.path:
        raise ProtocolError(f"Authentication point has no path: {authentication_point!r}")
    return parts.path


class ALMAuthenticator:
    """Establishes and tears down ALM sessions through a connector."""

    def __init__(self, connector: RestConnector):
        self.connector = connector

    def probe_authentication(self) -> ProbeResult:
        """Ask the server whether the current session is authenticated.

        Returns:
            ``ProbeResult.authenticated()`` on success, or a challenged result
            carrying the authentication point when the server answers 401

        Raises:
            ProtocolError: If the 401 carries no usable WWW-Authenticate header
            requests.HTTPError: For any other error status, unchanged
        """
        try:
            self.connector.get(IS_AUTHENTICATED_PATH)
        except requests.exceptions.HTTPError as e:
            response = e.response
            if response is None or response.status_code != 401:
                raise

            header = response.headers.get("WWW-Authenticate")
            if not header or not header.strip():
                raise ProtocolError("Invalid authentication point") from e

            authentication_point = parse_authentication_point(header)
            logger.info(f"Server requires authentication at {authentication_point}")
            return ProbeResult.challenged(authentication_point)

        logger.debug("Session is already authenticated")
        return ProbeResult.authenticated()

    def login_at(self, authentication_point: str, username: str, password: str) -> None:
        """Present Basic credentials at a known authentication point.

        On success the server's session cookies end up in the connector's
        cookie jar. A 401 or 403 here means the credentials were rejected.
        """
        with log_operation(logger, "ALM login", context={"username": username}):
            self.connector.get(
                authentication_point,
                headers=RestConnector.create_basic_auth_header(username, password),
            )

    def login(self, username: str, password: str) -> None:
        """Probe for the authentication point and log in there if challenged.

        Does nothing beyond the probe when the session is already authenticated.
        """
        result = self.probe_authentication()
        if result.is_authenticated:
            logger.info("Already authenticated, skipping login")
            return

        path = authentication_point_path(result.authentication_point)
        self.login_at(path, username, password)

    def logout(self) -> None:
        """Close the session on the server, then drop the local session cookies."""
        self.connector.get(LOGOUT_PATH)
        self.connector.clear_session()
        logger.info("Logged out of ALM")
