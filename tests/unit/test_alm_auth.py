"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of ALMREST, licensed under the MIT License.
See LICENSE file for details.
"""

from unittest.mock import MagicMock

import pytest
import requests
from pydantic import ValidationError

from almrest.alm_auth import (
    IS_AUTHENTICATED_PATH,
    LOGOUT_PATH,
    ALMAuthenticator,
    AuthenticationState,
    ProbeResult,
    authentication_point_path,
    parse_authentication_point,
)
from almrest.exceptions import ProtocolError


@pytest.mark.unit
class TestProbeAuthentication:
    @pytest.fixture
    def authenticator(self, mock_connector):
        return ALMAuthenticator(mock_connector)

    def test_probe_success_means_authenticated(self, authenticator, mock_connector):
        """A 200 from is-authenticated yields no challenge."""
        result = authenticator.probe_authentication()

        assert result.is_authenticated
        assert result.authentication_point is None
        mock_connector.get.assert_called_once_with(IS_AUTHENTICATED_PATH)

    def test_probe_401_derives_authentication_point(
        self, authenticator, mock_connector, make_http_error
    ):
        mock_connector.get.side_effect = make_http_error(
            401, {"WWW-Authenticate": 'Basic realm="http://host/qcbin/authentication-point"'}
        )

        result = authenticator.probe_authentication()

        assert result.state == AuthenticationState.CHALLENGED
        assert result.authentication_point == "http://host/qcbin/authentication-point/authenticate"

    @pytest.mark.parametrize("header", [None, "", "   "])
    def test_probe_401_without_usable_header(
        self, authenticator, mock_connector, make_http_error, header
    ):
        headers = {} if header is None else {"WWW-Authenticate": header}
        mock_connector.get.side_effect = make_http_error(401, headers)

        with pytest.raises(ProtocolError, match="Invalid authentication point"):
            authenticator.probe_authentication()

    @pytest.mark.parametrize("status_code", [400, 403, 404, 500, 503])
    def test_probe_other_errors_are_reraised_unchanged(
        self, authenticator, mock_connector, make_http_error, status_code
    ):
        error = make_http_error(status_code, {"WWW-Authenticate": 'Basic realm="http://host/x"'})
        mock_connector.get.side_effect = error

        with pytest.raises(requests.HTTPError) as exc_info:
            authenticator.probe_authentication()

        assert exc_info.value is error

    def test_probe_connection_error_propagates(self, authenticator, mock_connector):
        mock_connector.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(requests.ConnectionError):
            authenticator.probe_authentication()


@pytest.mark.unit
class TestParseAuthenticationPoint:
    def test_strips_scheme_and_quotes(self):
        point = parse_authentication_point('X-Realm="https://alm.example.com/qcbin/authentication-point"')
        assert point == "https://alm.example.com/qcbin/authentication-point/authenticate"

    def test_keeps_only_second_segment(self):
        """Values with several '=' are cut at the second one."""
        point = parse_authentication_point('Basic realm="http://host/auth?x=1"')
        assert point == "http://host/auth?x/authenticate"

    def test_header_without_equals_is_rejected(self):
        with pytest.raises(ProtocolError):
            parse_authentication_point("Basic")

    def test_authentication_point_path(self):
        path = authentication_point_path("https://alm.example.com/qcbin/authentication-point/authenticate")
        assert path == "/qcbin/authentication-point/authenticate"

    @pytest.mark.parametrize(
        "value",
        [
            "http://host/with space/authenticate",
            "http://[broken/authenticate",
            "http://host:notaport/authenticate",
            "http://host",
        ],
    )
    def test_malformed_authentication_point(self, value):
        with pytest.raises(ProtocolError):
            authentication_point_path(value)


@pytest.mark.unit
class TestLogin:
    @pytest.fixture
    def authenticator(self, mock_connector):
        return ALMAuthenticator(mock_connector)

    def test_login_when_already_authenticated_only_probes(self, authenticator, mock_connector):
        authenticator.login("bob", "secret")

        assert mock_connector.get.call_count == 1
        mock_connector.get.assert_called_once_with(IS_AUTHENTICATED_PATH)

    def test_login_when_challenged_presents_basic_credentials(
        self, authenticator, mock_connector, make_http_error
    ):
        mock_connector.get.side_effect = [
            make_http_error(
                401,
                {"WWW-Authenticate": 'X-Realm="https://alm.example.com/qcbin/authentication-point"'},
            ),
            MagicMock(status_code=200),
        ]

        authenticator.login("bob", "secret")

        assert mock_connector.get.call_count == 2
        login_call = mock_connector.get.call_args_list[1]
        assert login_call.args == ("/qcbin/authentication-point/authenticate",)
        assert login_call.kwargs == {"headers": {"Authorization": "Basic Ym9iOnNlY3JldA=="}}

    def test_login_with_malformed_authentication_point(
        self, authenticator, mock_connector, make_http_error
    ):
        mock_connector.get.side_effect = make_http_error(
            401, {"WWW-Authenticate": 'Basic realm="http://[broken"'}
        )

        with pytest.raises(ProtocolError):
            authenticator.login("bob", "secret")

        assert mock_connector.get.call_count == 1

    def test_rejected_credentials_propagate_unchanged(
        self, authenticator, mock_connector, make_http_error
    ):
        rejected = make_http_error(401)
        mock_connector.get.side_effect = [
            make_http_error(401, {"WWW-Authenticate": 'Basic realm="http://host/qcbin/authentication-point"'}),
            rejected,
        ]

        with pytest.raises(requests.HTTPError) as exc_info:
            authenticator.login("bob", "wrong")

        assert exc_info.value is rejected

    def test_login_at_skips_probe(self, authenticator, mock_connector):
        authenticator.login_at("qcbin/authentication-point/authenticate", "alice", "pw")

        mock_connector.get.assert_called_once_with(
            "qcbin/authentication-point/authenticate",
            headers={"Authorization": "Basic YWxpY2U6cHc="},
        )

    def test_login_at_forbidden_propagates(self, authenticator, mock_connector, make_http_error):
        mock_connector.get.side_effect = make_http_error(403)

        with pytest.raises(requests.HTTPError) as exc_info:
            authenticator.login_at("/qcbin/authentication-point/authenticate", "bob", "secret")

        assert exc_info.value.response.status_code == 403


@pytest.mark.unit
class TestLogout:
    def test_logout_calls_logout_path_and_clears_cookies(self, mock_connector):
        ALMAuthenticator(mock_connector).logout()

        mock_connector.get.assert_called_once_with(LOGOUT_PATH)
        mock_connector.clear_session.assert_called_once_with()

    def test_logout_failure_keeps_cookies(self, mock_connector, make_http_error):
        mock_connector.get.side_effect = make_http_error(500)

        with pytest.raises(requests.HTTPError):
            ALMAuthenticator(mock_connector).logout()

        mock_connector.clear_session.assert_not_called()


@pytest.mark.unit
class TestProbeResult:
    def test_factories(self):
        assert ProbeResult.authenticated().is_authenticated
        challenged = ProbeResult.challenged("http://host/auth/authenticate")
        assert not challenged.is_authenticated
        assert challenged.authentication_point == "http://host/auth/authenticate"

    def test_challenged_requires_point(self):
        with pytest.raises(ValidationError):
            ProbeResult(state=AuthenticationState.CHALLENGED)

    def test_authenticated_rejects_point(self):
        with pytest.raises(ValidationError):
            ProbeResult(state=AuthenticationState.AUTHENTICATED, authentication_point="/x")
