"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of ALMREST, licensed under the MIT License.
See LICENSE file for details.
"""

"""
HTTP connector for the ALM REST API.

The connector owns everything transport related: the ``requests.Session``
whose cookie jar carries the ALM session, URL construction for entities,
encoding and decoding of entity payloads, and request logging. Errors from
``requests`` are logged and re-raised unchanged.
"""

import base64
import json
import logging
import time
from typing import Any

import requests

from almrest.alm_models import ALMEntity, ALMEntityCollection
from almrest.core.config import ALMConfig
from almrest.core.logging import correlation_manager, get_logger

logger = get_logger(__name__)

JSON_CONTENT_TYPE = "application/json"


class RestConnector:
    """Transport used by the authenticator and the entity client."""

    def __init__(self, config: ALMConfig, session: requests.Session | None = None):
        """Initialize the connector.

        Args:
            config: The ALM connection configuration
            session: Optional pre-built session, mainly for tests
        """
        self.config = config
        self.session = session or requests.Session()
        self.headers = {"Accept": JSON_CONTENT_TYPE}

        # Request metrics for logging
        self.request_count = 0

        logger.info(
            f"RestConnector initialized: url={config.base_url}, "
            f"domain={config.domain}, project={config.project}"
        )

    @staticmethod
    def create_basic_auth_header(username: str, password: str) -> dict[str, str]:
        """Build a Basic ``Authorization`` header from the given credentials."""
        credentials = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
        return {"Authorization": f"Basic {credentials}"}

    def build_url(self, path: str) -> str:
        """Resolve a server path (``qcbin/...``) against the configured base URL."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.config.base_url}/{path.lstrip('/')}"

    def build_entity_collection_url(self, entity_type: str) -> str:
        return self.build_url(
            f"qcbin/rest/domains/{self.config.domain}/projects/{self.config.project}/{entity_type}s"
        )

    @staticmethod
    def require_id(entity_type: str, entity_id: str | None) -> str:
        """Return the id as a string, or raise ValueError if it is missing."""
        if entity_id is None or str(entity_id) == "":
            raise ValueError(f"An id is required to address a {entity_type} entity")
        return str(entity_id)

    def build_entity_url(self, entity_type: str, entity_id: str) -> str:
        entity_id = self.require_id(entity_type, entity_id)
        return f"{self.build_entity_collection_url(entity_type)}/{entity_id}"

    def build_run_step_url(self, run_id: str, run_step_id: str) -> str:
        """Run steps are addressed under their run: ``runs/{run_id}/run-steps/{run_step_id}``."""
        run_step_id = self.require_id("run-step", run_step_id)
        return f"{self.build_entity_url('run', run_id)}/run-steps/{run_step_id}"

    def clear_session(self) -> None:
        """Forget the session cookies set by the server."""
        self.session.cookies.clear()
        logger.debug("Session cookies cleared")

    def get(
        self,
        url: str,
        response_type: type | None = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ):
        return self._request("GET", url, response_type, headers, params)

    def post(
        self,
        url: str,
        response_type: type | None = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        body: ALMEntity | bytes | None = None,
        content_type: str | None = None,
    ):
        return self._request("POST", url, response_type, headers, params, body, content_type)

    def put(
        self,
        url: str,
        response_type: type | None = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        body: ALMEntity | bytes | None = None,
        content_type: str | None = None,
    ):
        return self._request("PUT", url, response_type, headers, params, body, content_type)

    def _request(
        self,
        method: str,
        url: str,
        response_type: type | None = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        body: ALMEntity | bytes | None = None,
        content_type: str | None = None,
    ):
        """Send one request and decode the response.

        Args:
            method: HTTP method
            url: Absolute URL or a server path such as ``qcbin/rest/is-authenticated``
            response_type: ALMEntity or ALMEntityCollection subclass to decode
                the body into; None returns the raw ``requests.Response``
            headers: Extra headers merged over the defaults
            params: Query parameters
            body: Entity to encode as JSON, or raw bytes
            content_type: Content-Type for the body (defaults to JSON for entities)

        Returns:
            The decoded entity, or the response when no response_type is given

        Raises:
            requests.HTTPError: For any non-2xx status
            requests.RequestException: For connection errors, timeouts, etc.
        """
        url = self.build_url(url)
        self.request_count += 1
        request_number = self.request_count

        request_headers = self.headers.copy()
        request_headers["X-Correlation-ID"] = correlation_manager.get_correlation_id()
        if headers:
            request_headers.update(headers)

        data = None
        if isinstance(body, ALMEntity):
            data = json.dumps(body.to_payload())
            request_headers["Content-Type"] = content_type or JSON_CONTENT_TYPE
        elif body is not None:
            data = body
            if content_type:
                request_headers["Content-Type"] = content_type

        safe_headers = {k: v for k, v in request_headers.items() if k.lower() != "authorization"}
        logger.info(f"API Request #{request_number}: {method} {url}")
        logger.debug(f"Parameters: {params}")
        logger.debug(f"Headers: {safe_headers}")
        if isinstance(body, ALMEntity):
            logger.debug(f"Request Body: {data}")
        elif body is not None:
            logger.debug(f"Request Body: {len(body)} bytes of {content_type}")

        start_time = time.time()

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=request_headers,
                params=params,
                data=data,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )

            duration = time.time() - start_time
            logger.info(
                f"Response #{request_number} received in {duration:.2f}s - "
                f"Status: {response.status_code} - {method} {url}"
            )
            if logger.isEnabledFor(logging.DEBUG):
                safe_response_headers = {
                    k: v for k, v in response.headers.items() if k.lower() != "set-cookie"
                }
                logger.debug(f"Response Headers: {safe_response_headers}")

            response.raise_for_status()

            if response_type is None:
                return response

            return self._decode(response, response_type)

        except requests.exceptions.HTTPError as e:
            # 401 is an expected answer from the is-authenticated probe
            level = logging.DEBUG if e.response is not None and e.response.status_code == 401 else logging.ERROR
            logger.log(
                level,
                f"HTTP Error #{request_number}: {e} - "
                f"{method} {url} - Duration: {time.time() - start_time:.2f}s",
            )
            if e.response is not None and e.response.text:
                logger.debug(f"Response text: {e.response.text}")
            raise

        except requests.exceptions.ConnectionError:
            logger.error(
                f"Connection Error #{request_number}: Could not connect to {url} - "
                f"{method} - Duration: {time.time() - start_time:.2f}s"
            )
            raise

        except requests.exceptions.Timeout:
            logger.error(
                f"Timeout Error #{request_number}: Request to {url} timed out - "
                f"{method} - Duration: {time.time() - start_time:.2f}s"
            )
            raise

        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request Error #{request_number}: {e} - "
                f"{method} {url} - Duration: {time.time() - start_time:.2f}s"
            )
            raise

        except ValueError as e:
            logger.error(
                f"Decoding Error #{request_number}: {e} - "
                f"{method} {url} - Duration: {time.time() - start_time:.2f}s"
            )
            raise

    def _decode(self, response: requests.Response, response_type: type):
        payload = response.json()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Response Body: {json.dumps(payload)[:2000]}")

        if issubclass(response_type, (ALMEntity, ALMEntityCollection)):
            return response_type.from_payload(payload)
        raise TypeError(f"Unsupported response type: {response_type.__name__}")
