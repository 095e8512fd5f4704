"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of ALMREST, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Exception types raised by ALMREST.

Transport failures are the ``requests`` exceptions themselves and are never
wrapped: callers that care about a status code read it from
``error.response.status_code``. Credentials rejected at the authentication
point surface the same way, as an HTTPError with status 401 or 403 raised from
the login call.
"""

import requests

# Network and HTTP-layer failures raised by the connector, propagated unchanged.
TransportError = requests.exceptions.RequestException


class ALMError(Exception):
    """Base class for errors raised by ALMREST itself."""


class ProtocolError(ALMError):
    """
    The server answered in a way the challenge/response contract does not allow.

    Raised for a 401 from the is-authenticated probe without a usable
    ``WWW-Authenticate`` header, and for an authentication point that cannot
    be parsed as a URI. Not retryable.
    """
