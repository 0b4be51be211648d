"""
HTTP transport for the vCloud API.

Wraps a ``requests.Session`` that injects the Accept header and the session
token on every request. The transport never raises on HTTP status itself;
``check_response`` turns non-2xx responses into ``HttpStatusError``.
"""
import logging
import xml.etree.ElementTree as ET
from typing import Dict, Optional

import requests

from edge_gateway.core.config import Settings, settings as default_settings
from edge_gateway.core.exceptions import HttpStatusError, TransportError

logger = logging.getLogger(__name__)

AUTH_HEADER = "x-vcloud-authorization"


def check_response(response: requests.Response) -> requests.Response:
    """
    Validate a vCloud API response.

    Args:
        response: Raw response returned by the transport

    Returns:
        The same response when its status code is 2xx

    Raises:
        HttpStatusError: For any other status code, carrying the vCloud
            ``Error`` message and minorErrorCode when the body has them
    """
    if 200 <= response.status_code < 300:
        return response

    minor_error_code = None
    message = None
    try:
        error = ET.fromstring(response.content)
        minor_error_code = error.attrib.get("minorErrorCode")
        message = error.attrib.get("message")
    except ET.ParseError:
        # Not every error page is a vCloud Error document
        message = (response.text or "").strip()[:200] or None

    logger.warning(f"vCloud API returned {response.status_code} for {response.url}")
    raise HttpStatusError(response.status_code, minor_error_code, message)


class VCloudHttpClient:
    """Session-bound HTTP client for the vCloud API."""

    def __init__(
        self,
        auth_token: Optional[str] = None,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the HTTP client.

        Args:
            auth_token: x-vcloud-authorization token (defaults to the configured one)
            settings: Settings to use (defaults to the global settings)
            session: Pre-built requests session, mostly for tests
        """
        self.settings = settings or default_settings
        self.timeout = self.settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()
        self.session.verify = self.settings.VERIFY_SSL
        self.session.headers.update(
            {"Accept": f"application/*+xml;version={self.settings.API_VERSION}"}
        )
        token = auth_token or self.settings.AUTH_TOKEN
        if token:
            self.session.headers.update({AUTH_HEADER: token})

    def request(
        self,
        method: str,
        url: str,
        data: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        """
        Perform one HTTP exchange.

        Per-request ``headers`` are added on top of the session headers.

        Raises:
            TransportError: If the request could not be completed
        """
        body = data.encode("utf-8") if isinstance(data, str) else data
        try:
            return self.session.request(
                method,
                url,
                data=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise TransportError(f"{method} {url} failed: {e}") from e

    def close(self) -> None:
        """Release the underlying connection pool."""
        self.session.close()
