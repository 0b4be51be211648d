"""
Exceptions raised by the Edge Gateway client.

Operation-level errors wrap the transport and codec errors they were caused by
(``raise ... from e``), so callers can catch the operation-level class and
still inspect ``__cause__``.
"""
from typing import Optional


class EdgeGatewayError(Exception):
    """Base class for every error raised by this package."""


# Transport / codec level

class TransportError(EdgeGatewayError):
    """The HTTP exchange itself failed (connection, timeout, TLS...)."""


class HttpStatusError(EdgeGatewayError):
    """The remote service answered with a non-2xx status.

    Attributes:
        status_code: HTTP status code of the response.
        minor_error_code: ``minorErrorCode`` of the vCloud ``Error`` body, if any.
        server_message: ``message`` of the vCloud ``Error`` body, if any.
    """

    def __init__(
        self,
        status_code: int,
        minor_error_code: Optional[str] = None,
        server_message: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.minor_error_code = minor_error_code
        self.server_message = server_message
        detail = f"HTTP {status_code}"
        if minor_error_code:
            detail += f" {minor_error_code}"
        if server_message:
            detail += f": {server_message}"
        super().__init__(detail)


class DecodeError(EdgeGatewayError):
    """A response body could not be decoded into the expected document."""


# Operation level

class RefreshError(EdgeGatewayError):
    """The gateway resource could not be (re)fetched."""


FetchError = RefreshError


class NotFoundError(EdgeGatewayError):
    """A named interface, network or the uplink interface does not exist."""


class SerializationError(EdgeGatewayError):
    """An outbound document could not be serialized."""


class SubmissionError(EdgeGatewayError):
    """Submitting a document failed in transport or with a non-2xx status."""


class TaskDecodeError(EdgeGatewayError):
    """The response to a submission was not a decodable Task document."""
