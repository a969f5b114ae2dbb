# agent_overlay/gateways/errors.py
from enum import Enum
from typing import Any, Dict, Optional


class GatewayErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    UNREACHABLE = "unreachable"
    MALFORMED = "malformed"
    OTHER = "other"


class GatewayError(Exception):
    """Base class for failures of a single gateway call, carrying a classified kind."""

    kind: GatewayErrorKind = GatewayErrorKind.OTHER

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.url = url
        self.status_code = status_code

        # Structured detail for log lines and the status endpoint
        self.detail: Dict[str, Any] = {"error": self.kind.value, "message": message}
        if url:
            self.detail["url"] = url
        if status_code is not None:
            self.detail["status_code"] = status_code

        super().__init__(message)

    @property
    def should_refresh(self) -> bool:
        """True when the caller should refresh credentials and retry once."""
        return False


class UnauthorizedError(GatewayError):
    """
    The game client or the remote service rejected our tokens (401/403).
    The entitlement pair has most likely expired and can be refreshed.
    """

    kind = GatewayErrorKind.UNAUTHORIZED

    @property
    def should_refresh(self) -> bool:
        return True


class NotFoundError(GatewayError):
    """
    The endpoint answered 404. For match lookups this is the normal answer
    while the player is not in that phase.
    """

    kind = GatewayErrorKind.NOT_FOUND


class UnreachableError(GatewayError):
    """Connection-level failure: client not running, network down, or a timeout."""

    kind = GatewayErrorKind.UNREACHABLE


class MalformedPayloadError(GatewayError):
    """The response could not be decoded or did not have the expected shape."""

    kind = GatewayErrorKind.MALFORMED


class GatewayCallError(GatewayError):
    """Any other non-success status."""

    kind = GatewayErrorKind.OTHER


class NoSessionError(GatewayError):
    """A gateway was asked to call out while no authenticated session exists."""

    kind = GatewayErrorKind.UNREACHABLE


def error_for_status(status_code: int, message: str, url: Optional[str] = None) -> GatewayError:
    """Classify an HTTP status into the gateway error taxonomy."""
    if status_code in (401, 403):
        return UnauthorizedError(message, url=url, status_code=status_code)
    if status_code == 404:
        return NotFoundError(message, url=url, status_code=status_code)
    return GatewayCallError(message, url=url, status_code=status_code)
