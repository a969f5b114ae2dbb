"""
Gateways to the game client's local endpoint and the vendor's regional service.

Both expose `call(path, method, body)` returning decoded JSON and raise a
classified GatewayError on failure.
"""

from .errors import (
    GatewayError,
    GatewayErrorKind,
    GatewayCallError,
    MalformedPayloadError,
    NoSessionError,
    NotFoundError,
    UnauthorizedError,
    UnreachableError,
)
from .base import BaseGateway
from .local_gateway import LocalGateway
from .remote_gateway import RefreshBudget, RemoteGateway

__all__ = [
    "BaseGateway",
    "GatewayCallError",
    "GatewayError",
    "GatewayErrorKind",
    "LocalGateway",
    "MalformedPayloadError",
    "NoSessionError",
    "NotFoundError",
    "RefreshBudget",
    "RemoteGateway",
    "UnauthorizedError",
    "UnreachableError",
]
