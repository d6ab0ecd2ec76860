"""Error taxonomy raised by the remote gateways and the sync stores.

Transport and status failures are normalised into four kinds so callers can
decide how to notify without knowing about httpx.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class GatewayError(Exception):
    kind = "GatewayError"

    def __init__(self, message: str, *, operation: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(operation={self.operation!r}, status={self.status!r}, message={self.message!r})"


class NetworkError(GatewayError):
    """The backend could not be reached (connect, read or timeout failure)."""

    kind = "NetworkError"


class NotFound(GatewayError):
    kind = "NotFound"


class ServerError(GatewayError):
    """5xx, an unexpected status, or a body that is not the expected shape."""

    kind = "ServerError"


class ValidationError(GatewayError):
    kind = "ValidationError"


__all__ = ["GatewayError", "NetworkError", "NotFound", "ServerError", "ValidationError"]
