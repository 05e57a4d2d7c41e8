"""Exception classes for awslambdarpc."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .messages import InvocationError


class LambdaRPCError(Exception):
    """Base exception for all awslambdarpc errors."""


class ConfigurationError(LambdaRPCError):
    """Raised when a setting or codec name is invalid."""


class TransportError(LambdaRPCError):
    """Raised when the connection to the function cannot be made or kept."""


class ConnectError(TransportError):
    """Raised when dialing the function's address fails."""

    def __init__(self, message: str, address: str | None = None) -> None:
        super().__init__(message)
        self.address = address


class ConnectionClosedError(TransportError):
    """Raised when the peer closes the connection before a full response arrives."""


class InvokeTimeoutError(TransportError):
    """Raised when the optional client-side timeout elapses."""


class EncodeError(LambdaRPCError):
    """Raised when a request cannot be encoded."""


class DecodeError(LambdaRPCError):
    """Raised when a response is malformed or does not match the expected messages.

    This points at a protocol or version mismatch with the runtime rather
    than a failure of the function itself.
    """


class ServerError(DecodeError):
    """Raised when the net/rpc server rejects the call (e.g. unknown method)."""


class RemoteInvocationError(LambdaRPCError):
    """Raised when the function ran and reported an error."""

    def __init__(self, error: InvocationError) -> None:
        super().__init__(f"lambda returned error:\n{error.message}")
        self.error = error

    @property
    def error_type(self) -> str:
        return self.error.error_type

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def stack_trace(self) -> tuple[str, ...]:
        return self.error.stack_trace
