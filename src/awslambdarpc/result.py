"""Invocation results and response interpretation."""

from dataclasses import dataclass
from typing import ClassVar, NoReturn, Union

from .exceptions import DecodeError, LambdaRPCError, RemoteInvocationError, ServerError
from .messages import InvokeResponse, ResponseHeader


@dataclass(frozen=True)
class Success:
    """The function returned ``payload``."""

    payload: bytes
    ok: ClassVar[bool] = True

    def unwrap(self) -> bytes:
        return self.payload


@dataclass(frozen=True)
class Failure:
    """The invocation failed; ``error`` tells how.

    ``error`` is a :class:`RemoteInvocationError` when the function itself
    failed, a :class:`TransportError` when no response could be obtained, an
    :class:`EncodeError` or a :class:`DecodeError` on protocol problems.
    """

    error: LambdaRPCError
    ok: ClassVar[bool] = False

    def unwrap(self) -> NoReturn:
        raise self.error


InvokeResult = Union[Success, Failure]


def interpret_response(header: ResponseHeader, body: InvokeResponse | None) -> InvokeResult:
    """Turn a decoded response envelope and body into a result.

    A server-level error in the envelope wins over the body, and an error in
    the body wins over its payload.
    """
    if header.error:
        return Failure(ServerError(header.error))
    if body is None:
        return Failure(DecodeError(f"response {header.seq} has no body"))
    if body.error is not None:
        return Failure(RemoteInvocationError(body.error))
    return Success(body.payload)
