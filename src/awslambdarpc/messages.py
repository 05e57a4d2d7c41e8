"""Request and response messages exchanged with the function runtime.

Field names on the wire follow the Go ``messages`` package of aws-lambda-go.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .exceptions import DecodeError

SERVICE_METHOD = "Function.Invoke"


@dataclass(frozen=True)
class Timestamp:
    """Absolute point in time as Unix seconds plus nanoseconds."""

    seconds: int
    nanos: int

    def to_wire(self) -> dict[str, Any]:
        return {"Seconds": self.seconds, "Nanos": self.nanos}


@dataclass(frozen=True)
class InvokeRequest:
    """A single invocation of the function."""

    payload: bytes
    deadline: Timestamp
    request_id: str = ""
    trace_id: str = ""
    invoked_function_arn: str = ""
    cognito_identity_id: str = ""
    cognito_identity_pool_id: str = ""
    client_context: bytes = b""

    def to_wire(self) -> dict[str, Any]:
        return {
            "Payload": self.payload,
            "RequestId": self.request_id,
            "XAmznTraceId": self.trace_id,
            "Deadline": self.deadline.to_wire(),
            "InvokedFunctionArn": self.invoked_function_arn,
            "CognitoIdentityId": self.cognito_identity_id,
            "CognitoIdentityPoolId": self.cognito_identity_pool_id,
            "ClientContext": self.client_context,
        }


@dataclass(frozen=True)
class InvocationError:
    """Error reported by the function runtime for a failed invocation."""

    error_type: str
    message: str
    stack_trace: tuple[str, ...] = ()
    should_exit: bool = False

    @classmethod
    def from_wire(cls, value: Mapping[str, Any]) -> "InvocationError":
        """Build from a decoded error struct.

        Accepts both the Go field names (gob) and the JSON tag names some
        codecs use (``errorType``, ``errorMessage``, ``stackTrace``).
        """
        frames = _pick(value, "StackTrace", "stackTrace") or []
        if not isinstance(frames, list):
            raise DecodeError(f"invalid stack trace: {frames!r}")
        return cls(
            error_type=_as_str(_pick(value, "Type", "errorType"), "Type"),
            message=_as_str(_pick(value, "Message", "errorMessage"), "Message"),
            stack_trace=tuple(_format_frame(frame) for frame in frames),
            should_exit=bool(value.get("ShouldExit", False)),
        )


@dataclass(frozen=True)
class InvokeResponse:
    """Result of an invocation: output payload or a reported error."""

    payload: bytes = b""
    error: InvocationError | None = None

    @classmethod
    def from_wire(cls, value: Any) -> "InvokeResponse":
        if not isinstance(value, Mapping):
            raise DecodeError(f"invalid response body: {value!r}")
        error = _pick(value, "Error", "error")
        if error is not None and not isinstance(error, Mapping):
            raise DecodeError(f"invalid error in response: {error!r}")
        return cls(
            payload=_as_bytes(_pick(value, "Payload", "payload"), "Payload"),
            error=InvocationError.from_wire(error) if error is not None else None,
        )


@dataclass(frozen=True)
class RequestHeader:
    """net/rpc envelope preceding each request body."""

    service_method: str
    seq: int

    def to_wire(self) -> dict[str, Any]:
        return {"ServiceMethod": self.service_method, "Seq": self.seq}


@dataclass(frozen=True)
class ResponseHeader:
    """net/rpc envelope preceding each response body."""

    service_method: str
    seq: int
    error: str = ""

    @classmethod
    def from_wire(cls, value: Any) -> "ResponseHeader":
        if not isinstance(value, Mapping):
            raise DecodeError(f"invalid response header: {value!r}")
        seq = value.get("Seq", 0)
        if not isinstance(seq, int) or isinstance(seq, bool) or seq < 0:
            raise DecodeError(f"invalid sequence number: {seq!r}")
        return cls(
            service_method=_as_str(value.get("ServiceMethod"), "ServiceMethod"),
            seq=seq,
            error=_as_str(value.get("Error"), "Error"),
        )


def _pick(value: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if value.get(name) is not None:
            return value[name]
    return None


def _as_str(value: Any, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"{name}: expected string, got {type(value).__name__}")
    return value


def _as_bytes(value: Any, name: str) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        # Some msgpack encoders send []byte as a raw string.
        return value.encode("utf-8", errors="surrogateescape")
    if not isinstance(value, (bytes, bytearray)):
        raise DecodeError(f"{name}: expected bytes, got {type(value).__name__}")
    return bytes(value)


def _format_frame(frame: Any) -> str:
    if isinstance(frame, str):
        return frame
    if not isinstance(frame, Mapping):
        raise DecodeError(f"invalid stack frame: {frame!r}")
    path = _pick(frame, "Path", "path") or ""
    line = _pick(frame, "Line", "line") or 0
    label = _pick(frame, "Label", "label") or ""
    return f"{path}:{line} {label}".rstrip()

