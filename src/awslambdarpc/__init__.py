"""awslambdarpc: invoke locally running AWS Lambda functions over net/rpc."""

from .client import LambdaClient, invoke
from .config import Settings
from .deadline import compute_deadline
from .exceptions import (
    ConfigurationError,
    ConnectError,
    ConnectionClosedError,
    DecodeError,
    EncodeError,
    InvokeTimeoutError,
    LambdaRPCError,
    RemoteInvocationError,
    ServerError,
    TransportError,
)
from .messages import InvocationError, InvokeRequest, InvokeResponse, Timestamp
from .result import Failure, InvokeResult, Success

__version__ = "0.1.0"
__all__ = [
    "invoke",
    "LambdaClient",
    "Settings",
    "compute_deadline",
    "Success",
    "Failure",
    "InvokeResult",
    "InvokeRequest",
    "InvokeResponse",
    "InvocationError",
    "Timestamp",
    "LambdaRPCError",
    "ConfigurationError",
    "TransportError",
    "ConnectError",
    "ConnectionClosedError",
    "InvokeTimeoutError",
    "EncodeError",
    "DecodeError",
    "ServerError",
    "RemoteInvocationError",
]
