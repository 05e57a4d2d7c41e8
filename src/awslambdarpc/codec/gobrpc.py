"""net/rpc default codec: header and body values on one gob stream."""

import logging

from ..exceptions import DecodeError, EncodeError
from ..gob import (
    BOOL,
    BYTES,
    INT,
    STRING,
    UINT,
    Decoder,
    Encoder,
    Field,
    GobError,
    Incomplete,
    SliceType,
    StructType,
)
from ..messages import InvokeRequest, InvokeResponse, RequestHeader, ResponseHeader
from .base import ClientCodec

logger = logging.getLogger(__name__)

# net/rpc envelopes.
REQUEST_HEADER = StructType("Request", [Field("ServiceMethod", STRING), Field("Seq", UINT)])
RESPONSE_HEADER = StructType(
    "Response", [Field("ServiceMethod", STRING), Field("Seq", UINT), Field("Error", STRING)]
)

# aws-lambda-go messages.
TIMESTAMP = StructType("InvokeRequest_Timestamp", [Field("Seconds", INT), Field("Nanos", INT)])
INVOKE_REQUEST = StructType(
    "InvokeRequest",
    [
        Field("Payload", BYTES),
        Field("RequestId", STRING),
        Field("XAmznTraceId", STRING),
        Field("Deadline", TIMESTAMP),
        Field("InvokedFunctionArn", STRING),
        Field("CognitoIdentityId", STRING),
        Field("CognitoIdentityPoolId", STRING),
        Field("ClientContext", BYTES),
    ],
)
STACK_FRAME = StructType(
    "InvokeResponse_Error_StackFrame",
    [Field("Path", STRING), Field("Line", INT), Field("Label", STRING)],
)
INVOKE_RESPONSE_ERROR = StructType(
    "InvokeResponse_Error",
    [
        Field("Message", STRING),
        Field("Type", STRING),
        Field("StackTrace", SliceType(STACK_FRAME)),
        Field("ShouldExit", BOOL),
    ],
)
INVOKE_RESPONSE = StructType(
    "InvokeResponse", [Field("Payload", BYTES), Field("Error", INVOKE_RESPONSE_ERROR)]
)


class GobClientCodec(ClientCodec):
    """Client side of Go's net/rpc gob codec."""

    name = "gob"

    def __init__(self) -> None:
        self._encoder = Encoder()
        self._decoder = Decoder()
        self._header: ResponseHeader | None = None

    def encode_request(self, header: RequestHeader, body: InvokeRequest) -> bytes:
        try:
            return self._encoder.encode(REQUEST_HEADER, header.to_wire()) + self._encoder.encode(
                INVOKE_REQUEST, body.to_wire()
            )
        except GobError as e:
            raise EncodeError(f"gob: {e}") from e

    def feed(self, data: bytes) -> None:
        self._decoder.feed(data)

    def next_response(self) -> tuple[ResponseHeader, InvokeResponse | None] | None:
        try:
            if self._header is None:
                self._header = ResponseHeader.from_wire(self._decoder.decode(RESPONSE_HEADER))
            if self._header.error:
                # The server sends an empty struct after an error header.
                self._decoder.decode()
                body = None
            else:
                body = InvokeResponse.from_wire(self._decoder.decode(INVOKE_RESPONSE))
        except Incomplete:
            return None
        except GobError as e:
            raise DecodeError(f"gob: {e}") from e

        header, self._header = self._header, None
        logger.debug(f"Decoded response seq={header.seq}, {self._decoder.buffered} bytes left")
        return header, body
