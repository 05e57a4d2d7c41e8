"""Pytest configuration and shared fixtures."""

import socket
import threading
from collections.abc import Callable

import msgpack
import pytest

from awslambdarpc.codec.gobrpc import (
    INVOKE_REQUEST,
    INVOKE_RESPONSE,
    REQUEST_HEADER,
    RESPONSE_HEADER,
)
from awslambdarpc.gob import Decoder, Encoder, Incomplete, StructType
from awslambdarpc.messages import (
    InvocationError,
    InvokeRequest,
    InvokeResponse,
    RequestHeader,
    ResponseHeader,
    Timestamp,
)

# What net/rpc sends as the body of a response carrying a server error.
INVALID_REQUEST = StructType("invalidRequest", [])


def request_from_wire(value) -> InvokeRequest:
    """Read an InvokeRequest the way the runtime does."""
    deadline = value.get("Deadline") or {}
    return InvokeRequest(
        payload=value.get("Payload") or b"",
        deadline=Timestamp(deadline.get("Seconds", 0), deadline.get("Nanos", 0)),
        request_id=value.get("RequestId", ""),
        trace_id=value.get("XAmznTraceId", ""),
        invoked_function_arn=value.get("InvokedFunctionArn", ""),
        cognito_identity_id=value.get("CognitoIdentityId", ""),
        cognito_identity_pool_id=value.get("CognitoIdentityPoolId", ""),
        client_context=value.get("ClientContext") or b"",
    )


def header_to_wire(header: ResponseHeader) -> dict:
    return {"ServiceMethod": header.service_method, "Seq": header.seq, "Error": header.error}


def error_to_wire(error: InvocationError) -> dict:
    return {
        "Message": error.message,
        "Type": error.error_type,
        "StackTrace": [_parse_frame(line) for line in error.stack_trace],
        "ShouldExit": error.should_exit,
    }


def response_to_wire(response: InvokeResponse) -> dict:
    """Write an InvokeResponse the way aws-lambda-go does."""
    return {
        "Payload": response.payload,
        "Error": error_to_wire(response.error) if response.error is not None else None,
    }


def _parse_frame(line: str) -> dict:
    # "path:line label" back into an aws-lambda-go stack frame.
    location, _, label = line.partition(" ")
    path, _, number = location.rpartition(":")
    if not path or not number.isdigit():
        return {"Path": line, "Line": 0, "Label": ""}
    return {"Path": path, "Line": int(number), "Label": label}


class GobServerCodec:
    """Server side of the net/rpc gob codec, for the fake runtime."""

    def __init__(self) -> None:
        self.encoder = Encoder()
        self.decoder = Decoder()
        self._header: RequestHeader | None = None

    def feed(self, data: bytes) -> None:
        self.decoder.feed(data)

    def read_request(self) -> tuple[RequestHeader, InvokeRequest] | None:
        try:
            if self._header is None:
                value = self.decoder.decode(REQUEST_HEADER)
                self._header = RequestHeader(value["ServiceMethod"], value["Seq"])
            body = request_from_wire(self.decoder.decode(INVOKE_REQUEST))
        except Incomplete:
            return None
        header, self._header = self._header, None
        return header, body

    def response(self, header: ResponseHeader, body: InvokeResponse | None = None) -> bytes:
        data = self.encoder.encode(RESPONSE_HEADER, header_to_wire(header))
        if body is None:
            return data + self.encoder.encode(INVALID_REQUEST, {})
        return data + self.encoder.encode(INVOKE_RESPONSE, response_to_wire(body))


class MsgpackServerCodec:
    """Server side of the net/rpc msgpack codec, for the fake runtime."""

    def __init__(self) -> None:
        self.unpacker = msgpack.Unpacker(raw=False)
        self._header: RequestHeader | None = None

    def feed(self, data: bytes) -> None:
        self.unpacker.feed(data)

    def read_request(self) -> tuple[RequestHeader, InvokeRequest] | None:
        try:
            if self._header is None:
                value = self.unpacker.unpack()
                self._header = RequestHeader(value["ServiceMethod"], value["Seq"])
            body = request_from_wire(self.unpacker.unpack())
        except msgpack.OutOfData:
            return None
        header, self._header = self._header, None
        return header, body

    def response(self, header: ResponseHeader, body: InvokeResponse | None = None) -> bytes:
        data = msgpack.packb(header_to_wire(header), use_bin_type=True)
        return data + msgpack.packb(response_to_wire(body) if body else {}, use_bin_type=True)


Handler = Callable[..., "bytes | None"]

SERVER_CODECS = {"gob": GobServerCodec, "msgpack": MsgpackServerCodec}


class FakeRuntime:
    """A local TCP listener serving Function.Invoke the way a Go runtime does.

    ``handler(codec, header, request)`` returns the bytes to send back, built
    with ``codec.response(...)``; the connection is closed afterwards.
    """

    def __init__(self, handler: Handler, codec: str = "gob") -> None:
        self.handler = handler
        self.codec = codec
        self.requests: list[tuple[RequestHeader, InvokeRequest]] = []
        self._listener = socket.create_server(("127.0.0.1", 0))
        self._listener.settimeout(0.1)
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    @property
    def address(self) -> str:
        host, port = self._listener.getsockname()[:2]
        return f"{host}:{port}"

    def stop(self) -> None:
        self._stopped.set()
        self._thread.join(timeout=5)
        self._listener.close()

    def _serve(self) -> None:
        while not self._stopped.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            with conn:
                conn.settimeout(5)
                try:
                    self._handle(conn)
                except OSError:
                    # The client went away; tests assert on its side.
                    continue

    def _handle(self, conn: socket.socket) -> None:
        codec = SERVER_CODECS[self.codec]()
        request = None
        while request is None:
            chunk = conn.recv(4096)
            if not chunk:
                return
            codec.feed(chunk)
            request = codec.read_request()
        self.requests.append(request)
        reply = self.handler(codec, *request)
        if reply:
            conn.sendall(reply)


@pytest.fixture
def fake_runtime():
    """Factory starting fake runtimes that are stopped after the test."""
    runtimes: list[FakeRuntime] = []

    def start(handler: Handler, codec: str = "gob") -> FakeRuntime:
        runtime = FakeRuntime(handler, codec=codec)
        runtimes.append(runtime)
        return runtime

    yield start

    for runtime in runtimes:
        runtime.stop()


@pytest.fixture
def unused_address():
    """An address nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"127.0.0.1:{port}"


@pytest.fixture
def silent_listener():
    """A listener that accepts connections at the TCP level but never answers."""
    server = socket.create_server(("127.0.0.1", 0))
    host, port = server.getsockname()[:2]
    yield f"{host}:{port}"
    server.close()


@pytest.fixture
def gob_server():
    """Runtime side of a gob net/rpc connection, for building responses."""
    return GobServerCodec()


@pytest.fixture
def msgpack_server():
    """Runtime side of a msgpack net/rpc connection."""
    return MsgpackServerCodec()
