"""Lambda client for invoking a local function over net/rpc."""

import asyncio
import logging
import socket
from contextlib import closing
from typing import Any

from .codec import ClientCodec, get_codec
from .config import (
    DEFAULT_ADDRESS,
    DEFAULT_CODEC,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_DEADLINE_SECONDS,
    Settings,
)
from .deadline import compute_deadline
from .exceptions import (
    ConnectError,
    ConnectionClosedError,
    DecodeError,
    EncodeError,
    InvokeTimeoutError,
    TransportError,
)
from .messages import SERVICE_METHOD, InvokeRequest, RequestHeader
from .result import Failure, InvokeResult, interpret_response

logger = logging.getLogger(__name__)

RECV_BUFFER_SIZE = 64 * 1024


def parse_address(address: str) -> tuple[str, int]:
    """Split a ``host:port`` address; IPv6 hosts may be bracketed.

    Raises:
        ConnectError: If the address has no valid port
    """
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ConnectError(f"dial tcp {address}: missing port in address", address=address)
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not port.isdigit() or int(port) > 65535:
        raise ConnectError(f"dial tcp {address}: invalid port {port!r}", address=address)
    return host or "localhost", int(port)


class _Call:
    """One Function.Invoke exchange, independent of the socket API driving it."""

    def __init__(self, codec: ClientCodec, request: InvokeRequest, seq: int = 0) -> None:
        self.codec = codec
        self.request = request
        self.seq = seq

    def encode(self) -> bytes:
        return self.codec.encode_request(RequestHeader(SERVICE_METHOD, self.seq), self.request)

    def receive(self, data: bytes) -> InvokeResult | None:
        """Feed received bytes; return the result once the matching response is in."""
        self.codec.feed(data)
        try:
            for header, body in self.codec.responses():
                if header.seq != self.seq:
                    logger.warning(f"Discarding response for unknown call seq={header.seq}")
                    continue
                return interpret_response(header, body)
        except DecodeError as e:
            return Failure(e)
        return None

    def closed(self) -> Failure:
        return Failure(ConnectionClosedError("connection closed before a full response was read"))


class LambdaClient:
    """Client for invoking a function served by a local Lambda runtime."""

    def __init__(
        self,
        address: str = DEFAULT_ADDRESS,
        codec: str = DEFAULT_CODEC,
        connect_timeout: float | None = DEFAULT_CONNECT_TIMEOUT,
        timeout: float | None = None,
    ) -> None:
        """Initialize the Lambda client.

        Args:
            address: ``host:port`` the function's runtime listens on
            codec: Name of the wire codec ("gob" or "msgpack")
            connect_timeout: Seconds to wait for the connection, None for the
                system default
            timeout: Seconds to wait on each read or write once connected,
                None to wait for as long as the runtime takes

        Raises:
            ConfigurationError: If the codec is unknown
        """
        self.address = address
        self.codec = codec
        self.connect_timeout = connect_timeout
        self.timeout = timeout
        self._codec_class = get_codec(codec)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LambdaClient":
        return cls(
            address=settings.address,
            codec=settings.codec,
            connect_timeout=settings.connect_timeout,
            timeout=settings.timeout,
        )

    def _new_call(self, payload: bytes, deadline_seconds: float, metadata: dict[str, Any]) -> _Call:
        deadline = compute_deadline(deadline_seconds)
        request = InvokeRequest(payload=bytes(payload), deadline=deadline, **metadata)
        return _Call(self._codec_class(), request)

    def invoke(
        self,
        payload: bytes,
        deadline_seconds: float = DEFAULT_DEADLINE_SECONDS,
        **metadata: Any,
    ) -> InvokeResult:
        """Invoke the function once and wait for its response.

        Args:
            payload: Input passed to the function, e.g. a JSON event
            deadline_seconds: Time the runtime gives the invocation
            **metadata: Optional request fields (request_id, trace_id,
                invoked_function_arn, cognito_identity_id,
                cognito_identity_pool_id, client_context)

        Returns:
            Success with the function's output, or Failure with the error
        """
        call = self._new_call(payload, deadline_seconds, metadata)
        try:
            sock = self._connect()
        except TransportError as e:
            return Failure(e)

        with closing(sock):
            try:
                data = call.encode()
            except EncodeError as e:
                return Failure(e)

            try:
                sock.sendall(data)
                logger.debug(f"Sent {len(data)} bytes to {self.address}")
                while True:
                    chunk = sock.recv(RECV_BUFFER_SIZE)
                    if not chunk:
                        return call.closed()
                    result = call.receive(chunk)
                    if result is not None:
                        return result
            except socket.timeout:
                return Failure(
                    InvokeTimeoutError(f"no response from {self.address} within {self.timeout}s")
                )
            except OSError as e:
                return Failure(TransportError(f"tcp {self.address}: {e}"))

    def _connect(self) -> socket.socket:
        host, port = parse_address(self.address)
        try:
            sock = socket.create_connection((host, port), timeout=self.connect_timeout)
        except OSError as e:
            raise ConnectError(f"dial tcp {self.address}: {e}", address=self.address) from e
        sock.settimeout(self.timeout)
        logger.debug(f"Connected to {self.address}")
        return sock

    async def invoke_async(
        self,
        payload: bytes,
        deadline_seconds: float = DEFAULT_DEADLINE_SECONDS,
        **metadata: Any,
    ) -> InvokeResult:
        """Invoke the function once on the running event loop.

        Same arguments and result as :meth:`invoke`.
        """
        call = self._new_call(payload, deadline_seconds, metadata)
        try:
            host, port = parse_address(self.address)
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), self.connect_timeout
            )
        except ConnectError as e:
            return Failure(e)
        except asyncio.TimeoutError:
            error = ConnectError(f"dial tcp {self.address}: i/o timeout", address=self.address)
            return Failure(error)
        except OSError as e:
            return Failure(ConnectError(f"dial tcp {self.address}: {e}", address=self.address))

        try:
            try:
                data = call.encode()
            except EncodeError as e:
                return Failure(e)

            writer.write(data)
            await asyncio.wait_for(writer.drain(), self.timeout)
            while True:
                chunk = await asyncio.wait_for(reader.read(RECV_BUFFER_SIZE), self.timeout)
                if not chunk:
                    return call.closed()
                result = call.receive(chunk)
                if result is not None:
                    return result
        except asyncio.TimeoutError:
            return Failure(
                InvokeTimeoutError(f"no response from {self.address} within {self.timeout}s")
            )
        except OSError as e:
            return Failure(TransportError(f"tcp {self.address}: {e}"))
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass  # Connection already reset by the peer


def invoke(
    address: str,
    payload: bytes,
    deadline_seconds: float = DEFAULT_DEADLINE_SECONDS,
    *,
    codec: str = DEFAULT_CODEC,
    connect_timeout: float | None = DEFAULT_CONNECT_TIMEOUT,
    timeout: float | None = None,
) -> InvokeResult:
    """Invoke the function listening on ``address`` with ``payload``."""
    client = LambdaClient(address, codec=codec, connect_timeout=connect_timeout, timeout=timeout)
    return client.invoke(payload, deadline_seconds)
