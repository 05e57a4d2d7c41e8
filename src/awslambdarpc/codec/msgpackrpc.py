"""net/rpc msgpack codec: header and body as consecutive msgpack maps.

This is the layout of hashicorp/net-rpc-msgpackrpc, for runtimes that serve
net/rpc with a msgpack codec instead of gob.
"""

from typing import Any

import msgpack

from ..exceptions import DecodeError, EncodeError
from ..messages import InvokeRequest, InvokeResponse, RequestHeader, ResponseHeader
from .base import ClientCodec

_INCOMPLETE = object()


class MsgpackClientCodec(ClientCodec):
    """Client side of the net/rpc msgpack codec."""

    name = "msgpack"

    def __init__(self) -> None:
        # []byte may arrive as a raw string; surrogateescape keeps it lossless.
        self._unpacker = msgpack.Unpacker(raw=False, unicode_errors="surrogateescape")
        self._header: ResponseHeader | None = None

    def encode_request(self, header: RequestHeader, body: InvokeRequest) -> bytes:
        try:
            return msgpack.packb(header.to_wire(), use_bin_type=True) + msgpack.packb(
                body.to_wire(), use_bin_type=True
            )
        except (TypeError, ValueError, OverflowError) as e:
            raise EncodeError(f"msgpack: {e}") from e

    def feed(self, data: bytes) -> None:
        self._unpacker.feed(data)

    def next_response(self) -> tuple[ResponseHeader, InvokeResponse | None] | None:
        if self._header is None:
            value = self._unpack()
            if value is _INCOMPLETE:
                return None
            self._header = ResponseHeader.from_wire(value)

        value = self._unpack()
        if value is _INCOMPLETE:
            return None
        header, self._header = self._header, None
        if header.error:
            return header, None
        return header, InvokeResponse.from_wire(value)

    def _unpack(self) -> Any:
        try:
            return self._unpacker.unpack()
        except msgpack.OutOfData:
            return _INCOMPLETE
        except (msgpack.FormatError, msgpack.StackError, ValueError) as e:
            raise DecodeError(f"msgpack: {e}") from e
