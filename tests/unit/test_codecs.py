"""Tests for the net/rpc client codecs."""

import msgpack
import pytest

from awslambdarpc.codec import GobClientCodec, MsgpackClientCodec, get_codec
from awslambdarpc.codec.gobrpc import RESPONSE_HEADER
from awslambdarpc.exceptions import ConfigurationError, DecodeError, EncodeError
from awslambdarpc.gob import BYTES, INT, STRING, Encoder, Field, MapType, StructType
from awslambdarpc.messages import (
    InvocationError,
    InvokeRequest,
    InvokeResponse,
    RequestHeader,
    ResponseHeader,
    Timestamp,
)

REQUEST = InvokeRequest(
    payload=b'{"body": "Hello World!"}',
    deadline=Timestamp(1700000015, 250),
    request_id="req-1",
)

# Request{ServiceMethod: "Function.Invoke", Seq: 0} as the first thing on a stream.
REQUEST_HEADER_DEFINITION = (
    b"\x2f\xff\x81\x03\x01\x01\x07Request\x01\xff\x82\x00\x01\x02\x01\x01\x0dServiceMethod"
    b"\x01\x0c\x00\x01\x01\x03Seq\x01\x06\x00\x00\x00"
)
REQUEST_HEADER_VALUE = b"\x14\xff\x82\x01\x0fFunction.Invoke\x00"


def msgpack_response(header, body):
    envelope = {"ServiceMethod": header.service_method, "Seq": header.seq, "Error": header.error}
    return msgpack.packb(envelope, use_bin_type=True) + msgpack.packb(body, use_bin_type=True)


class StructKey(dict):
    """A Go struct used as a map key."""

    def __hash__(self):
        return hash(tuple(sorted(self.items())))


class TestGobClientCodec:
    """Tests for GobClientCodec."""

    def test_request_starts_with_go_request_header(self):
        """Should write the net/rpc Request header the way Go does."""
        data = GobClientCodec().encode_request(RequestHeader("Function.Invoke", 0), REQUEST)
        assert data.startswith(REQUEST_HEADER_DEFINITION + REQUEST_HEADER_VALUE)

    def test_request_decodes_as_invoke_request(self, gob_server):
        """Should follow the header with the InvokeRequest body."""
        gob_server.feed(
            GobClientCodec().encode_request(RequestHeader("Function.Invoke", 3), REQUEST)
        )
        assert gob_server.read_request() == (RequestHeader("Function.Invoke", 3), REQUEST)
        assert gob_server.decoder.buffered == 0

    def test_request_with_wrong_field_type_raises_encode_error(self):
        """Should raise EncodeError when a field cannot be encoded."""
        request = InvokeRequest(payload="not bytes", deadline=Timestamp(0, 0))
        with pytest.raises(EncodeError):
            GobClientCodec().encode_request(RequestHeader("Function.Invoke", 0), request)

    def test_decodes_success(self, gob_server):
        """Should decode the header and the payload."""
        codec = GobClientCodec()
        header = ResponseHeader("Function.Invoke", 0)
        codec.feed(gob_server.response(header, InvokeResponse(b'"ok"')))
        header, body = codec.next_response()
        assert header == ResponseHeader("Function.Invoke", 0, "")
        assert body == InvokeResponse(payload=b'"ok"')

    def test_decodes_function_error(self, gob_server):
        """Should decode the error struct with its stack trace."""
        error = InvocationError(
            error_type="errorString",
            message="boom",
            stack_trace=("/src/main.go:12 handler",),
        )
        codec = GobClientCodec()
        header = ResponseHeader("Function.Invoke", 0)
        codec.feed(gob_server.response(header, InvokeResponse(error=error)))
        _, body = codec.next_response()
        assert body.payload == b""
        assert body.error == error

    def test_server_error_discards_body(self, gob_server):
        """Should return no body when the header carries a server error."""
        header = ResponseHeader("Function.Invoke", 0, "rpc: can't find method Function.Invoke")
        codec = GobClientCodec()
        codec.feed(gob_server.response(header))
        assert codec.next_response() == (header, None)
        assert codec.next_response() is None

    def test_waits_for_complete_response(self, gob_server):
        """Should return None until the whole response is fed."""
        data = gob_server.response(ResponseHeader("Function.Invoke", 0), InvokeResponse(b"x"))
        codec = GobClientCodec()
        codec.feed(data[:-1])
        assert codec.next_response() is None
        codec.feed(data[-1:])
        assert codec.next_response()[1] == InvokeResponse(b"x")

    def test_yields_every_buffered_response(self, gob_server):
        """Should yield consecutive responses from one feed."""
        data = gob_server.response(ResponseHeader("Function.Invoke", 1), InvokeResponse(b"a"))
        data += gob_server.response(ResponseHeader("Function.Invoke", 0), InvokeResponse(b"b"))
        codec = GobClientCodec()
        codec.feed(data)
        assert [(h.seq, b.payload) for h, b in codec.responses()] == [(1, b"a"), (0, b"b")]

    def test_garbage_raises_decode_error(self):
        """Should raise DecodeError for bytes that are not a gob stream."""
        codec = GobClientCodec()
        codec.feed(b"\x03\xff\xff\xff")
        with pytest.raises(DecodeError):
            codec.next_response()

    def test_mismatched_body_type_raises_decode_error(self):
        """Should raise DecodeError when the body is not an InvokeResponse."""
        blob = StructType("Blob", [Field("B", BYTES)])
        other = StructType("InvokeResponse", [Field("Payload", blob)])
        encoder = Encoder()
        data = encoder.encode(RESPONSE_HEADER, {"ServiceMethod": "Function.Invoke", "Seq": 0})
        data += encoder.encode(other, {"Payload": {"B": b"x"}})
        codec = GobClientCodec()
        codec.feed(data)
        with pytest.raises(DecodeError) as exc_info:
            codec.next_response()
        assert "type mismatch" in str(exc_info.value)

    def test_skips_unknown_field_with_struct_keyed_map(self):
        """Should decode a response carrying an extra map[Key]string field."""
        key = StructType("Key", [Field("Name", STRING), Field("Version", INT)])
        extended = StructType(
            "InvokeResponse", [Field("Payload", BYTES), Field("Tags", MapType(key, STRING))]
        )
        tags = {StructKey(Name="a", Version=1): "x", StructKey(Name="b", Version=2): "y"}
        encoder = Encoder()
        data = encoder.encode(RESPONSE_HEADER, {"ServiceMethod": "Function.Invoke", "Seq": 0})
        data += encoder.encode(extended, {"Payload": b'"ok"', "Tags": tags})
        codec = GobClientCodec()
        codec.feed(data)
        assert codec.next_response()[1] == InvokeResponse(payload=b'"ok"')


class TestMsgpackClientCodec:
    """Tests for MsgpackClientCodec."""

    def test_request_is_header_then_body(self, msgpack_server):
        """Should pack the header map followed by the body map."""
        data = MsgpackClientCodec().encode_request(RequestHeader("Function.Invoke", 0), REQUEST)
        unpacker = msgpack.Unpacker(raw=False)
        unpacker.feed(data)
        assert unpacker.unpack() == {"ServiceMethod": "Function.Invoke", "Seq": 0}
        msgpack_server.feed(data)
        assert msgpack_server.read_request() == (RequestHeader("Function.Invoke", 0), REQUEST)

    def test_decodes_success(self):
        """Should decode the payload."""
        codec = MsgpackClientCodec()
        codec.feed(
            msgpack_response(
                ResponseHeader("Function.Invoke", 0), {"Payload": b'"ok"', "Error": None}
            )
        )
        header, body = codec.next_response()
        assert header.seq == 0
        assert body == InvokeResponse(payload=b'"ok"')

    def test_accepts_json_tag_error_fields(self):
        """Should read errors written with their JSON field names."""
        codec = MsgpackClientCodec()
        codec.feed(
            msgpack_response(
                ResponseHeader("Function.Invoke", 0),
                {"Error": {"errorType": "Unhandled", "errorMessage": "boom", "stackTrace": []}},
            )
        )
        _, body = codec.next_response()
        assert body.error == InvocationError(error_type="Unhandled", message="boom")

    def test_accepts_payload_as_raw_string(self):
        """Should turn a payload packed as a string back into bytes."""
        data = msgpack.packb({"ServiceMethod": "Function.Invoke", "Seq": 0, "Error": ""})
        data += msgpack.packb({"Payload": '{"a": 1}'}, use_bin_type=False)
        codec = MsgpackClientCodec()
        codec.feed(data)
        assert codec.next_response()[1].payload == b'{"a": 1}'

    def test_server_error_discards_body(self):
        """Should return no body when the header carries a server error."""
        header = ResponseHeader("Function.Invoke", 0, "rpc: service/method request ill-formed")
        codec = MsgpackClientCodec()
        codec.feed(msgpack_response(header, {}))
        assert codec.next_response() == (header, None)

    def test_waits_for_complete_response(self):
        """Should return None until the body is fed."""
        data = msgpack_response(ResponseHeader("Function.Invoke", 0), {"Payload": b"x"})
        codec = MsgpackClientCodec()
        codec.feed(data[:-1])
        assert codec.next_response() is None
        codec.feed(data[-1:])
        assert codec.next_response()[1].payload == b"x"

    def test_invalid_header_raises_decode_error(self):
        """Should raise DecodeError when the header is not a map."""
        codec = MsgpackClientCodec()
        codec.feed(msgpack.packb(5))
        with pytest.raises(DecodeError):
            codec.next_response()


class TestGetCodec:
    """Tests for codec lookup."""

    def test_known_codecs(self):
        """Should return the registered codec classes."""
        assert get_codec("gob") is GobClientCodec
        assert get_codec("msgpack") is MsgpackClientCodec

    def test_unknown_codec(self):
        """Should raise ConfigurationError naming the available codecs."""
        with pytest.raises(ConfigurationError) as exc_info:
            get_codec("json")
        assert "Unknown codec" in str(exc_info.value)
        assert "gob, msgpack" in str(exc_info.value)
