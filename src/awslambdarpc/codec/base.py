"""Base class for net/rpc client codecs."""

from abc import ABC, abstractmethod
from collections.abc import Iterator

from ..messages import InvokeRequest, InvokeResponse, RequestHeader, ResponseHeader


class ClientCodec(ABC):
    """Encodes requests and decodes responses for one connection.

    Codecs are stateful (a gob stream sends each type definition once), so a
    new instance is used for every connection.
    """

    name: str

    @abstractmethod
    def encode_request(self, header: RequestHeader, body: InvokeRequest) -> bytes:
        """Encode a request envelope followed by its body.

        Raises:
            EncodeError: If the request cannot be encoded
        """
        ...

    @abstractmethod
    def feed(self, data: bytes) -> None:
        """Append bytes received from the connection."""
        ...

    @abstractmethod
    def next_response(self) -> tuple[ResponseHeader, InvokeResponse | None] | None:
        """Return the next complete response, or None if more bytes are needed.

        The body is None when the envelope carries a server error; the body
        sent along with it is read and discarded.

        Raises:
            DecodeError: If the received bytes are malformed
        """
        ...

    def responses(self) -> Iterator[tuple[ResponseHeader, InvokeResponse | None]]:
        """Yield every response completed by the bytes fed so far."""
        while True:
            response = self.next_response()
            if response is None:
                return
            yield response
