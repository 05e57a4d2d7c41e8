"""Wire codecs for the net/rpc call envelope and the invocation messages."""

from ..exceptions import ConfigurationError
from .base import ClientCodec
from .gobrpc import GobClientCodec
from .msgpackrpc import MsgpackClientCodec

CODECS: dict[str, type[ClientCodec]] = {
    GobClientCodec.name: GobClientCodec,
    MsgpackClientCodec.name: MsgpackClientCodec,
}


def get_codec(name: str) -> type[ClientCodec]:
    """Get the codec class registered under ``name``.

    Raises:
        ConfigurationError: If no codec has that name
    """
    try:
        return CODECS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown codec: {name!r}. Available codecs: {', '.join(sorted(CODECS))}"
        ) from None


__all__ = ["ClientCodec", "GobClientCodec", "MsgpackClientCodec", "CODECS", "get_codec"]
