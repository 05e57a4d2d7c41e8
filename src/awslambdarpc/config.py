"""Client settings with environment overrides."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .exceptions import ConfigurationError

DEFAULT_ADDRESS = "localhost:8080"
DEFAULT_PAYLOAD = b"{}"
DEFAULT_DEADLINE_SECONDS = 15
DEFAULT_CODEC = "gob"
DEFAULT_CONNECT_TIMEOUT = 10.0

ENV_PREFIX = "AWSLAMBDARPC_"


@dataclass
class Settings:
    """Settings shared by the client and the CLI.

    ``timeout`` bounds each read and write on the connection; None blocks
    until the runtime answers or closes the connection.
    """

    address: str = DEFAULT_ADDRESS
    deadline_seconds: int = DEFAULT_DEADLINE_SECONDS
    codec: str = DEFAULT_CODEC
    connect_timeout: float | None = DEFAULT_CONNECT_TIMEOUT
    timeout: float | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Load settings from ``AWSLAMBDARPC_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Settings with defaults for every unset variable

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        settings = cls()
        if f"{ENV_PREFIX}ADDRESS" in env:
            settings.address = env[f"{ENV_PREFIX}ADDRESS"]
        if f"{ENV_PREFIX}CODEC" in env:
            settings.codec = env[f"{ENV_PREFIX}CODEC"]
        if f"{ENV_PREFIX}DEADLINE_SECONDS" in env:
            settings.deadline_seconds = _parse_int(env, "DEADLINE_SECONDS")
        if f"{ENV_PREFIX}CONNECT_TIMEOUT" in env:
            settings.connect_timeout = _parse_timeout(env, "CONNECT_TIMEOUT")
        if f"{ENV_PREFIX}TIMEOUT" in env:
            settings.timeout = _parse_timeout(env, "TIMEOUT")
        return settings


def _parse_int(env: Mapping[str, str], name: str) -> int:
    raw = env[ENV_PREFIX + name]
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None


def _parse_timeout(env: Mapping[str, str], name: str) -> float | None:
    # An empty value or "none" disables the timeout.
    raw = env[ENV_PREFIX + name].strip()
    if raw == "" or raw.lower() == "none":
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be positive, got {raw!r}")
    return value
