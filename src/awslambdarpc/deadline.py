"""Invocation deadline computation."""

import time

from .config import DEFAULT_DEADLINE_SECONDS
from .messages import Timestamp

NANOS_PER_SECOND = 1_000_000_000


def compute_deadline(
    seconds: float = DEFAULT_DEADLINE_SECONDS, now_ns: int | None = None
) -> Timestamp:
    """Compute the absolute deadline sent along with an invocation.

    The deadline is advisory: it tells the runtime when the invocation
    expires, the client does not enforce it.

    Args:
        seconds: Time allowed for the invocation, relative to ``now_ns``
        now_ns: Start of the invocation in nanoseconds since the Unix epoch,
            defaults to the current wall-clock time

    Returns:
        Timestamp with whole Unix seconds and the nanosecond remainder
    """
    if now_ns is None:
        now_ns = time.time_ns()
    total = now_ns + round(seconds * NANOS_PER_SECOND)
    return Timestamp(seconds=total // NANOS_PER_SECOND, nanos=total % NANOS_PER_SECOND)
