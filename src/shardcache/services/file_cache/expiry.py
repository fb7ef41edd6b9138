"""TTL to expiry conversion."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Literal, Union

from shardcache.shared.errors import InvalidTTLError

TTL = Union[int, timedelta, None]


class Expiry(Enum):
    """Sentinel results of :func:`expiry_for`."""

    # The TTL is already over: the item must be deleted, not written.
    IMMEDIATE = "immediate"


ExpiryDecision = Union[datetime, None, Literal[Expiry.IMMEDIATE]]


def expiry_for(ttl: TTL, default_ttl: TTL, now: datetime) -> ExpiryDecision:
    """Convert a TTL into an absolute expiry timestamp.

    Args:
        ttl: Seconds, a duration, or None to fall back to ``default_ttl``
        default_ttl: TTL used when ``ttl`` is None
        now: Current time, read once by the caller for the whole operation

    Returns:
        The expiry instant, None for no expiry, or ``Expiry.IMMEDIATE`` when
        the TTL is zero or negative

    Raises:
        InvalidTTLError: If the TTL is of an unsupported type
    """
    if ttl is None:
        ttl = default_ttl

    if ttl is None:
        return None

    # bool is an int subclass but never a meaningful TTL
    if isinstance(ttl, bool):
        raise InvalidTTLError(ttl)

    if isinstance(ttl, int):
        if ttl <= 0:
            return Expiry.IMMEDIATE
        return now + timedelta(seconds=ttl)

    if isinstance(ttl, timedelta):
        expiry = now + ttl
        if expiry <= now:
            return Expiry.IMMEDIATE
        return expiry

    raise InvalidTTLError(ttl)
