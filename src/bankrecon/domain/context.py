"""Explicit caller identity and clock for domain operations."""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Callable, Optional


def utc_now() -> datetime:
    """Return the current time as a naive UTC datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


@dataclass(frozen=True)
class OperationContext:
    """Who performs an operation and which clock stamps it.

    Services never read the current user or time from global state; they
    receive both through this object.
    """

    user: Optional[str] = None
    clock: Callable[[], datetime] = field(default=utc_now)

    def now(self) -> datetime:
        return self.clock()
