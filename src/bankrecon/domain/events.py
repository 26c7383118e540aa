"""Notifications emitted to downstream consumers."""

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountBalancesShouldRefresh:
    """Aggregates depending on these accounts' balances are stale."""

    account_ids: tuple[int, ...]


class EventSink(Protocol):
    def emit(self, event: object) -> None:
        ...


class LoggingEventSink:
    """Default sink: records events in the log only."""

    def emit(self, event: object) -> None:
        logger.info("Event emitted: %r", event)


class CollectingEventSink:
    """Keeps emitted events in memory."""

    def __init__(self):
        self.events: list[object] = []

    def emit(self, event: object) -> None:
        self.events.append(event)
