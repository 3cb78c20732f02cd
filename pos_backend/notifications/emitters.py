"""
PATH: notifications/emitters.py

NOTIFICATION EMITTERS

emit(event) is the only entry point. Delivery failures are logged and
never propagate to the caller: a sale that was written stays written.
"""

from __future__ import annotations

import logging
from typing import List, Protocol

from notifications.events import Event, event_to_dict

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "error": logging.WARNING,
    "warning": logging.WARNING,
    "success": logging.INFO,
    "info": logging.INFO,
}


class Emitter(Protocol):
    def emit(self, event: Event) -> None:
        ...


class LoggingEmitter:
    """Writes every event to the notifications log."""

    def emit(self, event: Event) -> None:
        logger.log(
            _LOG_LEVELS.get(event.level, logging.INFO),
            event.message,
            extra={"event_kind": event.kind},
        )


class CollectingEmitter:
    """
    Keeps emitted events in order (so HTTP responses can return them to
    the cashier's screen) and forwards each one to another emitter.
    """

    def __init__(self, forward_to: Emitter | None = None):
        self.events: List[Event] = []
        self._forward_to = forward_to if forward_to is not None else LoggingEmitter()

    def emit(self, event: Event) -> None:
        self.events.append(event)
        try:
            self._forward_to.emit(event)
        except Exception:
            logger.exception("Notification delivery failed", extra={"event_kind": event.kind})

    def as_dicts(self) -> list[dict]:
        return [event_to_dict(e) for e in self.events]


def safe_emit(emitter: Emitter, event: Event) -> None:
    try:
        emitter.emit(event)
    except Exception:
        logger.exception("Notification delivery failed", extra={"event_kind": event.kind})
