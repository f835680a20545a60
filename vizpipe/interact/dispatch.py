"""
Single-entry event dispatch for a chart.

Each chart registers one handler per event type. dispatch() is the one update
function every interaction goes through.
"""

import logging
from typing import Any, Callable

from vizpipe.interact.events import Event

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]


class Dispatcher:
    """
    Route events to handlers by event type.

    Usage:
        dispatcher = Dispatcher()
        dispatcher.on(Click, handle_click)
        dispatcher.dispatch(Click(key="USA"))
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Event], Handler] = {}
        self.history: list[Event] = []

    def on(self, event_type: type[Event], handler: Handler) -> "Dispatcher":
        """Register (or replace) the handler of an event type."""
        self._handlers[event_type] = handler
        return self

    def handles(self, event_type: type[Event]) -> bool:
        return event_type in self._handlers

    def dispatch(self, event: Event) -> Any:
        """
        Run the handler for an event.

        Returns:
            The handler's result, or None when no handler is registered
        """
        self.history.append(event)
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.debug(f"No handler for {type(event).__name__}; ignoring")
            return None
        return handler(event)
