"""InMemoryConsumer — binds a Dispatcher to an InMemoryBroker."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..dispatcher import Dispatcher
    from .bus import InMemoryBroker


class InMemoryConsumer:
    """In-memory consumer that dispatches every matching delivery.

    Use the same InMemoryBroker as InMemoryPublisher so that publish()
    runs the handler and settles the delivery synchronously in tests.
    """

    def __init__(self, bus: InMemoryBroker, dispatcher: Dispatcher) -> None:
        self._bus = bus
        self._dispatcher = dispatcher

    def subscribe(self, *patterns: str) -> None:
        """Bind the dispatcher to *patterns*; defaults to every registered type."""
        for pattern in patterns or self._dispatcher.registry.binding_keys():
            self._bus.bind(pattern, self._dispatcher.process)
