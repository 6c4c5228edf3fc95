"""InMemoryPublisher — IJobPublisher with assertion helpers for tests."""

from __future__ import annotations

from typing import Any

from ..ports import IJobPublisher
from ..routing import decode
from .bus import InMemoryBroker, PublishedMessage


class InMemoryPublisher(IJobPublisher):
    """In-memory publisher that buffers messages for testing and optional delivery.

    Pass a shared InMemoryBroker to connect with InMemoryConsumer so that
    publish() triggers dispatch. get_published() and assert_published()
    support test assertions.
    """

    def __init__(
        self, bus: InMemoryBroker | None = None, *, app_id: str = "burrow"
    ) -> None:
        """If bus is None, a new broker is created (no consumer connection)."""
        self._bus = bus or InMemoryBroker()
        self._app_id = app_id

    async def publish(self, body: bytes, routing_key: str, **metadata: Any) -> None:
        """Publish to the in-memory broker (and trigger any bound consumers)."""
        metadata.setdefault("app_id", self._app_id)
        await self._bus.publish(body, routing_key, **metadata)

    def get_published(self) -> list[PublishedMessage]:
        """Return all messages published on the broker so far."""
        return self._bus.get_published()

    def assert_published(
        self,
        type_name: str,
        action: str | None = None,
        count: int = 1,
    ) -> None:
        """Assert that exactly `count` messages of this type were published.

        Optionally restrict to a single action. Raises AssertionError if not met.
        """
        routes = [decode(m.routing_key) for m in self.get_published()]
        matching = [
            r.unwrap()
            for r in routes
            if r.ok
            and r.unwrap().type_name == type_name
            and (action is None or r.unwrap().action == action)
        ]
        assert len(matching) == count, (
            f"Expected {count} message(s) of {type_name!r}"
            f"{'' if action is None else f' with action {action!r}'}, "
            f"got {len(matching)}. Published: "
            f"{[m.routing_key for m in self.get_published()]}"
        )

    @property
    def bus(self) -> InMemoryBroker:
        """Return the broker (e.g. to pass to InMemoryConsumer)."""
        return self._bus
