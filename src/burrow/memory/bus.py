"""In-memory broker for testing — connects publisher and consumer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, NamedTuple

from ..ack import AckDecision

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class PublishedMessage(NamedTuple):
    routing_key: str
    body: bytes
    metadata: dict[str, Any]

    @property
    def payload(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


@dataclass
class InMemoryDelivery:
    """A delivery that remembers whether it was accepted or rejected."""

    body: bytes
    routing_key: str
    decision: AckDecision | None = field(default=None)

    async def accept(self) -> None:
        self._settle(AckDecision.ACCEPT)

    async def reject(self) -> None:
        self._settle(AckDecision.REJECT)

    def _settle(self, decision: AckDecision) -> None:
        if self.decision is not None:
            raise RuntimeError(
                f"Delivery {self.routing_key} already settled as {self.decision.value}"
            )
        self.decision = decision


def topic_matches(pattern: str, routing_key: str) -> bool:
    """AMQP topic matching: ``*`` is one word, ``#`` is zero or more words."""
    return _match(pattern.split("."), routing_key.split("."))


def _match(pattern: list[str], words: list[str]) -> bool:
    if not pattern:
        return not words
    head, rest = pattern[0], pattern[1:]
    if head == "#":
        return any(_match(rest, words[i:]) for i in range(len(words) + 1))
    if not words:
        return False
    if head in ("*", words[0]):
        return _match(rest, words[1:])
    return False


class InMemoryBroker:
    """Shared broker: publish records the message and
    delivers it to every binding whose pattern matches."""

    def __init__(self) -> None:
        self._published: list[PublishedMessage] = []
        self._deliveries: list[InMemoryDelivery] = []
        self._bindings: list[
            tuple[str, Callable[[InMemoryDelivery], Awaitable[Any]]]
        ] = []

    def bind(
        self,
        pattern: str,
        callback: Callable[[InMemoryDelivery], Awaitable[Any]],
    ) -> None:
        """Deliver messages whose routing key matches *pattern* to *callback*."""
        self._bindings.append((pattern, callback))

    async def publish(self, body: bytes, routing_key: str, **metadata: Any) -> None:
        """Record the message and invoke all matching bindings in order."""
        self._published.append(PublishedMessage(routing_key, body, dict(metadata)))
        for pattern, callback in list(self._bindings):
            if topic_matches(pattern, routing_key):
                delivery = InMemoryDelivery(body, routing_key)
                self._deliveries.append(delivery)
                await callback(delivery)

    def get_published(self) -> list[PublishedMessage]:
        """Return all published messages in order."""
        return list(self._published)

    def get_deliveries(self) -> list[InMemoryDelivery]:
        """Return every delivery made to a binding, settled or not."""
        return list(self._deliveries)

    def clear(self) -> None:
        """Clear published messages, deliveries and bindings (test teardown)."""
        self._published.clear()
        self._deliveries.clear()
        self._bindings.clear()
