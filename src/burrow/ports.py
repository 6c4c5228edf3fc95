from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IJobPublisher(Protocol):
    """
    Port for handing a serialized message to the broker.

    Transport packages provide concrete adapters (RabbitMQ, in-memory).
    """

    async def publish(self, body: bytes, routing_key: str, **metadata: Any) -> None:
        """
        Publish *body* under *routing_key*.

        Args:
            body: UTF-8 JSON of the projected fields.
            routing_key: ``<TypeName>.<action>``.
            **metadata: Origin metadata (``app_id``, headers, …).
        """
        ...


@runtime_checkable
class IDelivery(Protocol):
    """
    Port for one inbound delivery awaiting an accept/reject decision.
    """

    @property
    def body(self) -> bytes: ...

    @property
    def routing_key(self) -> str: ...

    async def accept(self) -> None:
        """Tell the broker the delivery is consumed."""
        ...

    async def reject(self) -> None:
        """Tell the broker the delivery failed."""
        ...
