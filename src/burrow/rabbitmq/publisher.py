"""RabbitMQPublisher — IJobPublisher on a topic exchange with publisher confirms."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import aio_pika

from ..ports import IJobPublisher

if TYPE_CHECKING:
    from .connection import RabbitMQConnectionManager


class RabbitMQPublisher(IJobPublisher):
    """RabbitMQ adapter implementing IJobPublisher.

    The routing key is ``<TypeName>.<action>``; the body is the JSON of the
    projected fields. Safe to share between concurrent units of work.
    """

    def __init__(self, connection: RabbitMQConnectionManager) -> None:
        self._connection = connection

    async def publish(self, body: bytes, routing_key: str, **metadata: Any) -> None:
        """Publish *body* under *routing_key*.

        ``app_id`` defaults to the configured one; ``headers`` are passed
        through to the AMQP message.
        """
        await self._connection.connect()
        exchange = await self._connection.exchange()
        settings = self._connection.settings
        await exchange.publish(
            aio_pika.Message(
                body=body,
                content_type="application/json",
                app_id=metadata.get("app_id") or settings.app_id,
                headers=metadata.get("headers") or {},
                delivery_mode=(
                    aio_pika.DeliveryMode.PERSISTENT
                    if settings.durable
                    else aio_pika.DeliveryMode.NOT_PERSISTENT
                ),
            ),
            routing_key=routing_key,
        )

    async def health_check(self) -> bool:
        """Return True if the connection is healthy."""
        return await self._connection.health_check()
