"""RabbitMQConsumer — queue binding, prefetch and ack/nack driven by AckPolicy."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..dispatcher import Dispatcher

if TYPE_CHECKING:
    from aio_pika.abc import AbstractIncomingMessage, AbstractQueue

    from .connection import RabbitMQConnectionManager

logger = logging.getLogger("burrow.rabbitmq")


class _AmqpDelivery:
    """IDelivery over an aio_pika incoming message."""

    def __init__(self, raw: AbstractIncomingMessage, *, requeue: bool) -> None:
        self._raw = raw
        self._requeue = requeue

    @property
    def body(self) -> bytes:
        return self._raw.body

    @property
    def routing_key(self) -> str:
        return self._raw.routing_key or ""

    async def accept(self) -> None:
        await self._raw.ack()

    async def reject(self) -> None:
        await self._raw.nack(requeue=self._requeue)


class RabbitMQConsumer:
    """Consumes the configured queue and dispatches every delivery.

    Declares the topic exchange and a durable queue (capped at
    ``max_queue_length``), binds it to the configured routing keys and hands
    each delivery to the dispatcher. The dispatcher's decision becomes
    ``ack()`` or ``nack(requeue=requeue_on_reject)``.
    """

    def __init__(
        self,
        connection: RabbitMQConnectionManager,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        """Configure consumer.

        Args:
            connection: Shared connection manager (carries the settings).
            dispatcher: Runs the envelopes; default one uses the default
                registry and the settings' dispatch timeout.
        """
        self._connection = connection
        self._dispatcher = dispatcher or Dispatcher(
            timeout=connection.settings.dispatch_timeout
        )
        self._queue: AbstractQueue | None = None
        self._consumer_tag: str | None = None

    async def start(self) -> None:
        """Declare and bind the queue, then start consuming."""
        if self._consumer_tag is not None:
            return
        settings = self._connection.settings
        await self._connection.connect()
        channel = self._connection.channel
        await channel.set_qos(prefetch_count=settings.prefetch_count)
        exchange = await self._connection.exchange()

        arguments: dict[str, int] = {}
        if settings.max_queue_length is not None:
            arguments["x-max-length"] = settings.max_queue_length
        self._queue = await channel.declare_queue(
            settings.queue_name,
            durable=settings.durable,
            auto_delete=False,
            arguments=arguments,
        )
        for key in settings.routing_keys:
            await self._queue.bind(exchange, routing_key=key)

        self._consumer_tag = await self._queue.consume(self._on_message)
        logger.info(
            "Consuming %s bound to %s", settings.queue_name, list(settings.routing_keys)
        )

    async def stop(self) -> None:
        """Cancel the consumer; in-flight deliveries finish normally."""
        if self._queue is not None and self._consumer_tag is not None:
            await self._queue.cancel(self._consumer_tag)
        self._consumer_tag = None
        logger.info("Consumer stopped")

    async def _on_message(self, raw: AbstractIncomingMessage) -> None:
        delivery = _AmqpDelivery(
            raw, requeue=self._connection.settings.requeue_on_reject
        )
        try:
            await self._dispatcher.process(delivery)
        except Exception:
            logger.exception("Error settling delivery %s", delivery.routing_key)
            if not raw.processed:
                await raw.nack(requeue=False)

    async def health_check(self) -> bool:
        """Return True if the connection is healthy."""
        return await self._connection.health_check()
