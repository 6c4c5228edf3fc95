"""RabbitMQ connection, reconnect, and health check."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import aio_pika

from ..config import BrokerSettings
from ..exceptions import MessagingConnectionError

if TYPE_CHECKING:
    from aio_pika.abc import AbstractChannel, AbstractConnection, AbstractExchange

logger = logging.getLogger("burrow.rabbitmq")


class RabbitMQConnectionManager:
    """Manages a single robust connection, channel and topic exchange.

    Uses connect_robust for automatic reconnection. Call connect() before use,
    close() on shutdown, and health_check() for probes.
    """

    def __init__(
        self,
        settings: BrokerSettings | None = None,
        **connect_kwargs: Any,
    ) -> None:
        """Configure connection settings and optional aio_pika connect kwargs."""
        self._settings = settings or BrokerSettings()
        self._connect_kwargs = connect_kwargs
        self._connection: AbstractConnection | None = None
        self._channel: AbstractChannel | None = None
        self._exchange: AbstractExchange | None = None

    @property
    def settings(self) -> BrokerSettings:
        return self._settings

    async def connect(self) -> None:
        """Establish connection and channel. Idempotent if already connected."""
        if self._connection is not None and not self._connection.is_closed:
            return
        try:
            self._connection = await aio_pika.connect_robust(
                self._settings.url,
                **self._connect_kwargs,
            )
            self._channel = await self._connection.channel(publisher_confirms=True)
        except (ConnectionError, OSError, ValueError) as e:
            raise MessagingConnectionError(str(e)) from e
        self._exchange = None
        logger.info("Connected to RabbitMQ exchange %s", self._settings.exchange_name)

    async def exchange(self) -> AbstractExchange:
        """Declare (once) and return the durable topic exchange."""
        if self._exchange is None:
            self._exchange = await self.channel.declare_exchange(
                self._settings.exchange_name,
                aio_pika.ExchangeType.TOPIC,
                durable=self._settings.durable,
                auto_delete=False,
            )
        return self._exchange

    async def close(self) -> None:
        """Close channel and connection."""
        self._exchange = None
        if self._channel is not None:
            await self._channel.close()
            self._channel = None
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("RabbitMQ connection closed")

    @property
    def channel(self) -> AbstractChannel:
        """Return the channel; raises if not connected."""
        if self._channel is None:
            raise MessagingConnectionError("Not connected; call connect() first")
        return self._channel

    async def health_check(self) -> bool:
        """Return True if connection and channel are open."""
        if self._connection is None or self._channel is None:
            return False
        return not self._connection.is_closed
