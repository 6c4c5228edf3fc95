"""Dispatcher — turn one delivery into one envelope pass and an ack decision."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .ack import AckDecision
from .registry import get_message_registry
from .routing import decode

if TYPE_CHECKING:
    from .envelope import Message
    from .ports import IDelivery, IJobPublisher
    from .registry import MessageRegistry

logger = logging.getLogger("burrow.dispatch")


class Dispatcher:
    """Consumer-side entry point, called once per delivery.

    Resolves the message class from the routing key's type name, builds the
    inbound envelope (which validates and projects), runs its handler and
    returns the ack decision. Holds no per-delivery state, so the transport
    may call :meth:`handle` concurrently.

    Usage::

        dispatcher = Dispatcher(transport=publisher, timeout=30.0)
        decision = await dispatcher.handle(body, "OrderMessage.ship")
    """

    def __init__(
        self,
        *,
        registry: MessageRegistry | None = None,
        transport: IJobPublisher | None = None,
        timeout: float | None = None,
    ) -> None:
        """Configure the dispatcher.

        Args:
            registry: Where message classes are looked up; default registry
                when omitted.
            transport: Handed to every inbound envelope so handlers can
                publish follow-up actions.
            timeout: Per-dispatch handler deadline in seconds.
        """
        self._registry = registry or get_message_registry()
        self._transport = transport
        self._timeout = timeout

    @property
    def registry(self) -> MessageRegistry:
        return self._registry

    def envelope_for(
        self,
        payload: str | bytes | bytearray | Mapping[str, Any] | None,
        routing_key: str,
    ) -> Message | None:
        """Build the inbound envelope, or ``None`` if no class matches."""
        decoded = decode(routing_key)
        if not decoded.ok:
            logger.warning("Dropping delivery: %s", decoded.fault)
            return None
        message_type = self._registry.resolve(decoded.unwrap().type_name)
        if message_type is None:
            logger.warning(
                "Dropping delivery for unregistered type %r (routing key %r)",
                decoded.unwrap().type_name,
                routing_key,
            )
            return None
        return message_type(
            payload,
            routing_key,
            transport=self._transport,
            registry=self._registry,
            timeout=self._timeout,
        )

    async def handle(
        self,
        payload: str | bytes | bytearray | Mapping[str, Any] | None,
        routing_key: str,
    ) -> AckDecision:
        """Process one delivery and return ACCEPT or REJECT."""
        envelope = self.envelope_for(payload, routing_key)
        if envelope is None:
            return AckDecision.REJECT
        decision = await envelope.dispatch()
        if decision is AckDecision.REJECT:
            logger.info(
                "Rejecting %s: %s", routing_key, "; ".join(envelope.errors) or "failed"
            )
        return decision

    async def process(self, delivery: IDelivery) -> AckDecision:
        """Handle *delivery* and apply the decision through its accept/reject."""
        decision = await self.handle(delivery.body, delivery.routing_key)
        if decision is AckDecision.ACCEPT:
            await delivery.accept()
        else:
            await delivery.reject()
        return decision
