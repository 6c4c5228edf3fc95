"""Message — the envelope wrapping one message through publish or dispatch.

An inbound envelope is built from ``(payload, routing_key)``. Construction
decodes the routing key, checks it against the type's registration, parses
the payload and projects it onto the field schema. ``dispatch()`` then runs
the handler bound to the action and returns the ack decision::

    CONSTRUCTING -> VALIDATED -> DISPATCHED -> TERMINAL

Any failure before ``DISPATCHED`` jumps straight to ``TERMINAL`` and the
handler is never invoked. Outbound envelopes are built from field values,
filled through the mapping accessor and sent with ``publish(action)``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterator, Mapping
from enum import Enum
from inspect import isawaitable
from typing import TYPE_CHECKING, Any, TypeVar

from . import serialization
from .ack import AckDecision, decide
from .exceptions import MessagingSerializationError
from .projection import project
from .registry import get_message_registry
from .result import EnvelopeFault, FaultKind
from .routing import RoutingKey, decode, encode

if TYPE_CHECKING:
    from .ports import IJobPublisher
    from .registry import MessageDefinition, MessageRegistry

logger = logging.getLogger("burrow.message")

MessageT = TypeVar("MessageT", bound="Message")


class EnvelopeState(str, Enum):
    CONSTRUCTING = "constructing"
    VALIDATED = "validated"
    DISPATCHED = "dispatched"
    TERMINAL = "terminal"


class Message:
    """Base class for every message type.

    Subclasses are registered with :func:`burrow.message` (or a
    :class:`~burrow.registry.MessageRegistry`) which declares their fields
    and actions. Handlers read and write the projected fields through the
    mapping accessor and report their outcome with the ``mark_*`` and
    ``force_*`` operations.

    Args:
        payload: For inbound envelopes the delivered body (JSON text, bytes
            or an already-parsed mapping). For outbound envelopes an optional
            mapping of initial field values.
        routing_key: Present only for inbound envelopes.
        transport: Publisher used by :meth:`publish`.
        registry: Registry holding this type's definition; defaults to the
            process-wide registry.
        timeout: Deadline in seconds for the handler during :meth:`dispatch`.
    """

    def __init__(
        self,
        payload: str | bytes | bytearray | Mapping[str, Any] | None = None,
        routing_key: str | None = None,
        *,
        transport: IJobPublisher | None = None,
        registry: MessageRegistry | None = None,
        timeout: float | None = None,
    ) -> None:
        self._definition: MessageDefinition = (
            registry or get_message_registry()
        ).definition_for(type(self))
        self._transport = transport
        self._timeout = timeout
        self._ok = True
        self._faults: list[EnvelopeFault] = []
        self._state = EnvelopeState.CONSTRUCTING

        self.raw_payload = payload
        self.parsed_elements: dict[str, Any] = {}
        self.projected_items: dict[str, Any] = {}
        self._routing: RoutingKey | None = None

        self.force_success()
        if routing_key is None:
            if payload is not None:
                self._load(payload)
        elif self._validate_route(routing_key) and self._load(payload):
            self._state = EnvelopeState.VALIDATED
        else:
            self._state = EnvelopeState.TERMINAL

    @classmethod
    async def receive(
        cls: type[MessageT],
        payload: str | bytes | bytearray | Mapping[str, Any] | None,
        routing_key: str,
        **kwargs: Any,
    ) -> MessageT:
        """Build an inbound envelope and dispatch it in one pass."""
        envelope = cls(payload, routing_key, **kwargs)
        await envelope.dispatch()
        return envelope

    # ── Inbound pipeline ─────────────────────────────────────────

    def _validate_route(self, routing_key: str) -> bool:
        decoded = decode(routing_key)
        if not decoded.ok:
            return self._fail(decoded.fault)
        self._routing = decoded.unwrap()

        if self._routing.type_name != self.type_name:
            self.mark_failure(
                f"Routing error; wrong job name: {self._routing.type_name} "
                f"Expected: {self.type_name}",
                kind=FaultKind.ROUTING_MISMATCH,
            )
            return False
        if self._routing.action not in self._definition.actions:
            self.mark_failure(
                f"invalid action request: {self._routing.action} "
                f"Expected: {self._definition.actions}",
                kind=FaultKind.UNKNOWN_ACTION,
            )
            return False
        return True

    def _load(self, payload: Any) -> bool:
        parsed = serialization.loads(payload)
        if not parsed.ok:
            return self._fail(parsed.fault)
        self.parsed_elements = parsed.unwrap()

        projected = project(self.parsed_elements, self._definition.schema)
        if not projected.ok:
            return self._fail(projected.fault)
        self.projected_items = projected.unwrap()
        return True

    async def dispatch(self, *, timeout: float | None = None) -> AckDecision:
        """Run the handler for the decoded action and return the ack decision.

        Only a ``VALIDATED`` envelope invokes its handler; any other state
        returns the decision for the bookkeeping as it stands.
        """
        if self._state is not EnvelopeState.VALIDATED or self._routing is None:
            return decide(self)

        action = self._routing.action
        handler = self._definition.handler_for(action)
        deadline = self._timeout if timeout is None else timeout
        self._state = EnvelopeState.DISPATCHED
        try:
            outcome = handler(self)  # type: ignore[misc]
            if isawaitable(outcome):
                if deadline is None:
                    await outcome
                else:
                    await self._await_within(action, outcome, deadline)
        except Exception as e:
            self._handler_raised(action, e)
        finally:
            self._state = EnvelopeState.TERMINAL

        decision = decide(self)
        logger.debug("%s.%s finished: %s", self.type_name, action, decision.value)
        return decision

    async def _await_within(
        self, action: str, outcome: Awaitable[Any], deadline: float
    ) -> None:
        """Await *outcome* for at most *deadline* seconds.

        Only an expired wait is a timeout; whatever the handler raises itself,
        ``TimeoutError`` included, propagates to the caller unchanged.
        """
        task = asyncio.ensure_future(outcome)
        try:
            done, _ = await asyncio.wait({task}, timeout=deadline)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task in done:
            task.result()
            return
        task.cancel()
        await asyncio.wait({task})
        self.force_failure(
            f"handler {action} exceeded its {deadline}s deadline",
            kind=FaultKind.DISPATCH_TIMEOUT,
        )

    def _handler_raised(self, action: str, exc: BaseException) -> None:
        logger.exception("Handler %s.%s raised", self.type_name, action)
        self.mark_failure(
            f"handler {action} raised {type(exc).__name__}: {exc}",
            kind=FaultKind.HANDLER_ERROR,
        )

    # ── Outbound ─────────────────────────────────────────────────

    async def publish(
        self,
        action: str = "",
        *,
        transport: IJobPublisher | None = None,
        **metadata: Any,
    ) -> bool:
        """Serialize the projected fields and publish them as ``Type.action``.

        Never raises: every problem is recorded as a failure. Returns the
        success state after publishing.
        """
        if not action:
            self.mark_failure("unspecified action", kind=FaultKind.UNKNOWN_ACTION)
            return self.is_successful()
        if action not in self._definition.actions:
            self.mark_failure(
                f"invalid action request: {action} "
                f"Expected: {self._definition.actions}",
                kind=FaultKind.UNKNOWN_ACTION,
            )
            return self.is_successful()

        publisher = transport or self._transport
        if publisher is None:
            self.mark_failure(
                "no transport configured for publish",
                kind=FaultKind.PUBLISH_TRANSPORT_ERROR,
            )
            return self.is_successful()

        try:
            body = self.to_json()
        except MessagingSerializationError as e:
            self.mark_failure(str(e), kind=FaultKind.MALFORMED_PAYLOAD)
            return self.is_successful()
        self.raw_payload = body

        routing_key = encode(self.type_name, action)
        try:
            await publisher.publish(body.encode("utf-8"), routing_key, **metadata)
        except Exception as e:  # noqa: BLE001
            self.mark_failure(
                f"publish to {routing_key} failed: {type(e).__name__}: {e}",
                kind=FaultKind.PUBLISH_TRANSPORT_ERROR,
            )
        else:
            logger.debug("Published %s", routing_key)
        return self.is_successful()

    # ── Success/failure bookkeeping ──────────────────────────────

    def _record(self, fault: EnvelopeFault | None) -> None:
        if fault is None:
            return
        tagged = EnvelopeFault(fault.kind, f"{self.type_name} {fault.message}")
        self._faults.append(tagged)
        logger.warning("%s", tagged.message)

    def _fail(self, fault: EnvelopeFault | None) -> bool:
        self._record(fault)
        self._ok = False
        return False

    def mark_success(self, result: bool = True) -> bool:
        """AND-accumulate *result*; an earlier failure stays a failure."""
        self._ok = self._ok and result
        return self._ok

    def mark_failure(
        self,
        message: str = "Unknown failure",
        *,
        kind: FaultKind = FaultKind.BUSINESS_LOGIC_FAILURE,
    ) -> bool:
        self._record(EnvelopeFault(kind, message))
        return self.mark_success(False)

    def force_success(self) -> bool:
        """Set the flag to successful regardless of history. Errors are kept."""
        self._ok = True
        return self._ok

    def force_failure(
        self,
        message: str = "Unknown really bad failure",
        *,
        kind: FaultKind = FaultKind.BUSINESS_LOGIC_FAILURE,
    ) -> bool:
        self._record(EnvelopeFault(kind, message))
        self._ok = False
        return self._ok

    def is_successful(self) -> bool:
        return self._ok

    def is_failed(self) -> bool:
        return not self._ok

    @property
    def errors(self) -> list[str]:
        """Type-tagged error messages, oldest first."""
        return [fault.message for fault in self._faults]

    @property
    def faults(self) -> list[EnvelopeFault]:
        return list(self._faults)

    # ── Introspection ────────────────────────────────────────────

    @property
    def type_name(self) -> str:
        return self._definition.name

    @property
    def definition(self) -> MessageDefinition:
        return self._definition

    @property
    def state(self) -> EnvelopeState:
        return self._state

    @property
    def routing(self) -> RoutingKey | None:
        """Decoded routing key of an inbound envelope; set once at construction."""
        return self._routing

    @property
    def decision(self) -> AckDecision:
        return decide(self)

    @property
    def transport(self) -> IJobPublisher | None:
        return self._transport

    # ── Field accessor ───────────────────────────────────────────

    def __getitem__(self, key: str) -> Any:
        return self.projected_items[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.projected_items[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self.projected_items

    def __iter__(self) -> Iterator[str]:
        return iter(self.projected_items)

    def __len__(self) -> int:
        return len(self.projected_items)

    def get(self, key: str, default: Any = None) -> Any:
        return self.projected_items.get(key, default)

    def keys(self) -> list[str]:
        return list(self.projected_items)

    def update(self, values: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        """Merge *values* and keyword arguments into the projected fields."""
        if values:
            self.projected_items.update(values)
        self.projected_items.update(kwargs)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.projected_items)

    def to_json(self) -> str:
        return serialization.dumps(self.projected_items)

    def __repr__(self) -> str:
        route = f" {self._routing}" if self._routing else ""
        status = "ok" if self._ok else "failed"
        return f"<{type(self).__name__}{route} {self._state.value} {status}>"


__all__ = ["EnvelopeState", "Message"]
