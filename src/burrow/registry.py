"""MessageRegistry — per-type field schema, action set and dispatch table.

Definitions are keyed by the concrete message class. Lookups use the exact
class, never its bases, so a subclass of a registered message is unknown
until it is registered itself.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeVar

from .exceptions import MessageNotRegisteredError, MessageRegistrationError
from .routing import DELIMITER, binding_key
from .schema import FieldSchema

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from .envelope import Message

logger = logging.getLogger("burrow.registry")

M = TypeVar("M", bound="type[Message]")

Handler = Callable[["Message"], "Awaitable[None] | None"]


@dataclass(frozen=True)
class ActionRegistry:
    """Ordered, immutable set of action names a message type accepts."""

    names: tuple[str, ...] = ()

    def __contains__(self, action: object) -> bool:
        return action in self.names

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)

    def __str__(self) -> str:
        return ",".join(self.names)


def _empty_handlers() -> Mapping[str, Handler]:
    return MappingProxyType({})


@dataclass(frozen=True)
class MessageDefinition:
    """Everything the envelope needs to know about one message type."""

    message_type: type[Message]
    name: str
    schema: FieldSchema
    actions: ActionRegistry
    handlers: Mapping[str, Handler] = field(default_factory=_empty_handlers)

    def handler_for(self, action: str) -> Handler | None:
        return self.handlers.get(action)


class MessageRegistry:
    """Registry mapping message classes to their definitions.

    Registration happens once per type at process start. Call ``seal()``
    after bootstrapping; further registration then raises, which keeps the
    registry read-only while deliveries are dispatched concurrently.

    Usage::

        registry = MessageRegistry()

        @registry.message(
            fields=["order_id", {"customer": ["name", "email"]}],
            actions=["validate", "ship"],
        )
        class OrderMessage(Message):
            async def validate(self) -> None: ...
            async def ship(self) -> None: ...
    """

    def __init__(self) -> None:
        self._by_type: dict[type[Message], MessageDefinition] = {}
        self._by_name: dict[str, type[Message]] = {}
        self._sealed = False

    # ── Registration ─────────────────────────────────────────────

    def register(
        self,
        message_type: type[Message],
        *,
        fields: Sequence[Any] | FieldSchema,
        actions: Sequence[str] | Mapping[str, Handler],
        name: str | None = None,
    ) -> MessageDefinition:
        """Register *message_type* and build its dispatch table.

        ``actions`` is either a list of names, each bound to the method of
        the same name on *message_type*, or a mapping of name to handler.
        Listed names may not shadow the Message API (``publish``, ``get``, ...).
        """
        if self._sealed:
            raise MessageRegistrationError(
                f"Registry is sealed; cannot register {message_type.__name__}"
            )
        _check_message_class(message_type)
        type_name = _check_identifier(name or message_type.__name__, "type name")

        existing = self._by_name.get(type_name)
        if existing is not None:
            raise MessageRegistrationError(
                f"Duplicate message type {type_name!r}: "
                f"{existing.__qualname__} already registered, "
                f"cannot register {message_type.__qualname__}"
            )
        if message_type in self._by_type:
            raise MessageRegistrationError(
                f"{message_type.__qualname__} is already registered as "
                f"{self._by_type[message_type].name!r}"
            )

        schema = (
            fields if isinstance(fields, FieldSchema) else FieldSchema.declare(fields)
        )
        handlers = _build_dispatch_table(message_type, type_name, actions)
        definition = MessageDefinition(
            message_type=message_type,
            name=type_name,
            schema=schema,
            actions=ActionRegistry(tuple(handlers)),
            handlers=MappingProxyType(handlers),
        )
        self._by_type[message_type] = definition
        self._by_name[type_name] = message_type
        logger.debug(
            "Registered message type %s fields=%s actions=%s",
            type_name,
            schema.names(),
            list(handlers),
        )
        return definition

    def message(
        self,
        *,
        fields: Sequence[Any] | FieldSchema,
        actions: Sequence[str] | Mapping[str, Handler],
        name: str | None = None,
    ) -> Callable[[M], M]:
        """Class decorator form of :meth:`register`."""

        def decorator(cls: M) -> M:
            self.register(cls, fields=fields, actions=actions, name=name)
            return cls

        return decorator

    def seal(self) -> None:
        """Refuse any further registration."""
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    # ── Lookup ───────────────────────────────────────────────────

    def get(self, message_type: type[Message]) -> MessageDefinition | None:
        return self._by_type.get(message_type)

    def definition_for(self, message_type: type[Message]) -> MessageDefinition:
        """Return the definition of exactly *message_type*; raises if missing."""
        definition = self._by_type.get(message_type)
        if definition is None:
            raise MessageNotRegisteredError(message_type)
        return definition

    def resolve(self, type_name: str) -> type[Message] | None:
        """Look up a message class by its routing type name."""
        return self._by_name.get(type_name)

    def has(self, type_name: str) -> bool:
        return type_name in self._by_name

    # ── Introspection ────────────────────────────────────────────

    def list_registered(self) -> list[str]:
        """Return all registered type names in registration order."""
        return list(self._by_name)

    def binding_keys(self) -> list[str]:
        """Return the topic patterns matching every registered type."""
        return [binding_key(name) for name in self._by_name]

    # ── Cleanup ──────────────────────────────────────────────────

    def clear(self) -> None:
        """Remove all registrations and unseal (testing utility)."""
        self._by_type.clear()
        self._by_name.clear()
        self._sealed = False


def _check_message_class(message_type: Any) -> None:
    from .envelope import Message

    if not (isinstance(message_type, type) and issubclass(message_type, Message)):
        raise MessageRegistrationError(
            f"{message_type!r} is not a subclass of burrow.Message"
        )


def _check_identifier(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise MessageRegistrationError(
            f"{what} must be a non-empty string: {value!r}"
        )
    if DELIMITER in value:
        raise MessageRegistrationError(
            f"{what} {value!r} must not contain the routing delimiter {DELIMITER!r}"
        )
    return value


def _build_dispatch_table(
    message_type: type[Message],
    type_name: str,
    actions: Sequence[str] | Mapping[str, Handler],
) -> dict[str, Handler]:
    if isinstance(actions, str):
        actions = [actions]
    if isinstance(actions, Mapping):
        pairs = list(actions.items())
    else:
        from .envelope import Message

        for action in actions:
            if isinstance(action, str) and hasattr(Message, action):
                raise MessageRegistrationError(
                    f"{type_name} action {action!r} names a Message attribute, "
                    "not a handler; bind it explicitly with actions={name: handler}"
                )
        pairs = [(action, getattr(message_type, action, None)) for action in actions]

    if not pairs:
        raise MessageRegistrationError(f"{type_name} declares no actions")

    table: dict[str, Handler] = {}
    for action, handler in pairs:
        _check_identifier(action, "action name")
        if action in table:
            raise MessageRegistrationError(
                f"Duplicate action {action!r} declared for {type_name}"
            )
        if handler is None or not callable(handler):
            raise MessageRegistrationError(
                f"{type_name} declares action {action!r} but has no handler for it"
            )
        table[action] = handler
    return table


_default_registry = MessageRegistry()


def get_message_registry() -> MessageRegistry:
    """Return the process-wide default registry."""
    return _default_registry


def message(
    *,
    fields: Sequence[Any] | FieldSchema,
    actions: Sequence[str] | Mapping[str, Handler],
    name: str | None = None,
) -> Callable[[M], M]:
    """Register a class in the default registry.

    Usage::

        @message(fields=["name", "greeting_type"], actions=["say_hello"])
        class GreetingMessage(Message):
            async def say_hello(self) -> None:
                self.mark_success()
    """
    return _default_registry.message(fields=fields, actions=actions, name=name)


__all__ = [
    "ActionRegistry",
    "Handler",
    "MessageDefinition",
    "MessageRegistry",
    "get_message_registry",
    "message",
]
