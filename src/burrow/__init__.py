"""burrow — typed job messages routed as ``<TypeName>.<action>`` over a broker."""

from __future__ import annotations

from .ack import AckDecision, decide
from .config import BrokerSettings
from .dispatcher import Dispatcher
from .envelope import EnvelopeState, Message
from .exceptions import (
    BurrowError,
    MessageNotRegisteredError,
    MessageRegistrationError,
    MessagingConnectionError,
    MessagingError,
    MessagingSerializationError,
    SchemaDeclarationError,
)
from .ports import IDelivery, IJobPublisher
from .projection import project
from .registry import (
    ActionRegistry,
    MessageDefinition,
    MessageRegistry,
    get_message_registry,
    message,
)
from .result import EnvelopeFault, FaultKind, Result
from .routing import RoutingKey, binding_key, decode, encode
from .schema import FieldSchema, NestedField, ScalarField

__all__ = [
    "AckDecision",
    "ActionRegistry",
    "BrokerSettings",
    "BurrowError",
    "Dispatcher",
    "EnvelopeFault",
    "EnvelopeState",
    "FaultKind",
    "FieldSchema",
    "IDelivery",
    "IJobPublisher",
    "Message",
    "MessageDefinition",
    "MessageNotRegisteredError",
    "MessageRegistrationError",
    "MessageRegistry",
    "MessagingConnectionError",
    "MessagingError",
    "MessagingSerializationError",
    "NestedField",
    "Result",
    "RoutingKey",
    "ScalarField",
    "SchemaDeclarationError",
    "binding_key",
    "decide",
    "decode",
    "encode",
    "get_message_registry",
    "message",
    "project",
]
