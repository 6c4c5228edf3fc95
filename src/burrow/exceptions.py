"""Declaration-time and infrastructure exceptions for burrow.

Problems with an individual delivery are never raised; they are recorded on
the envelope (see :mod:`burrow.result`). The exceptions below signal
programming errors at startup or failures inside transport adapters.
"""

from __future__ import annotations


class BurrowError(Exception):
    """Root exception for the entire burrow toolkit."""


class SchemaDeclarationError(BurrowError):
    """Raised when a field schema declaration is malformed."""


class MessageRegistrationError(BurrowError):
    """Raised when a message type cannot be registered.

    Usage: MessageRegistry raises this for duplicate type names, actions
    without a bound handler, identifiers containing the routing delimiter,
    or registrations attempted after the registry was sealed.
    """


class MessageNotRegisteredError(BurrowError):
    """Raised when a message class is used without being registered."""

    def __init__(self, message_type: type) -> None:
        self.message_type = message_type
        super().__init__(
            f"{message_type.__name__} is not registered; "
            "decorate it with @message(...) or call MessageRegistry.register()"
        )


class MessagingError(BurrowError):
    """Base class for all messaging-related infrastructure errors."""


class MessagingConnectionError(MessagingError):
    """Raised when connectivity to the message broker fails."""


class MessagingSerializationError(MessagingError):
    """Raised when a message body cannot be serialized."""
