"""Routing-key codec for the ``<TypeName>.<action>`` convention."""

from __future__ import annotations

from typing import NamedTuple

from .result import FaultKind, Result

DELIMITER = "."


class RoutingKey(NamedTuple):
    """Decoded routing key."""

    type_name: str
    action: str

    def __str__(self) -> str:
        return encode(self.type_name, self.action)


def encode(type_name: str, action: str) -> str:
    """Return ``"<type_name>.<action>"``.

    Neither identifier may contain the delimiter; MessageRegistry rejects
    such names at registration time.
    """
    return f"{type_name}{DELIMITER}{action}"


def decode(routing_key: str) -> Result[RoutingKey]:
    """Split *routing_key* on the first delimiter into type name and action.

    Everything after the first delimiter is the action, so multi-segment
    keys keep their tail intact. A key without a delimiter, or with an empty
    type or action token, is a routing error.
    """
    type_name, sep, action = routing_key.partition(DELIMITER)
    if not sep:
        return Result.failure(
            FaultKind.ROUTING_MISMATCH,
            f"Routing error; no {DELIMITER!r} in routing key {routing_key!r}",
        )
    if not type_name or not action:
        return Result.failure(
            FaultKind.ROUTING_MISMATCH,
            f"Routing error; malformed routing key {routing_key!r}",
        )
    return Result.success(RoutingKey(type_name, action))


def binding_key(type_name: str) -> str:
    """Topic pattern that matches every action of *type_name*."""
    return f"{type_name}{DELIMITER}*"


__all__ = ["DELIMITER", "RoutingKey", "binding_key", "decode", "encode"]
