"""Result values returned by the pure steps of the dispatch pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class FaultKind(str, Enum):
    """Category of a problem recorded on an envelope."""

    MALFORMED_PAYLOAD = "malformed_payload"
    ROUTING_MISMATCH = "routing_mismatch"
    UNKNOWN_ACTION = "unknown_action"
    PROJECTION_ERROR = "projection_error"
    BUSINESS_LOGIC_FAILURE = "business_logic_failure"
    HANDLER_ERROR = "handler_error"
    DISPATCH_TIMEOUT = "dispatch_timeout"
    PUBLISH_TRANSPORT_ERROR = "publish_transport_error"


@dataclass(frozen=True)
class EnvelopeFault:
    """One recorded problem: its category and the (type-tagged) message."""

    kind: FaultKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a fault, never both.

    Usage::

        result = Result.success({"a": 1})
        result = Result.failure(FaultKind.PROJECTION_ERROR, "c: expected object")
        if result:
            use(result.value)
    """

    value: T | None = None
    fault: EnvelopeFault | None = None

    @property
    def ok(self) -> bool:
        return self.fault is None

    # ── Factory methods ──────────────────────────────────────────

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, kind: FaultKind, message: str) -> Result[T]:
        return cls(fault=EnvelopeFault(kind, message))

    def unwrap(self) -> T:
        """Return the value; raises ``ValueError`` when this is a failure."""
        if self.fault is not None:
            raise ValueError(f"unwrap() on failed result: {self.fault.message}")
        return self.value  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.ok
