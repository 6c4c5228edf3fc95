"""AckPolicy — map a finished envelope to accept or reject."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .envelope import Message


class AckDecision(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


def decide(envelope: Message) -> AckDecision:
    """Accept iff the envelope is successful. Performs no I/O."""
    return AckDecision.ACCEPT if envelope.is_successful() else AckDecision.REJECT


__all__ = ["AckDecision", "decide"]
