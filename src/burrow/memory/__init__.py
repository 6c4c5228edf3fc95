"""In-memory transport for testing."""

from __future__ import annotations

from .bus import InMemoryBroker, InMemoryDelivery, PublishedMessage, topic_matches
from .consumer import InMemoryConsumer
from .publisher import InMemoryPublisher

__all__ = [
    "InMemoryBroker",
    "InMemoryConsumer",
    "InMemoryDelivery",
    "InMemoryPublisher",
    "PublishedMessage",
    "topic_matches",
]
