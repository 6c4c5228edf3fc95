"""Tests for the in-memory transport helpers."""

from __future__ import annotations

import pytest

from burrow import AckDecision, IDelivery, IJobPublisher
from burrow.memory import (
    InMemoryBroker,
    InMemoryDelivery,
    InMemoryPublisher,
    topic_matches,
)


@pytest.mark.parametrize(
    ("pattern", "key", "expected"),
    [
        ("Order.*", "Order.ship", True),
        ("Order.*", "Order.ship.now", False),
        ("Order.*", "Invoice.ship", False),
        ("#", "Order.ship", True),
        ("Order.#", "Order", True),
        ("*.ship", "Order.ship", True),
        ("Order.ship", "Order.ship", True),
        ("Order.ship", "Order.validate", False),
    ],
)
def test_topic_matches(pattern: str, key: str, expected: bool) -> None:
    assert topic_matches(pattern, key) is expected


def test_adapters_satisfy_ports() -> None:
    assert isinstance(InMemoryPublisher(), IJobPublisher)
    assert isinstance(InMemoryDelivery(b"", "A.b"), IDelivery)


@pytest.mark.asyncio
async def test_delivery_settles_once() -> None:
    delivery = InMemoryDelivery(b"{}", "Order.ship")
    await delivery.accept()
    assert delivery.decision is AckDecision.ACCEPT
    with pytest.raises(RuntimeError, match="already settled"):
        await delivery.reject()


@pytest.mark.asyncio
async def test_publisher_records_without_consumers() -> None:
    publisher = InMemoryPublisher()
    await publisher.publish(b'{"a": 1}', "Order.ship", headers={"x": "1"})

    sent = publisher.get_published()
    assert len(sent) == 1
    assert sent[0].payload == {"a": 1}
    assert sent[0].metadata == {"headers": {"x": "1"}, "app_id": "burrow"}
    assert publisher.bus.get_deliveries() == []


@pytest.mark.asyncio
async def test_assert_published_counts(publisher: InMemoryPublisher) -> None:
    await publisher.publish(b"{}", "Order.ship")
    await publisher.publish(b"{}", "Order.ship")
    await publisher.publish(b"{}", "Order.validate")

    publisher.assert_published("Order", count=3)
    publisher.assert_published("Order", "ship", count=2)
    with pytest.raises(AssertionError, match="Expected 1 message"):
        publisher.assert_published("Order", "ship")


@pytest.mark.asyncio
async def test_broker_clear(bus: InMemoryBroker) -> None:
    seen: list[str] = []

    async def record(delivery: InMemoryDelivery) -> None:
        seen.append(delivery.routing_key)

    bus.bind("#", record)
    await bus.publish(b"{}", "A.b")
    bus.clear()
    await bus.publish(b"{}", "A.c")

    assert seen == ["A.b"]
    assert [m.routing_key for m in bus.get_published()] == ["A.c"]
