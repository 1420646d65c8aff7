import asyncio

import pytest

from relay.endpoint import Endpoint
from relay.registry import ConnectionRegistry, preview_payload

from conftest import FakeTransport, settle


@pytest.mark.parametrize("count", [2, 3, 5])
async def test_fan_out_reaches_every_other_endpoint(registry, connect, count):
    endpoints = [connect(f"peer-{i}") for i in range(count)]
    source = endpoints[0]

    delivered = registry.on_message(source, "offer")
    await settle(*endpoints)

    assert delivered == count - 1
    assert source.transport.sent == []
    for endpoint in endpoints[1:]:
        assert endpoint.transport.sent == ["offer"]


async def test_single_endpoint_delivers_nothing(registry, connect):
    alone = connect("alone")

    assert registry.on_message(alone, "hello") == 0
    await settle(alone)
    assert alone.transport.sent == []


async def test_connecting_endpoint_is_skipped(registry, connect):
    source = connect("a")
    pending = Endpoint(FakeTransport(), remote="b")
    registry.register(pending)

    assert registry.on_message(source, "offer") == 0
    assert pending in registry
    assert pending.transport.sent == []


async def test_closing_endpoint_is_skipped(registry, connect):
    source = connect("a")
    closing = connect("b")
    closing.transport.closed = True

    assert registry.on_message(source, "candidate") == 0


async def test_no_delivery_after_unregister(registry, connect):
    a = connect("a")
    b = connect("b")

    assert registry.unregister(b) is True
    registry.on_message(a, "ping")
    await settle(a)

    assert b.transport.sent == []
    assert b not in registry


async def test_in_flight_broadcast_is_dropped_on_disconnect(registry, connect):
    a = connect("a")
    b = connect("b")
    b.transport.gate = asyncio.Event()

    registry.on_message(a, "first")
    registry.on_message(a, "second")
    await asyncio.sleep(0.01)
    registry.unregister(b)
    b.transport.gate.set()
    await asyncio.sleep(0.01)

    assert b.transport.sent == []


async def test_unregister_absent_endpoint_is_noop(registry, connect):
    a = connect("a")
    stranger = Endpoint(FakeTransport(), remote="stranger")

    assert registry.unregister(stranger) is False
    assert registry.unregister(a) is True
    assert registry.unregister(a) is False
    assert len(registry) == 0

    b = connect("b")
    c = connect("c")
    assert len(registry) == 2
    assert registry.on_message(b, "ok") == 1
    await settle(c)
    assert c.transport.sent == ["ok"]


async def test_order_is_preserved_per_sender(registry, connect):
    a = connect("a")
    b = connect("b")
    c = connect("c")
    messages = [f"m{i}" for i in range(50)]

    for message in messages:
        registry.on_message(a, message)
    await settle(b, c)

    assert b.transport.sent == messages
    assert c.transport.sent == messages


async def test_interleaved_senders_keep_their_own_order(registry, connect):
    a = connect("a")
    b = connect("b")
    c = connect("c")

    for i in range(10):
        registry.on_message(a, f"a{i}")
        registry.on_message(b, f"b{i}")
    await settle(a, b, c)

    from_a = [m for m in c.transport.sent if m.startswith("a")]
    from_b = [m for m in c.transport.sent if m.startswith("b")]
    assert from_a == [f"a{i}" for i in range(10)]
    assert from_b == [f"b{i}" for i in range(10)]
    assert a.transport.sent == [f"b{i}" for i in range(10)]


async def test_payload_is_forwarded_unmodified(registry, connect):
    a = connect("a")
    b = connect("b")
    binary = bytes(range(256)) + b"\xff\xfe\x00"
    text = 'v=0\r\no=- 4611 2 IN IP4 127.0.0.1\r\n{"not": json'

    registry.on_message(a, binary)
    registry.on_message(a, text)
    await settle(b)

    assert b.transport.frames == [('binary', binary), ('text', text)]


async def test_failing_destination_does_not_block_others(registry, connect):
    a = connect("a")
    broken = connect("broken", fail=True)
    c = connect("c")

    assert registry.on_message(a, "offer") == 2
    await settle(broken, c)

    assert c.transport.sent == ["offer"]
    assert broken.transport.sent == []


async def test_slow_destination_does_not_delay_others(registry, connect):
    a = connect("a")
    slow = connect("slow")
    slow.transport.gate = asyncio.Event()
    c = connect("c")

    registry.on_message(a, "offer")
    registry.on_message(a, "candidate")
    await asyncio.wait_for(settle(c), 1)

    assert c.transport.sent == ["offer", "candidate"]
    assert slow.transport.sent == []


async def test_three_peer_scenario(registry, connect):
    a = connect("a")
    b = connect("b")
    c = connect("c")

    registry.unregister(b)
    registry.on_message(a, "ping")
    await settle(a, c)

    assert c.transport.sent == ["ping"]
    assert a.transport.sent == []
    assert b.transport.sent == []
    assert set(registry.endpoints()) == {a, c}


async def test_no_buffering_for_later_connections(registry, connect):
    a = connect("a")
    registry.on_message(a, "hello")

    b = connect("b")
    await settle(a, b)

    assert b.transport.sent == []


async def test_status_counts(registry, connect):
    a = connect("a")
    connect("b")
    connect("c")

    registry.on_message(a, "offer")
    status = registry.get_status()

    assert status["active_endpoints"] == 3
    assert status["messages_relayed"] == 1
    assert status["deliveries"] == 2
    assert [info["remote"] for info in status["endpoints"]] == ["a", "b", "c"]
    assert a.messages_received == 1


async def test_cleanup_empties_registry():
    registry = ConnectionRegistry()
    endpoint = Endpoint(FakeTransport())
    registry.register(endpoint)
    endpoint.mark_open()

    await registry.cleanup()

    assert len(registry) == 0
    assert endpoint.enqueue("late") is False


def test_preview_truncates_long_text():
    assert preview_payload("short") == "short"
    assert preview_payload("x" * 100) == "x" * 80 + "…"
    assert preview_payload("x" * 100, limit=10) == "x" * 10 + "…"
    assert preview_payload(b"\x00\x01\x02") == "<binary 3 bytes>"
