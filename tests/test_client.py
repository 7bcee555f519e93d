# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

from __future__ import annotations

from typing import Any

import anyio
import pytest

from simplepush import (
    ChannelIndexError,
    ClientConfig,
    ClientStateError,
    InvalidEndpointError,
    SessionState,
    SimplePushClient,
    TransportFault,
    Update,
    open_connection,
)
from simplepush.client import ChannelState
from tests.helpers import ENDPOINT, FakeTransport, SequentialIds, notification, register_response


def _client(transport: FakeTransport, **config: Any) -> SimplePushClient:
    return SimplePushClient(ENDPOINT, transport=transport, config=ClientConfig(id_factory=SequentialIds(), **config))


@pytest.mark.parametrize(
    "url",
    ["", "not a url", "http://push.test/", "ws://", "wss://host:notaport/"],
)
def test_malformed_endpoint_fails_construction(url: str) -> None:
    transport = FakeTransport()

    with pytest.raises(InvalidEndpointError):
        SimplePushClient(url, transport=transport)

    assert transport.listener is None


def test_invalid_endpoint_is_a_value_error() -> None:
    with pytest.raises(ValueError, match="unsupported scheme"):
        SimplePushClient("ftp://push.test/")


@pytest.mark.anyio
async def test_connect_sends_single_hello_first() -> None:
    transport = FakeTransport()
    async with _client(transport) as client:
        assert client.state is SessionState.DISCONNECTED

        await client.connect()
        assert client.state is SessionState.CONNECTING
        await client.register()

        assert transport.frames[0] == {"messageType": "hello", "uaid": "id-0"}
        assert [frame["messageType"] for frame in transport.frames].count("hello") == 1
        assert client.uaid == "id-0"

        assert transport.listener is client
        await transport.listener.on_open()
        assert client.state is SessionState.OPEN
        assert client.uaid == "id-0"


class SlowOpenTransport(FakeTransport):
    async def open(self, task_group, listener) -> None:
        await anyio.sleep(0.01)
        await super().open(task_group, listener)


@pytest.mark.anyio
async def test_register_during_slow_open_waits_for_hello() -> None:
    transport = SlowOpenTransport()
    channel_ids: list[str] = []

    async def register() -> None:
        channel_ids.append(await client.register())

    async with _client(transport) as client:
        async with anyio.create_task_group() as tg:
            tg.start_soon(client.connect)
            await anyio.sleep(0)
            tg.start_soon(register)

        assert transport.frames == [
            {"messageType": "hello", "uaid": "id-0"},
            {"messageType": "register", "channelID": "id-1"},
        ]
        assert client.uaid == "id-0"
        assert channel_ids == ["id-1"]


class BrokenOpenTransport(FakeTransport):
    async def open(self, task_group, listener) -> None:
        raise OSError("no route to host")


@pytest.mark.anyio
async def test_failed_open_leaves_session_closed() -> None:
    transport = BrokenOpenTransport()
    async with _client(transport) as client:
        with pytest.raises(OSError):
            await client.connect()

        assert client.state is SessionState.CLOSED
        assert transport.sent == []
        with pytest.raises(ClientStateError):
            await client.register()


@pytest.mark.anyio
async def test_connect_twice_is_rejected() -> None:
    async with _client(FakeTransport()) as client:
        await client.connect()
        with pytest.raises(ClientStateError):
            await client.connect()


@pytest.mark.anyio
async def test_connect_requires_context_manager() -> None:
    client = _client(FakeTransport())

    with pytest.raises(ClientStateError, match="async with"):
        await client.connect()


@pytest.mark.anyio
async def test_register_before_connect_is_rejected() -> None:
    async with _client(FakeTransport()) as client:
        with pytest.raises(ClientStateError):
            await client.register()
        assert len(client.registry) == 0


@pytest.mark.anyio
async def test_register_ids_are_distinct_and_visible_immediately() -> None:
    transport = FakeTransport()
    async with _client(transport) as client:
        await client.connect()

        channel_ids = [await client.register() for _ in range(5)]

        assert len(set(channel_ids)) == 5
        assert [client.get_channel_id(i) for i in range(5)] == channel_ids
        assert all(channel.state is ChannelState.PENDING for channel in client.channels)
        assert [frame["channelID"] for frame in transport.frames[1:]] == channel_ids
        assert all(frame["messageType"] == "register" for frame in transport.frames[1:])


@pytest.mark.anyio
async def test_register_response_completes_channel() -> None:
    transport = FakeTransport()
    calls: list[tuple[str, str | None]] = []
    async with _client(transport) as client:
        await client.connect()
        channel_id = await client.register(lambda cid, endpoint: calls.append((cid, endpoint)))

        await transport.deliver(register_response(channel_id, endpoint="http://push.test/u/1"))

        assert calls == [(channel_id, "http://push.test/u/1")]
        channel = client.channel(channel_id)
        assert channel is not None
        assert channel.state is ChannelState.REGISTERED
        assert channel.push_endpoint == "http://push.test/u/1"


@pytest.mark.anyio
async def test_unregister_waits_for_server_echo() -> None:
    transport = FakeTransport()
    async with _client(transport) as client:
        await client.connect()
        first = await client.register()
        second = await client.register()

        await client.unregister(first)

        assert transport.frames[-1] == {"messageType": "unregister", "channelID": first}
        assert client.get_channel_id(0) == first

        await transport.deliver({"messageType": "unregister", "channelID": first})

        assert client.get_channel_id(0) == second
        with pytest.raises(ChannelIndexError):
            client.get_channel_id(1)


@pytest.mark.anyio
async def test_unregister_unknown_channel_is_sent() -> None:
    transport = FakeTransport()
    async with _client(transport) as client:
        await client.connect()
        await client.unregister("never-registered")

        assert transport.frames[-1] == {"messageType": "unregister", "channelID": "never-registered"}


@pytest.mark.anyio
async def test_get_channel_id_out_of_range() -> None:
    async with _client(FakeTransport()) as client:
        await client.connect()
        await client.register()

        with pytest.raises(IndexError):
            client.get_channel_id(1)


@pytest.mark.anyio
async def test_notification_acks_then_delivers() -> None:
    events: list[tuple[str, Any]] = []
    transport = FakeTransport(events=events)
    async with _client(transport) as client:
        client.add_message_listener(lambda update: events.append(("deliver", update)))
        await client.connect()
        events.clear()

        await transport.deliver(notification(("c1", 1), ("c2", 2)))

        assert events == [
            ("send", {"messageType": "ack", "updates": [{"channelID": "c1", "version": 1}]}),
            ("deliver", Update(channel_id="c1", version=1)),
            ("send", {"messageType": "ack", "updates": [{"channelID": "c2", "version": 2}]}),
            ("deliver", Update(channel_id="c2", version=2)),
        ]


@pytest.mark.anyio
async def test_transport_error_fails_session() -> None:
    transport = FakeTransport()
    faults: list[TransportFault] = []
    async with _client(transport) as client:
        client.add_error_listener(faults.append)
        await client.connect()
        channel_id = await client.register()
        sent_before = len(transport.sent)

        cause = ConnectionResetError("peer reset")
        await client.on_error(cause)

        assert client.state is SessionState.FAILED
        assert client.fault is not None
        assert client.fault.__cause__ is cause
        assert faults == [client.fault]

        with pytest.raises(TransportFault):
            await client.register()
        with pytest.raises(TransportFault):
            await client.unregister(channel_id)
        assert len(transport.sent) == sent_before

    assert client.state is SessionState.CLOSED
    assert client.fault is not None


@pytest.mark.anyio
async def test_ack_after_failure_is_dropped() -> None:
    transport = FakeTransport()
    delivered: list[Update] = []
    async with _client(transport) as client:
        client.add_message_listener(delivered.append)
        await client.connect()
        await client.on_error(OSError("gone"))

        await transport.deliver(notification(("c1", 1)))

        assert delivered == []
        assert all(frame["messageType"] != "ack" for frame in transport.frames)


@pytest.mark.anyio
async def test_remote_close_moves_to_closed() -> None:
    transport = FakeTransport()
    async with _client(transport) as client:
        await client.connect()
        await client.on_close(1000, "bye", True)

        assert client.state is SessionState.CLOSED
        with pytest.raises(ClientStateError):
            await client.register()


@pytest.mark.anyio
async def test_close_is_best_effort() -> None:
    transport = FakeTransport()
    transport.close_error = OSError("socket already gone")
    async with _client(transport) as client:
        await client.connect()
        await client.close()

        assert client.state is SessionState.CLOSED
        assert transport.closed
        await client.close()


@pytest.mark.anyio
async def test_close_gives_up_after_timeout() -> None:
    transport = FakeTransport()
    transport.close_delay = 5.0
    async with _client(transport, close_timeout=0.05) as client:
        await client.connect()
        with anyio.fail_after(2):
            await client.close()

        assert client.state is SessionState.CLOSED
        assert transport.aborted


@pytest.mark.anyio
async def test_close_without_connect() -> None:
    transport = FakeTransport()
    async with _client(transport) as client:
        pass

    assert client.state is SessionState.CLOSED
    assert not transport.closed


@pytest.mark.anyio
async def test_open_connection_attaches_listeners_and_connects() -> None:
    transport = FakeTransport()
    delivered: list[Update] = []
    config = ClientConfig(id_factory=SequentialIds("s"))

    async with open_connection(ENDPOINT, config=config, transport=transport, on_message=delivered.append) as client:
        assert client.state is SessionState.CONNECTING
        assert transport.frames == [{"messageType": "hello", "uaid": "s-0"}]

        await transport.deliver(notification(("c", 3)))
        assert delivered == [Update(channel_id="c", version=3)]

    assert transport.closed
    assert client.state is SessionState.CLOSED
