"""ResponseChannel and SocketWrapper behaviour."""

import asyncio
from unittest.mock import MagicMock

import pytest

from socks_socket.core.exceptions import ConnectionClosedError, TransportError
from socks_socket.core.lib.channel import ResponseChannel
from socks_socket.core.lib.transport import ChannelProtocol, SocketWrapper


def make_transport() -> MagicMock:
    transport = MagicMock(spec=asyncio.Transport)
    transport.is_closing.return_value = False
    return transport


@pytest.mark.asyncio
async def test_channel_delivers_in_arrival_order() -> None:
    channel = ResponseChannel()
    channel.publish(b"one")
    channel.publish(b"two")

    assert await channel.receive_data() == b"one"
    assert await channel.receive_data() == b"two"


@pytest.mark.asyncio
async def test_channel_error_event_is_distinguishable() -> None:
    channel = ResponseChannel()
    channel.publish_error(ConnectionResetError("reset"))

    event = await channel.receive()
    assert event.is_error
    assert isinstance(event.error, ConnectionResetError)


@pytest.mark.asyncio
async def test_channel_error_raised_as_transport_error() -> None:
    channel = ResponseChannel()
    channel.publish_error(ConnectionResetError("reset"))

    with pytest.raises(TransportError, match="reset"):
        await channel.receive_data()


@pytest.mark.asyncio
async def test_channel_close_is_terminal_and_idempotent() -> None:
    channel = ResponseChannel()
    channel.close()
    channel.close()
    channel.publish(b"late")

    assert channel.closed
    for _ in range(2):
        with pytest.raises(ConnectionClosedError):
            await channel.receive()


@pytest.mark.asyncio
async def test_protocol_forwards_callbacks_to_channel() -> None:
    channel = ResponseChannel()
    protocol = ChannelProtocol(channel)

    protocol.data_received(b"abc")
    protocol.connection_lost(ConnectionResetError("peer reset"))

    assert await channel.receive_data() == b"abc"
    with pytest.raises(TransportError, match="peer reset"):
        await channel.receive_data()
    with pytest.raises(ConnectionClosedError):
        await channel.receive_data()
    assert protocol.connection_lost_seen


@pytest.mark.asyncio
async def test_protocol_eof_closes_channel() -> None:
    channel = ResponseChannel()
    protocol = ChannelProtocol(channel)

    assert protocol.eof_received() is False
    assert channel.closed


@pytest.mark.asyncio
async def test_drain_waits_while_paused() -> None:
    protocol = ChannelProtocol(ResponseChannel())
    protocol.pause_writing()

    drain = asyncio.create_task(protocol.drain())
    await asyncio.sleep(0)
    assert not drain.done()

    protocol.resume_writing()
    await asyncio.wait_for(drain, 1)


@pytest.mark.asyncio
async def test_drain_fails_after_connection_lost() -> None:
    protocol = ChannelProtocol(ResponseChannel())
    protocol.pause_writing()
    drain = asyncio.create_task(protocol.drain())
    await asyncio.sleep(0)

    protocol.connection_lost(OSError("gone"))

    with pytest.raises(TransportError):
        await drain
    with pytest.raises(TransportError):
        await protocol.drain()


@pytest.mark.asyncio
async def test_replace_keeps_channel_and_redirects_writes() -> None:
    channel = ResponseChannel()
    protocol = ChannelProtocol(channel)
    wrapper = SocketWrapper(channel)
    first, second = make_transport(), make_transport()
    wrapper.attach(first, protocol)

    protocol.data_received(b"before")
    wrapper.replace(second)
    protocol.data_received(b"after")
    wrapper.write(b"x")

    assert wrapper.transport is second
    first.write.assert_not_called()
    second.write.assert_called_once_with(b"x")
    assert await channel.receive_data() == b"before"
    assert await channel.receive_data() == b"after"


@pytest.mark.asyncio
async def test_attach_twice_is_rejected() -> None:
    channel = ResponseChannel()
    wrapper = SocketWrapper(channel)
    wrapper.attach(make_transport(), ChannelProtocol(channel))

    with pytest.raises(TransportError):
        wrapper.attach(make_transport(), ChannelProtocol(channel))


@pytest.mark.asyncio
async def test_wrapper_close_is_idempotent_and_blocks_writes() -> None:
    channel = ResponseChannel()
    wrapper = SocketWrapper(channel)
    transport = make_transport()
    wrapper.attach(transport, ChannelProtocol(channel))

    await wrapper.close()
    await wrapper.close()

    transport.close.assert_called_once()
    with pytest.raises(ConnectionClosedError):
        wrapper.write(b"data")
    with pytest.raises(ConnectionClosedError):
        wrapper.replace(make_transport())


@pytest.mark.asyncio
async def test_write_to_closing_transport_is_rejected() -> None:
    channel = ResponseChannel()
    wrapper = SocketWrapper(channel)
    transport = make_transport()
    transport.is_closing.return_value = True
    wrapper.attach(transport, ChannelProtocol(channel))

    with pytest.raises(ConnectionClosedError):
        wrapper.write(b"data")
    transport.write.assert_not_called()
