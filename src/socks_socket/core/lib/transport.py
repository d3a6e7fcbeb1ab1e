"""Hot-swappable transport wrapper for the SOCKS5 client.

This module owns the single live stream to the proxy. It provides:
- A protocol that forwards inbound chunks, errors and end-of-stream to a ResponseChannel
- Write, flush and close over the active asyncio transport
- In-place replacement of the transport for the TLS upgrade

The protocol instance outlives a replacement: ``loop.start_tls`` routes the
decrypted stream into the same protocol, so the channel and its pending readers
survive the swap without re-registration.

Example:
    channel = ResponseChannel()
    wrapper = await SocketWrapper.open("127.0.0.1", 9050, channel)
    wrapper.write(b"\\x05\\x01\\x00")
    await wrapper.flush()
"""

import asyncio
import contextlib
from collections import deque

from loguru import logger

from socks_socket.core.exceptions import ConnectionClosedError, TransportError

from .channel import ResponseChannel


class ChannelProtocol(asyncio.Protocol):
    """Forward transport callbacks to a response channel."""

    def __init__(self, channel: ResponseChannel) -> None:
        self._channel = channel
        self._paused = False
        self._drain_waiters: deque[asyncio.Future[None]] = deque()
        self._connection_lost = False

    @property
    def connection_lost_seen(self) -> bool:
        return self._connection_lost

    def data_received(self, data: bytes) -> None:
        self._channel.publish(bytes(data))

    def eof_received(self) -> bool:
        logger.debug("Proxy sent end of stream")
        self._channel.close()
        return False

    def connection_lost(self, exc: Exception | None) -> None:
        self._connection_lost = True
        if exc is not None:
            logger.debug(f"Transport lost: {exc}")
            self._channel.publish_error(TransportError(f"Connection to proxy lost: {exc}"))
        self._channel.close()
        self._wake_drain_waiters(exc)

    def pause_writing(self) -> None:
        self._paused = True

    def resume_writing(self) -> None:
        self._paused = False
        self._wake_drain_waiters(None)

    def _wake_drain_waiters(self, exc: Exception | None) -> None:
        while self._drain_waiters:
            waiter = self._drain_waiters.popleft()
            if waiter.done():
                continue
            if exc is None:
                waiter.set_result(None)
            else:
                waiter.set_exception(TransportError(f"Connection to proxy lost: {exc}"))

    async def drain(self) -> None:
        """Wait until the transport accepts more data."""
        if self._connection_lost:
            raise TransportError("Connection to proxy lost")
        if not self._paused:
            return
        waiter = asyncio.get_running_loop().create_future()
        self._drain_waiters.append(waiter)
        await waiter


class SocketWrapper:
    """Owns the active transport to the proxy and allows it to be replaced."""

    def __init__(self, channel: ResponseChannel) -> None:
        self._channel = channel
        self._transport: asyncio.Transport | None = None
        self._protocol: ChannelProtocol | None = None
        self._closed = False

    @classmethod
    async def open(cls, host: str, port: int, channel: ResponseChannel) -> "SocketWrapper":
        """Open a TCP connection to the proxy and attach to it.

        Raises:
            TransportError: If the proxy endpoint cannot be reached
        """
        wrapper = cls(channel)
        loop = asyncio.get_running_loop()
        try:
            transport, protocol = await loop.create_connection(lambda: ChannelProtocol(channel), host, port)
        except OSError as e:
            raise TransportError(f"Could not connect to proxy at {host}:{port}: {e}") from e
        wrapper.attach(transport, protocol)
        logger.debug(f"Connected to proxy at {host}:{port}")
        return wrapper

    @property
    def transport(self) -> asyncio.Transport | None:
        return self._transport

    @property
    def protocol(self) -> ChannelProtocol | None:
        return self._protocol

    @property
    def closed(self) -> bool:
        return self._closed

    def attach(self, transport: asyncio.Transport, protocol: ChannelProtocol) -> None:
        """Bind the wrapper to an open transport whose protocol feeds our channel."""
        if self._transport is not None:
            raise TransportError("Transport already attached, use replace() to swap it")
        self._transport = transport
        self._protocol = protocol

    def _active_transport(self) -> asyncio.Transport:
        if self._closed or self._channel.closed or self._transport is None:
            raise ConnectionClosedError("Connection to proxy is closed")
        if self._transport.is_closing():
            raise ConnectionClosedError("Connection to proxy is closing")
        return self._transport

    def write(self, data: bytes) -> None:
        """Hand bytes to the active transport without waiting for them to be sent."""
        self._active_transport().write(data)

    async def flush(self) -> None:
        """Wait until previously written bytes have been accepted by the transport."""
        if self._protocol is None:
            return
        await self._protocol.drain()

    def replace(self, transport: asyncio.Transport) -> None:
        """Swap the active transport in place, keeping the same protocol and channel."""
        if self._closed:
            raise ConnectionClosedError("Cannot replace the transport of a closed connection")
        old = self._transport
        self._transport = transport
        logger.debug(f"Replaced transport {type(old).__name__} with {type(transport).__name__}")

    async def close(self) -> None:
        """Flush and release the transport. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        with contextlib.suppress(TransportError):
            await self.flush()
        if self._transport is not None and not self._transport.is_closing():
            self._transport.close()
        logger.debug("Transport closed")
