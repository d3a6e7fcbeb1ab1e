"""Response channel between the transport and the client engine."""

import asyncio
from dataclasses import dataclass

from loguru import logger

from socks_socket.core.exceptions import ConnectionClosedError, TransportError


@dataclass(frozen=True)
class ChannelEvent:
    """One delivery from the transport: a data chunk or an error."""

    data: bytes = b""
    error: BaseException | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


_CLOSED = ChannelEvent(error=ConnectionClosedError("Response channel closed"))


class ResponseChannel:
    """Single-consumer mailbox fed by the transport's inbound byte stream.

    Chunks are kept in arrival order until someone receives them. Closing
    is terminal: every later ``receive`` raises ``ConnectionClosedError``.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[ChannelEvent] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, data: bytes) -> None:
        if self._closed:
            logger.debug(f"Dropping {len(data)} bytes received after channel close")
            return
        self._queue.put_nowait(ChannelEvent(data=data))

    def publish_error(self, exc: BaseException) -> None:
        if self._closed:
            return
        self._queue.put_nowait(ChannelEvent(error=exc))

    def close(self) -> None:
        """Close the channel. Only the first call has an effect."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def receive(self) -> ChannelEvent:
        """Wait for the next event.

        Raises:
            ConnectionClosedError: If the channel is closed and drained
        """
        event = await self._queue.get()
        if event is _CLOSED:
            # Leave the marker for any later receiver
            self._queue.put_nowait(_CLOSED)
            raise ConnectionClosedError("Connection closed while waiting for a reply")
        return event

    async def receive_data(self) -> bytes:
        """Wait for the next data chunk, raising error events as ``TransportError``."""
        event = await self.receive()
        if event.is_error:
            if isinstance(event.error, TransportError):
                raise event.error
            raise TransportError(f"Transport error: {event.error}") from event.error
        return event.data
