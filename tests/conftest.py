"""
tests/conftest.py – test harness bootstrap.
Provides a scripted in-process SOCKS5 proxy and socket bookkeeping.
"""

import asyncio
import socket
from collections.abc import AsyncGenerator, Awaitable, Callable, Iterable
from typing import Any

import pytest
import pytest_asyncio

from socks_socket.core.client import SocksSocket

GREETING_OK = bytes([0x05, 0x00])
GREETING_REJECTED = bytes([0x05, 0x01])
CONNECT_OK = bytes([0x05, 0x00, 0x01, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00])

# Scripted reply that makes the proxy hang up instead of answering
CLOSE = object()

Responder = Callable[[bytes], bytes | None]


class ScriptedProxy:
    """Fake SOCKS5 proxy answering each received chunk with the next scripted reply.

    Once the script is exhausted the optional ``responder`` produces replies,
    sent after ``reply_delay`` seconds; otherwise received chunks are only recorded.
    """

    def __init__(
        self, replies: Iterable[Any], responder: Responder | None = None, reply_delay: float = 0.0
    ) -> None:
        self.replies = list(replies)
        self.responder = responder
        self.reply_delay = reply_delay
        self.received: list[bytes] = []
        self.done = asyncio.Event()
        self.port = 0
        self._server: asyncio.Server | None = None

    async def start(self) -> "ScriptedProxy":
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]
        return self

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        script = iter(self.replies)
        try:
            while data := await reader.read(4096):
                self.received.append(data)
                reply = next(script, None)
                if reply is None and self.responder is not None:
                    reply = self.responder(data)
                    await asyncio.sleep(self.reply_delay)
                if reply is CLOSE:
                    break
                if reply:
                    writer.write(reply)
                    await writer.drain()
        except ConnectionError:
            pass
        finally:
            writer.close()
            self.done.set()

    @property
    def data(self) -> bytes:
        return b"".join(self.received)

    async def wait_done(self, timeout: float = 2.0) -> None:
        await asyncio.wait_for(self.done.wait(), timeout)

    def stop(self) -> None:
        if self._server is not None:
            self._server.close()


@pytest_asyncio.fixture
async def socks_proxy() -> AsyncGenerator[Callable[..., Awaitable[ScriptedProxy]], None]:
    """Factory starting scripted proxies; all are stopped after the test."""
    proxies: list[ScriptedProxy] = []

    async def _start(
        replies: Iterable[Any] = (), responder: Responder | None = None, reply_delay: float = 0.0
    ) -> ScriptedProxy:
        proxy = await ScriptedProxy(replies, responder, reply_delay).start()
        proxies.append(proxy)
        return proxy

    yield _start

    for proxy in proxies:
        proxy.stop()


@pytest_asyncio.fixture
async def open_socket() -> AsyncGenerator[Callable[..., Awaitable[SocksSocket]], None]:
    """Factory creating SocksSockets that are closed after the test."""
    sockets: list[SocksSocket] = []

    async def _open(port: int, **kwargs: Any) -> SocksSocket:
        sock = await SocksSocket.create("127.0.0.1", port, **kwargs)
        sockets.append(sock)
        return sock

    yield _open

    for sock in sockets:
        await sock.close()


@pytest.fixture
def unused_port() -> int:
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
