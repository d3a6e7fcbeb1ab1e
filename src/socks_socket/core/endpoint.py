"""Local proxy endpoint handed to the client by the proxy-process manager.

The client never starts or stops the proxy process. It only consumes a
``(host, port, ready)`` triple describing where the proxy listens and whether
it is accepting connections yet.

This module provides:
- The ProxyEndpoint triple with its ready signal
- A TCP probe that waits until the endpoint accepts connections

Example:
    endpoint = await wait_for_endpoint("127.0.0.1", 9050)
    sock = await create_socks_socket(endpoint)
"""

import asyncio
from dataclasses import dataclass, field

from loguru import logger

from socks_socket.core.exceptions import TransportError

DEFAULT_ATTEMPTS = 10
DEFAULT_DELAY = 0.5  # seconds


@dataclass
class ProxyEndpoint:
    """Where the local SOCKS5 proxy listens.

    Attributes:
        host: Address the proxy listens on (e.g., '127.0.0.1')
        port: Port the proxy listens on
        ready: Set once the proxy accepts connections
    """

    host: str
    port: int
    ready: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def mark_ready(self) -> None:
        self.ready.set()

    @property
    def is_ready(self) -> bool:
        return self.ready.is_set()

    async def wait_ready(self) -> None:
        """Suspend until the endpoint is marked ready."""
        await self.ready.wait()


async def _accepts_connections(host: str, port: int) -> bool:
    try:
        _, writer = await asyncio.open_connection(host, port)
    except OSError as e:
        logger.debug(f"Proxy endpoint {host}:{port} not reachable yet: {e}")
        return False
    writer.close()
    await writer.wait_closed()
    return True


async def wait_for_endpoint(
    host: str, port: int, attempts: int = DEFAULT_ATTEMPTS, delay: float = DEFAULT_DELAY
) -> ProxyEndpoint:
    """Probe ``host:port`` until it accepts TCP connections.

    Args:
        host: Proxy host
        port: Proxy port
        attempts: Number of connection attempts
        delay: Seconds to wait between attempts

    Returns:
        ProxyEndpoint: An endpoint already marked ready

    Raises:
        TransportError: If the endpoint never accepts a connection
    """
    endpoint = ProxyEndpoint(host, port)
    for attempt in range(1, attempts + 1):
        if await _accepts_connections(host, port):
            logger.info(f"Proxy endpoint {host}:{port} ready after {attempt} attempt(s)")
            endpoint.mark_ready()
            return endpoint
        if attempt < attempts:
            await asyncio.sleep(delay)
    raise TransportError(f"Proxy endpoint {host}:{port} not reachable after {attempts} attempts")
