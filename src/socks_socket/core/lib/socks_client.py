"""SOCKS5 client engine.

This module implements the client side of RFC 1928 over a single connection:
- Method negotiation (no-auth only)
- CONNECT to a domain name and port
- Optional TLS upgrade of the tunneled stream
- Request/reply exchanges with the tunneled peer

At most one exchange is in flight at a time. Replies are not tagged, so the
engine simply takes the next value from the response channel; every command
runs under a per-connection lock so concurrent callers are serialized instead
of racing for each other's replies.

There are no built-in timeouts. Callers that need a deadline wrap the call in
``asyncio.timeout``. An exchange interrupted after its request was written
closes the socket, so a late reply can never answer a later command.

Example:
    async with await SocksSocket.create("127.0.0.1", 9050, ssl_enabled=True) as sock:
        await sock.connect()
        await sock.connect_to("electrum.example.org", 50002)
        print(await sock.send_server_features_command())
"""

import asyncio
import contextlib
from enum import Enum
from typing import Final

from loguru import logger

from socks_socket.core.endpoint import ProxyEndpoint
from socks_socket.core.exceptions import InvalidStateError, TransportError

from .channel import ResponseChannel
from .socks_protocol import build_connect_request, build_greeting, parse_connect_reply, parse_method_selection
from .tls import TLSPolicy, ensure_tls_support
from .transport import SocketWrapper
from .tunnel_stats import TunnelStats

SERVER_FEATURES_COMMAND: Final = '{"jsonrpc":"2.0","id":"0","method":"server.features","params":[]}'


class SocksState(Enum):
    """Connection lifecycle states."""

    FRESH = "fresh"
    NEGOTIATED = "negotiated"
    TUNNELED = "tunneled"
    ENCRYPTED = "encrypted"
    CLOSED = "closed"


class SocksSocket:
    """A connection to a SOCKS5 proxy that can be tunneled to a remote host.

    Use ``SocksSocket.create`` to open the connection, then ``connect`` and
    ``connect_to``. The transport is owned by the socket and only ever
    replaced, during the TLS upgrade.
    """

    def __init__(
        self,
        proxy_host: str,
        proxy_port: int,
        *,
        ssl_enabled: bool = False,
        tls_policy: TLSPolicy | None = None,
        probe_after_upgrade: bool = False,
    ) -> None:
        """Initialize an unopened socket.

        Args:
            proxy_host: Host of the SOCKS5 proxy
            proxy_port: Port of the SOCKS5 proxy
            ssl_enabled: Upgrade the tunnel to TLS after CONNECT
            tls_policy: Certificate policy for the upgrade (strict by default)
            probe_after_upgrade: Send the server.features probe after the upgrade
        """
        if ssl_enabled:
            ensure_tls_support()
        self.proxy_host = proxy_host
        self.proxy_port = proxy_port
        self.ssl_enabled = ssl_enabled
        self.tls_policy = tls_policy or TLSPolicy()
        self.probe_after_upgrade = probe_after_upgrade
        self.stats = TunnelStats()
        self.target: tuple[str, int] | None = None
        self._channel = ResponseChannel()
        self._wrapper = SocketWrapper(self._channel)
        self._lock = asyncio.Lock()
        self._state = SocksState.FRESH

    @classmethod
    async def create(cls, proxy_host: str, proxy_port: int, **kwargs) -> "SocksSocket":
        """Open a connection to the proxy and return a socket in the FRESH state.

        Raises:
            TransportError: If the proxy cannot be reached
            UnsupportedPlatformError: If TLS was requested but is unavailable
        """
        instance = cls(proxy_host, proxy_port, **kwargs)
        await instance._init()
        return instance

    async def _init(self) -> None:
        if self.ssl_enabled:
            ensure_tls_support(asyncio.get_running_loop())
        self._wrapper = await SocketWrapper.open(self.proxy_host, self.proxy_port, self._channel)
        logger.info(f"Opened SOCKS5 connection to {self.proxy_host}:{self.proxy_port}")

    @property
    def state(self) -> SocksState:
        if self._state is not SocksState.CLOSED and self._channel.closed:
            return SocksState.CLOSED
        return self._state

    @property
    def transport(self) -> asyncio.Transport | None:
        """The current transport handle (changes after a TLS upgrade)."""
        return self._wrapper.transport

    @property
    def tunneled(self) -> bool:
        return self.state in (SocksState.TUNNELED, SocksState.ENCRYPTED)

    def _require(self, *states: SocksState) -> None:
        current = self.state
        if current not in states:
            expected = " or ".join(s.value for s in states)
            raise InvalidStateError(f"Connection is {current.value}, expected {expected}")

    def _send(self, data: bytes) -> None:
        self._wrapper.write(data)
        self.stats.record_sent(len(data))

    async def _exchange(self, request: bytes) -> bytes:
        """Send one request and wait for exactly one reply. Caller holds the lock."""
        self._send(request)
        try:
            await self._wrapper.flush()
            reply = await self._channel.receive_data()
        except BaseException:
            self._abandon()
            raise
        self.stats.record_received(len(reply))
        return reply

    async def connect(self) -> None:
        """Negotiate the no-auth method with the proxy.

        Raises:
            NegotiationError: If the proxy rejects the method or replies malformed
            TransportError: If the connection fails while waiting
        """
        async with self._lock:
            self._require(SocksState.FRESH)
            reply = await self._exchange(build_greeting())
            parse_method_selection(reply)
            self._state = SocksState.NEGOTIATED
            logger.debug("SOCKS5 method negotiation complete")

    async def connect_to(self, domain: str, port: int) -> None:
        """Open a tunnel to ``domain:port`` and upgrade it to TLS if enabled.

        Raises:
            EncodingError: If the target cannot be encoded (nothing is sent)
            ConnectError: If the proxy reports a failure; the socket stays negotiated
            TransportError: If the connection or the TLS handshake fails
        """
        async with self._lock:
            self._require(SocksState.NEGOTIATED)
            request = build_connect_request(domain, port)
            reply = await self._exchange(request)
            parse_connect_reply(reply, domain, port)
            self.target = (domain, port)
            self._state = SocksState.TUNNELED
            logger.info(f"Tunnel established to {domain}:{port}")

            if self.ssl_enabled:
                await self._upgrade(domain)
                if self.probe_after_upgrade:
                    await self._features_exchange()

    async def _upgrade(self, domain: str) -> None:
        loop = asyncio.get_running_loop()
        ensure_tls_support(loop)
        context = self.tls_policy.create_context()
        raw = self._wrapper.transport
        try:
            secure = await loop.start_tls(raw, self._wrapper.protocol, context, server_hostname=domain)
        except OSError as e:
            await self.close()
            raise TransportError(f"TLS handshake with {domain} failed: {e}") from e
        except BaseException:
            self._abandon()
            raise
        try:
            self.tls_policy.check_peer(domain, secure)
        except TransportError:
            secure.close()
            await self.close()
            raise
        self._wrapper.replace(secure)
        self._state = SocksState.ENCRYPTED
        logger.info(f"Upgraded tunnel to {domain} to TLS ({self.tls_policy.mode.value})")

    async def _features_exchange(self) -> str:
        logger.debug("Sending server.features command")
        reply = await self._exchange(f"{SERVER_FEATURES_COMMAND}\n".encode())
        text = reply.decode("utf-8")
        logger.debug(f"server.features reply: {text.strip()}")
        return text

    async def send_server_features_command(self) -> str:
        """Ask the tunneled server for its features and return the reply text."""
        async with self._lock:
            self._require(SocksState.TUNNELED, SocksState.ENCRYPTED)
            return await self._features_exchange()

    async def request(self, payload: bytes | str) -> bytes:
        """Send a payload through the tunnel and wait for one reply."""
        data = payload.encode("utf-8") if isinstance(payload, str) else payload
        async with self._lock:
            self._require(SocksState.TUNNELED, SocksState.ENCRYPTED)
            return await self._exchange(data)

    async def read(self) -> bytes:
        """Wait for the next chunk received through the tunnel."""
        async with self._lock:
            self._require(SocksState.TUNNELED, SocksState.ENCRYPTED)
            reply = await self._channel.receive_data()
            self.stats.record_received(len(reply))
            return reply

    def write(self, payload: object) -> None:
        """Send ``payload`` as UTF-8 text without waiting for a reply.

        ``None`` and empty payloads are ignored. Bytes are sent unchanged.
        """
        if payload is None:
            return
        data = payload if isinstance(payload, bytes | bytearray | memoryview) else str(payload).encode("utf-8")
        if not data:
            return
        self._send(bytes(data))

    def _abandon(self) -> None:
        """Drop the connection at once when an exchange is interrupted mid-flight."""
        if self._state is SocksState.CLOSED:
            return
        self._state = SocksState.CLOSED
        self._channel.close()
        transport = self._wrapper.transport
        if transport is not None and not transport.is_closing():
            transport.close()
        logger.warning(f"Exchange with {self.proxy_host}:{self.proxy_port} interrupted, connection dropped")

    async def close(self) -> None:
        """Flush pending writes and release the connection. Safe to call more than once."""
        if self._state is SocksState.CLOSED:
            return
        self._state = SocksState.CLOSED
        with contextlib.suppress(TransportError):
            await self._wrapper.flush()
        self._channel.close()
        await self._wrapper.close()
        logger.info(f"Closed SOCKS5 connection to {self.proxy_host}:{self.proxy_port}")

    async def __aenter__(self) -> "SocksSocket":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


async def create_socks_socket(endpoint: ProxyEndpoint, **kwargs) -> SocksSocket:
    """Wait for the proxy endpoint to be ready and open a socket to it."""
    await endpoint.wait_ready()
    return await SocksSocket.create(endpoint.host, endpoint.port, **kwargs)
