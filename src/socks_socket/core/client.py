"""Public entry point for the SOCKS5 client.

This module exposes the client engine and the pieces needed to configure it,
hiding the layout of the underlying library:
- SocksSocket, the connection and its commands
- TLS policy types for the optional upgrade
- The proxy endpoint handed over by the proxy-process manager

Example:
    from socks_socket.core.client import SocksSocket

    sock = await SocksSocket.create("127.0.0.1", 9050)
    await sock.connect()
    await sock.connect_to("example.com", 80)

Attributes:
    __all__ (list): List of public components exposed by this module
"""

from .endpoint import ProxyEndpoint, wait_for_endpoint
from .lib import PinStore, SocksSocket, SocksState, TLSPolicy, VerifyMode, create_socks_socket

__all__ = [
    "create_socks_socket",
    "PinStore",
    "ProxyEndpoint",
    "SocksSocket",
    "SocksState",
    "TLSPolicy",
    "VerifyMode",
    "wait_for_endpoint",
]
