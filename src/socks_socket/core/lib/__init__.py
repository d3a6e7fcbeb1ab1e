"""Core SOCKS5 client library components."""

from .channel import ChannelEvent, ResponseChannel
from .socks_client import SocksSocket, SocksState, create_socks_socket
from .tls import PinStore, TLSPolicy, VerifyMode
from .transport import ChannelProtocol, SocketWrapper
from .tunnel_stats import TunnelStats

__all__ = [
    "ChannelEvent",
    "ChannelProtocol",
    "create_socks_socket",
    "PinStore",
    "ResponseChannel",
    "SocketWrapper",
    "SocksSocket",
    "SocksState",
    "TLSPolicy",
    "TunnelStats",
    "VerifyMode",
]
