"""Core SOCKS5 client implementation.

This package contains the core components of the client:
- Protocol engine (SOCKS5 negotiation and CONNECT)
- Hot-swappable transport and response channel
- TLS upgrade policy
- Proxy endpoint handling
- Configuration and exception handling

The core package provides all the protocol functionality, while keeping the
implementation details separate from the command-line interface.
"""
