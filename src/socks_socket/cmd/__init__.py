"""Command line interface modules.

This package provides the command-line tools for:
- Opening SOCKS5 tunnels and probing remote servers
- Interactive sessions through a tunnel
- Waiting for the local proxy endpoint
- Error reporting and logging

The command modules provide user-friendly interfaces to the core
client functionality.
"""
