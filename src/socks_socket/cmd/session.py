"""Tunnel session commands.

This module provides the async bodies behind the CLI commands:
- Opening a tunnel (negotiate, CONNECT, optional TLS upgrade)
- One-shot sessions with an optional server.features probe
- Interactive line-based sessions
- Waiting for the local proxy endpoint

Each command applies the caller's deadline with ``asyncio.timeout``; when it
expires the socket is force-closed so nothing keeps waiting on the proxy.

Example:
    settings = load_settings()
    asyncio.run(run_session(settings, "example.com", 80, timeout=30))
"""

import asyncio

from loguru import logger
from rich.console import Console

from socks_socket.core.client import ProxyEndpoint, SocksSocket, wait_for_endpoint
from socks_socket.core.config import ClientSettings
from socks_socket.core.utils.prompt import PromptHandler, SessionUI

console = Console()


async def open_tunnel(settings: ClientSettings, domain: str, port: int) -> SocksSocket:
    """Open a socket to the configured proxy and tunnel it to ``domain:port``."""
    sock = await SocksSocket.create(
        settings.proxy_host,
        settings.proxy_port,
        ssl_enabled=settings.ssl_enabled,
        tls_policy=settings.tls_policy(),
    )
    try:
        await sock.connect()
        await sock.connect_to(domain, port)
    except BaseException:
        await sock.close()
        raise
    return sock


async def run_session(
    settings: ClientSettings,
    domain: str,
    port: int,
    *,
    features: bool = False,
    timeout: float | None = None,
) -> SocksSocket:
    """Open a tunnel, optionally probe server features, then close it."""
    async with asyncio.timeout(timeout):
        sock = await open_tunnel(settings, domain, port)
        console.print(f"[green]Tunnel open to {domain}:{port} via {settings.proxy_host}:{settings.proxy_port}")
        try:
            if features:
                reply = await sock.send_server_features_command()
                console.print(reply.rstrip(), markup=False)
        finally:
            await sock.close()

    console.print(SessionUI(sock).render())
    return sock


async def run_shell(
    settings: ClientSettings,
    domain: str,
    port: int,
    *,
    timeout: float | None = None,
) -> SocksSocket:
    """Send each entered line through the tunnel and print one reply per line."""
    async with asyncio.timeout(timeout):
        sock = await open_tunnel(settings, domain, port)

    console.print(f"[green]Tunnel open to {domain}:{port}. [yellow]Ctrl+D to exit.")
    prompt = PromptHandler(f"{domain}> ")
    try:
        while (line := await prompt.read_line()) is not None:
            if not line.strip():
                continue
            try:
                async with asyncio.timeout(timeout):
                    reply = await sock.request(f"{line}\n")
            except TimeoutError:
                logger.warning(f"No reply from {domain} within {timeout}s, closing session")
                console.print("[red]Timed out waiting for a reply")
                break
            console.print(reply.decode("utf-8", errors="replace").rstrip(), markup=False)
    finally:
        await sock.close()

    console.print(SessionUI(sock).render())
    return sock


async def run_probe(host: str, port: int, attempts: int, delay: float) -> ProxyEndpoint:
    """Wait until the local proxy endpoint accepts connections."""
    with console.status(f"Waiting for SOCKS5 proxy at {host}:{port}..."):
        endpoint = await wait_for_endpoint(host, port, attempts=attempts, delay=delay)
    console.print(f"[green]SOCKS5 proxy at {host}:{port} is accepting connections")
    return endpoint
