"""Command-line interface for the SOCKS5 client.

This module provides the main command-line interface, handling:
- Command-line argument parsing
- Settings resolution (config file, environment, options)
- Logging setup
- Error reporting and exit codes

The CLI is built using Typer and provides commands for:
- Opening a tunnel and probing the remote server
- Interactive line-based sessions through a tunnel
- Waiting for the local proxy endpoint to come up

Example:
    # Run from command line:
    $ python -m socks_socket connect electrum.example.org 50002 --tls --verify tofu --features
"""

import asyncio
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console

from socks_socket import __version__
from socks_socket.cmd.session import run_probe, run_session, run_shell
from socks_socket.core.config import ClientSettings, load_settings
from socks_socket.core.exceptions import ProxyError
from socks_socket.core.lib.tls import VerifyMode
from socks_socket.core.utils.log_config import setup_logging

console = Console()
app = typer.Typer(help="SOCKS5 client for tunneling through a local Tor proxy")


def _resolve_settings(
    config: Path | None,
    proxy_host: str | None,
    proxy_port: int | None,
    tls: bool | None,
    verify: VerifyMode | None,
) -> ClientSettings:
    overrides = {
        "proxy_host": proxy_host,
        "proxy_port": proxy_port,
        "ssl_enabled": tls,
        "verify_mode": verify,
    }
    try:
        return load_settings(config, **{k: v for k, v in overrides.items() if v is not None})
    except (OSError, ValueError) as e:
        console.print(f"[red]Invalid configuration: {e}")
        raise typer.Exit(code=2) from e


def _run(coro) -> None:
    try:
        asyncio.run(coro)
    except ProxyError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        console.print(f"[red]Error: {e}")
        raise typer.Exit(code=1) from e
    except TimeoutError as e:
        console.print("[red]Error: timed out")
        raise typer.Exit(code=1) from e
    except KeyboardInterrupt:
        logger.info("Interrupted")


@app.callback(invoke_without_command=True)
def version_callback():
    """Show version information."""
    console.print(f"[cyan]SOCKS Socket v{__version__}[/cyan]")


@app.command(name="connect")
def connect(
    domain: str = typer.Argument(..., help="Destination host name (resolved by the proxy)"),
    port: int = typer.Argument(..., help="Destination port"),
    proxy_host: str | None = typer.Option(None, "--proxy-host", help="SOCKS5 proxy host"),
    proxy_port: int | None = typer.Option(None, "--proxy-port", help="SOCKS5 proxy port"),
    tls: bool | None = typer.Option(None, "--tls/--no-tls", help="Upgrade the tunnel to TLS"),
    verify: VerifyMode | None = typer.Option(None, "--verify", help="Certificate validation policy"),
    features: bool = typer.Option(False, "--features", help="Send a server.features request"),
    timeout: float | None = typer.Option(None, "--timeout", help="Give up after this many seconds"),
    config: Path | None = typer.Option(None, "--config", help="TOML config file"),
    debug: bool = typer.Option(default=False, help="Enable debug logging"),
):
    """Open a tunnel to DOMAIN:PORT and print a session summary."""
    setup_logging(debug=debug)
    settings = _resolve_settings(config, proxy_host, proxy_port, tls, verify)
    logger.info(f"Connecting to {domain}:{port} via {settings.proxy_host}:{settings.proxy_port}")
    _run(run_session(settings, domain, port, features=features, timeout=timeout))


@app.command(name="shell")
def shell(
    domain: str = typer.Argument(..., help="Destination host name (resolved by the proxy)"),
    port: int = typer.Argument(..., help="Destination port"),
    proxy_host: str | None = typer.Option(None, "--proxy-host", help="SOCKS5 proxy host"),
    proxy_port: int | None = typer.Option(None, "--proxy-port", help="SOCKS5 proxy port"),
    tls: bool | None = typer.Option(None, "--tls/--no-tls", help="Upgrade the tunnel to TLS"),
    verify: VerifyMode | None = typer.Option(None, "--verify", help="Certificate validation policy"),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds to wait for each reply"),
    config: Path | None = typer.Option(None, "--config", help="TOML config file"),
    debug: bool = typer.Option(default=False, help="Enable debug logging"),
):
    """Send lines through a tunnel to DOMAIN:PORT, printing one reply per line."""
    setup_logging(debug=debug)
    settings = _resolve_settings(config, proxy_host, proxy_port, tls, verify)
    _run(run_shell(settings, domain, port, timeout=timeout))


@app.command(name="probe")
def probe(
    proxy_host: str | None = typer.Option(None, "--proxy-host", help="SOCKS5 proxy host"),
    proxy_port: int | None = typer.Option(None, "--proxy-port", help="SOCKS5 proxy port"),
    attempts: int = typer.Option(10, "--attempts", min=1, help="Connection attempts"),
    delay: float = typer.Option(0.5, "--delay", help="Seconds between attempts"),
    config: Path | None = typer.Option(None, "--config", help="TOML config file"),
    debug: bool = typer.Option(default=False, help="Enable debug logging"),
):
    """Wait until the local SOCKS5 proxy accepts connections."""
    setup_logging(debug=debug)
    settings = _resolve_settings(config, proxy_host, proxy_port, None, None)
    _run(run_probe(settings.proxy_host, settings.proxy_port, attempts, delay))


if __name__ == "__main__":
    app()
