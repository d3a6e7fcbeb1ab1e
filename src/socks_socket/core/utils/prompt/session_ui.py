"""Session summary display for SOCKS5 tunnels."""

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from socks_socket.core.lib.socks_client import SocksSocket, SocksState
from socks_socket.core.utils.utils import format_bytes, format_duration

STATE_STYLES = {
    SocksState.FRESH: "yellow",
    SocksState.NEGOTIATED: "yellow",
    SocksState.TUNNELED: "green",
    SocksState.ENCRYPTED: "bold green",
    SocksState.CLOSED: "red",
}


class SessionUI:
    """Render the state and counters of one SocksSocket."""

    def __init__(self, sock: SocksSocket) -> None:
        self.sock = sock

    def _generate_table(self) -> Table:
        """Generate session statistics table."""
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value", style="green", no_wrap=True)

        sock = self.sock
        stats = sock.stats
        state = sock.state
        table.add_row("Proxy", f"{sock.proxy_host}:{sock.proxy_port}")
        if sock.target:
            table.add_row("Target", f"{sock.target[0]}:{sock.target[1]}")
        table.add_row("State", Text(state.value, style=STATE_STYLES[state]))
        if sock.ssl_enabled:
            table.add_row("TLS verification", sock.tls_policy.mode.value)
        table.add_row("Sent", format_bytes(stats.bytes_sent))
        table.add_row("Received", format_bytes(stats.bytes_received))
        table.add_row("Replies", str(stats.replies))
        table.add_row("Duration", format_duration(stats.elapsed))
        return table

    def render(self) -> Panel:
        """Generate the summary panel."""
        title = Text("SOCKS5 Session", style="bold cyan")
        return Panel(self._generate_table(), title=title, border_style="blue", padding=(1, 2))
