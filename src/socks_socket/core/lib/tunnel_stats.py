"""Statistics tracking for a single SOCKS5 tunnel.

This module tracks per-connection counters for the client:
- Bytes written to the proxy
- Bytes received from the proxy
- Replies consumed by commands
- Connection age

The counters are updated from the event loop thread only, so no locking is needed.

Example:
    stats = TunnelStats()
    stats.record_sent(3)
    stats.record_received(2)
    print(stats.total_bytes)
"""

import time
from datetime import UTC, datetime


class TunnelStats:
    """Byte and reply counters for one SOCKS5 connection."""

    def __init__(self) -> None:
        """Initialize tunnel statistics with zeroed counters.

        Records the wall-clock start time with timezone awareness and a
        monotonic reference for elapsed time.
        """
        self.bytes_sent = 0
        self.bytes_received = 0
        self.replies = 0
        self.start_time = datetime.now(tz=UTC)
        self._started = time.monotonic()

    def record_sent(self, count: int) -> None:
        """Add bytes handed to the transport."""
        self.bytes_sent += count

    def record_received(self, count: int) -> None:
        """Add bytes consumed from the response channel."""
        self.bytes_received += count
        self.replies += 1

    @property
    def total_bytes(self) -> int:
        return self.bytes_sent + self.bytes_received

    @property
    def elapsed(self) -> float:
        """Seconds since the connection was created."""
        return time.monotonic() - self._started
