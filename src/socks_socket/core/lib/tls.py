"""TLS upgrade policy for tunneled connections.

Three certificate policies are supported:
- STRICT: verify the chain against the trust store and check the host name (default)
- TOFU: accept the first certificate seen for a host, then require the same one
- INSECURE: accept anything (explicit opt-in, logged on every upgrade)

Pins for TOFU are SHA-256 fingerprints of the DER certificate, optionally
persisted as JSON.

Example:
    policy = TLSPolicy(mode=VerifyMode.TOFU, pin_store=PinStore(Path("pins.json")))
    context = policy.create_context()
"""

import asyncio
import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from loguru import logger

from socks_socket.core.exceptions import CertificateMismatchError, TransportError, UnsupportedPlatformError

try:
    import ssl
except ImportError:  # interpreter built without OpenSSL
    ssl = None


class VerifyMode(str, Enum):
    """Certificate validation policy for the TLS upgrade."""

    STRICT = "strict"
    TOFU = "tofu"
    INSECURE = "insecure"


def ensure_tls_support(loop: asyncio.AbstractEventLoop | None = None) -> None:
    """Fail fast when TLS upgrades are impossible in this environment.

    Raises:
        UnsupportedPlatformError: If ssl is unavailable or the loop cannot start TLS
    """
    if ssl is None:
        raise UnsupportedPlatformError("This Python build has no ssl module")
    if loop is not None and not hasattr(loop, "start_tls"):
        raise UnsupportedPlatformError(f"{type(loop).__name__} does not support start_tls")


def fingerprint(der_cert: bytes) -> str:
    """Return the colon-separated SHA-256 fingerprint of a DER certificate."""
    digest = hashlib.sha256(der_cert).hexdigest().upper()
    return ":".join(digest[i : i + 2] for i in range(0, len(digest), 2))


class PinStore:
    """Host to certificate fingerprint pins, kept in memory and optionally on disk."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._pins: dict[str, str] = {}
        if path is not None and path.exists():
            with path.open(encoding="utf-8") as f:
                self._pins = json.load(f)
            logger.debug(f"Loaded {len(self._pins)} certificate pins from {path}")

    def get(self, host: str) -> str | None:
        return self._pins.get(host.lower())

    def pin(self, host: str, digest: str) -> None:
        self._pins[host.lower()] = digest
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json.dump(self._pins, f, indent=2, sort_keys=True)

    def verify(self, host: str, der_cert: bytes) -> None:
        """Pin the certificate on first use, otherwise compare it to the pin.

        Raises:
            CertificateMismatchError: If the host is pinned to another certificate
        """
        actual = fingerprint(der_cert)
        expected = self.get(host)
        if expected is None:
            logger.info(f"Pinning certificate for {host}: {actual}")
            self.pin(host, actual)
            return
        if expected != actual:
            raise CertificateMismatchError(host, expected, actual)

    def __len__(self) -> int:
        return len(self._pins)


@dataclass
class TLSPolicy:
    """How the tunneled stream is secured.

    Attributes:
        mode: Certificate validation policy
        cafile: Extra CA bundle for STRICT mode
        pin_store: Fingerprint store for TOFU mode (in-memory if not given)
    """

    mode: VerifyMode = VerifyMode.STRICT
    cafile: Path | None = None
    pin_store: PinStore = field(default_factory=PinStore)

    def create_context(self) -> "ssl.SSLContext":
        ensure_tls_support()
        context = ssl.create_default_context(cafile=str(self.cafile) if self.cafile else None)
        if self.mode is not VerifyMode.STRICT:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def check_peer(self, host: str, transport: asyncio.BaseTransport) -> None:
        """Apply post-handshake checks to the secured transport.

        Raises:
            CertificateMismatchError: If TOFU pinning fails
            TransportError: If TOFU is active and no peer certificate is available
        """
        if self.mode is VerifyMode.INSECURE:
            logger.warning(f"Certificate validation disabled for {host}, the tunnel is not authenticated")
            return
        if self.mode is VerifyMode.STRICT:
            return

        ssl_object = transport.get_extra_info("ssl_object")
        der_cert = ssl_object.getpeercert(binary_form=True) if ssl_object is not None else None
        if not der_cert:
            raise TransportError(f"No peer certificate presented by {host}")
        self.pin_store.verify(host, der_cert)
