"""Client configuration.

Settings are resolved in this order, later sources winning:
- Built-in defaults (Tor's usual SOCKS port on localhost, strict TLS)
- The ``[client]`` table of a TOML file (``~/.socks-socket/config.toml`` by default)
- ``SOCKS_SOCKET_*`` environment variables
- Command-line options (passed to ``load_settings`` as overrides)

Example:
    # ~/.socks-socket/config.toml
    [client]
    proxy_port = 9150
    verify_mode = "tofu"
"""

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from socks_socket.core.lib.tls import PinStore, TLSPolicy, VerifyMode

CONFIG_DIR = Path.home() / ".socks-socket"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.toml"
ENV_PREFIX = "SOCKS_SOCKET_"

# File read by the TOML source while load_settings() runs
_config_path: ContextVar[Path | None] = ContextVar("config_path", default=None)


class ClientTableSource(TomlConfigSettingsSource):
    """TOML settings source restricted to the ``[client]`` table."""

    def _read_file(self, file_path: Path) -> dict[str, Any]:
        return super()._read_file(file_path).get("client", {})


class ClientSettings(BaseSettings):
    """Resolved client settings.

    Attributes:
        proxy_host: Host of the local SOCKS5 proxy
        proxy_port: Port of the local SOCKS5 proxy
        ssl_enabled: Upgrade tunnels to TLS
        verify_mode: Certificate policy for the upgrade
            (env: SOCKS_SOCKET_VERIFY or SOCKS_SOCKET_VERIFY_MODE)
        pin_file: Where TOFU pins are stored
        cafile: Extra CA bundle for strict verification
    """

    proxy_host: str = "127.0.0.1"
    proxy_port: int = 9050
    ssl_enabled: bool = False
    verify_mode: VerifyMode = Field(
        default=VerifyMode.STRICT,
        validation_alias=AliasChoices("socks_socket_verify", "socks_socket_verify_mode"),
    )
    pin_file: Path = Field(default_factory=lambda: CONFIG_DIR / "pins.json")
    cafile: Path | None = None

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        case_sensitive=False,
        populate_by_name=True,
        extra="forbid",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_file = _config_path.get() or DEFAULT_CONFIG_PATH
        return init_settings, env_settings, ClientTableSource(settings_cls, toml_file=toml_file)

    @field_validator("proxy_port")
    @classmethod
    def _port_in_range(cls, v: int) -> int:
        if not 0 < v <= 0xFFFF:
            raise ValueError(f"proxy_port must be between 1 and 65535, got {v}")
        return v

    @field_validator("verify_mode", mode="before")
    @classmethod
    def _parse_verify_mode(cls, v: Any) -> Any:
        """Accept ``STRICT``, ``tofu`` and friends from files and the environment."""
        if isinstance(v, str):
            return VerifyMode(v.strip().lower())
        return v

    @field_validator("pin_file", "cafile")
    @classmethod
    def _expand_home(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None

    def tls_policy(self) -> TLSPolicy:
        pin_store = PinStore(self.pin_file) if self.verify_mode is VerifyMode.TOFU else PinStore()
        return TLSPolicy(mode=self.verify_mode, cafile=self.cafile, pin_store=pin_store)


def load_settings(path: Path | None = None, **overrides: Any) -> ClientSettings:
    """Load settings from a TOML file and the environment.

    Args:
        path: Config file; defaults to ``~/.socks-socket/config.toml``.
            A missing default file means defaults are used.
        **overrides: Values that win over every other source

    Returns:
        ClientSettings: The resolved settings

    Raises:
        FileNotFoundError: If an explicitly given file does not exist
        pydantic.ValidationError: If a setting is unknown or invalid
    """
    config_path = path or DEFAULT_CONFIG_PATH
    if path is not None and not path.exists():
        raise FileNotFoundError(f"Config file {path} does not exist")

    token = _config_path.set(config_path)
    try:
        settings = ClientSettings(**overrides)
    finally:
        _config_path.reset(token)

    if config_path.exists():
        logger.debug(f"Loaded settings from {config_path}")
    return settings
