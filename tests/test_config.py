"""Settings resolution from defaults, TOML, environment and overrides."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from socks_socket.core import config
from socks_socket.core.config import ClientSettings, load_settings
from socks_socket.core.lib.tls import VerifyMode

ENV_NAMES = ("PROXY_HOST", "PROXY_PORT", "SSL_ENABLED", "VERIFY_MODE", "VERIFY", "PIN_FILE", "CAFILE")


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point the default config location at an empty temp dir and clear env overrides."""
    monkeypatch.setattr(config, "DEFAULT_CONFIG_PATH", tmp_path / "missing.toml")
    for name in ENV_NAMES:
        monkeypatch.delenv(f"SOCKS_SOCKET_{name}", raising=False)


def write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(body)
    return path


def test_defaults_when_no_file() -> None:
    settings = load_settings()
    assert settings.proxy_host == "127.0.0.1"
    assert settings.proxy_port == 9050
    assert settings.ssl_enabled is False
    assert settings.verify_mode is VerifyMode.STRICT
    assert settings.pin_file == config.CONFIG_DIR / "pins.json"


def test_toml_client_table(tmp_path: Path) -> None:
    path = write_config(
        tmp_path,
        '[client]\nproxy_host = "10.0.0.2"\nproxy_port = 9150\nssl_enabled = true\n'
        'verify_mode = "tofu"\npin_file = "~/pins.json"\n',
    )

    settings = load_settings(path)

    assert settings.proxy_host == "10.0.0.2"
    assert settings.proxy_port == 9150
    assert settings.ssl_enabled is True
    assert settings.verify_mode is VerifyMode.TOFU
    assert settings.pin_file == Path.home() / "pins.json"


def test_other_tables_are_ignored(tmp_path: Path) -> None:
    path = write_config(tmp_path, '[server]\nproxy_port = 1\n\n[client]\nproxy_host = "10.0.0.3"\n')

    settings = load_settings(path)

    assert settings.proxy_host == "10.0.0.3"
    assert settings.proxy_port == 9050


def test_default_config_path_is_read(tmp_path: Path, monkeypatch) -> None:
    path = write_config(tmp_path, "[client]\nproxy_port = 9150\n")
    monkeypatch.setattr(config, "DEFAULT_CONFIG_PATH", path)

    assert load_settings().proxy_port == 9150


def test_environment_overrides_file(tmp_path: Path, monkeypatch) -> None:
    path = write_config(tmp_path, '[client]\nproxy_port = 9150\nverify_mode = "tofu"\n')
    monkeypatch.setenv("SOCKS_SOCKET_PROXY_PORT", "9250")
    monkeypatch.setenv("SOCKS_SOCKET_VERIFY", "insecure")

    settings = load_settings(path)

    assert settings.proxy_port == 9250
    assert settings.verify_mode is VerifyMode.INSECURE


def test_verify_mode_env_name_and_case(monkeypatch) -> None:
    monkeypatch.setenv("SOCKS_SOCKET_VERIFY_MODE", "TOFU")

    assert load_settings().verify_mode is VerifyMode.TOFU


def test_empty_environment_values_are_ignored(monkeypatch) -> None:
    monkeypatch.setenv("SOCKS_SOCKET_PROXY_HOST", "")

    assert load_settings().proxy_host == "127.0.0.1"


def test_overrides_win_over_environment(monkeypatch) -> None:
    monkeypatch.setenv("SOCKS_SOCKET_PROXY_PORT", "9250")

    settings = load_settings(proxy_port=9350, verify_mode=VerifyMode.INSECURE)

    assert settings.proxy_port == 9350
    assert settings.verify_mode is VerifyMode.INSECURE


def test_missing_explicit_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "nope.toml")


@pytest.mark.parametrize(
    "body",
    ["[client]\nproxy_port = 70000\n", '[client]\nverify_mode = "sometimes"\n', '[client]\ncolour = "red"\n'],
)
def test_invalid_settings_raise_validation_error(tmp_path: Path, body: str) -> None:
    path = write_config(tmp_path, body)

    with pytest.raises(ValidationError):
        load_settings(path)


def test_invalid_environment_value(monkeypatch) -> None:
    monkeypatch.setenv("SOCKS_SOCKET_PROXY_PORT", "0")

    with pytest.raises(ValueError, match="between 1 and 65535"):
        load_settings()


def test_tls_policy_uses_pin_file_only_for_tofu(tmp_path: Path) -> None:
    pin_file = tmp_path / "pins.json"
    pin_file.write_text('{"example.com": "AA:BB"}')

    tofu = ClientSettings(verify_mode=VerifyMode.TOFU, pin_file=pin_file).tls_policy()
    strict = ClientSettings(pin_file=pin_file).tls_policy()

    assert tofu.mode is VerifyMode.TOFU
    assert tofu.pin_store.get("example.com") == "AA:BB"
    assert strict.mode is VerifyMode.STRICT
    assert len(strict.pin_store) == 0
