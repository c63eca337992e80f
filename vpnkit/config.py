"""Client configuration: server entries loaded from JSON and command-line options."""

from __future__ import annotations

import argparse
import ipaddress
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from vpnkit.logging import LogLevel, log_message


class ConfigError(ValueError):
    """Raised when a configuration is malformed or invalid."""


_REQUIRED_FIELDS = {
    "protocol": str,
    "server": str,
    "port": int,
    "login": str,
    "password": str,
    "use_udp": bool,
    "enable_dpi": bool,
    "enable_udp_over_tcp": bool,
}

_OPTIONAL_FIELDS = (
    "country",
    "city",
    "wireguard_private_key",
    "wireguard_peer_public_key",
    "dns_server",
    "proxy_type",
)


@dataclass
class ServerConfig:
    """One VPN server entry."""

    protocol: str = ""
    server: str = ""
    port: int = 0
    login: str = ""
    password: str = ""
    country: Optional[str] = None
    city: Optional[str] = None
    use_udp: bool = False
    enable_dpi: bool = False
    enable_udp_over_tcp: bool = False
    wireguard_private_key: Optional[str] = None
    wireguard_peer_public_key: Optional[str] = None
    dns_server: Optional[str] = None
    proxy_type: Optional[str] = None

    def socket_addr(self) -> tuple[str, int]:
        """Return the server address as a (host, port) pair."""
        try:
            ipaddress.ip_address(self.server)
        except ValueError:
            raise ValueError("Invalid socket address") from None
        if not 0 <= self.port <= 65535:
            raise ValueError("Invalid socket address")
        return (self.server, self.port)

    def validate(self) -> None:
        """Raise ConfigError unless the server is an IP and the port is usable."""
        try:
            ipaddress.ip_address(self.server)
        except ValueError:
            raise ConfigError(f"Invalid server IP: {self.server}") from None
        if self.port == 0 or self.port > 65535:
            raise ConfigError(f"Invalid port: {self.port}")

    @classmethod
    def _from_dict(cls, data: Any) -> "ServerConfig":
        if not isinstance(data, dict):
            raise ConfigError("Server entry must be an object")
        values: dict[str, Any] = {}
        for name, kind in _REQUIRED_FIELDS.items():
            if name not in data:
                raise ConfigError(f"Missing field: {name}")
            value = data[name]
            if kind is int and isinstance(value, bool) or not isinstance(value, kind):
                raise ConfigError(f"Invalid type for field: {name}")
            values[name] = value
        if not 0 <= values["port"] <= 65535:
            raise ConfigError(f"Invalid port: {values['port']}")
        for name in _OPTIONAL_FIELDS:
            value = data.get(name)
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"Invalid type for field: {name}")
            values[name] = value
        return cls(**values)


def _parse_log_level(value: Any) -> Optional[LogLevel]:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return LogLevel(value)
        except ValueError:
            raise ConfigError(f"Invalid log level: {value}") from None
    if isinstance(value, str):
        try:
            return LogLevel[value.upper()]
        except KeyError:
            raise ConfigError(f"Invalid log level: {value}") from None
    raise ConfigError(f"Invalid log level: {value!r}")


@dataclass
class Config:
    """The full client configuration."""

    servers: list[ServerConfig] = field(default_factory=list)
    default_server: Optional[int] = None
    log_level: Optional[LogLevel] = None

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike]) -> "Config":
        """Load and validate a configuration from a JSON file."""
        contents = Path(path).read_text(encoding="utf-8")
        try:
            data = json.loads(contents)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Failed to parse config JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError("Failed to parse config JSON: expected an object")

        servers_data = data.get("servers")
        if not isinstance(servers_data, list):
            raise ConfigError("Failed to parse config JSON: 'servers' must be a list")
        servers = [ServerConfig._from_dict(entry) for entry in servers_data]

        default_server = data.get("default_server")
        if default_server is not None and (
            isinstance(default_server, bool)
            or not isinstance(default_server, int)
            or default_server < 0
        ):
            raise ConfigError(f"Invalid default_server: {default_server!r}")

        config = cls(
            servers=servers,
            default_server=default_server,
            log_level=_parse_log_level(data.get("log_level")),
        )
        for server in config.servers:
            server.validate()

        log_message(LogLevel.INFO, f"Loaded configuration from {path}")
        return config

    def get_active_server(self) -> Optional[ServerConfig]:
        """Return the default server, else the first one, else None."""
        if self.default_server is not None and self.default_server < len(self.servers):
            return self.servers[self.default_server]
        return self.servers[0] if self.servers else None


def parse_cmd_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse the client's command-line options."""
    parser = argparse.ArgumentParser(
        prog="vpn-client", description="Cross-platform VPN client"
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1")
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        default="config.json",
        help="Sets a custom config file",
    )
    parser.add_argument(
        "-s", "--server", metavar="INDEX", type=int, help="Select server by index"
    )
    parser.add_argument("-d", "--dpi", action="store_true", help="Enable DPI bypass")
    parser.add_argument(
        "-u",
        "--udp-over-tcp",
        dest="udp_over_tcp",
        action="store_true",
        help="Enable UDP over TCP",
    )
    return parser.parse_args(argv)