"""Shared constants, a minimal server address and identifier helpers."""

from __future__ import annotations

import ipaddress
import uuid
from dataclasses import dataclass

BUFFER_SIZE = 1024
MAX_IP_LENGTH = 16


@dataclass(frozen=True)
class ServerConfig:
    """An IP address and port of a server."""

    ip: str
    port: int

    def __post_init__(self) -> None:
        try:
            ipaddress.ip_address(self.ip)
        except ValueError:
            raise ValueError("Invalid IP address") from None

    def socket_addr(self) -> tuple[str, int]:
        """Return the address as a (host, port) pair."""
        return (self.ip, self.port)


def generate_uuid() -> str:
    """Return a random version 4 UUID in hyphenated form."""
    return str(uuid.uuid4())