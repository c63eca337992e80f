"""A TCP client connection with per-operation timeouts."""

from __future__ import annotations

import asyncio
import socket
from typing import Optional

from vpnkit.logging import LogLevel, log_message


class TcpConnection:
    """An open TCP stream to a peer; every operation is bounded by a timeout."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        peer_addr: tuple[str, int],
        timeout: float,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self.peer_addr = peer_addr
        self.timeout = timeout

    @classmethod
    async def connect(cls, addr: tuple[str, int], timeout: float) -> "TcpConnection":
        """Open a connection to addr, failing if it takes longer than timeout seconds."""
        host, port = addr[0], addr[1]
        log_message(LogLevel.INFO, f"Connecting to {host}:{port}")
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout
            )
        except asyncio.TimeoutError:
            raise TimeoutError("Connection timed out") from None
        except OSError as exc:
            raise ConnectionError(f"Failed to connect: {exc}") from exc

        sock: Optional[socket.socket] = writer.get_extra_info("socket")
        if sock is not None:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        peer = writer.get_extra_info("peername")
        peer_addr = (peer[0], peer[1])

        log_message(LogLevel.INFO, f"Connected to {peer_addr[0]}:{peer_addr[1]}")
        return cls(reader, writer, peer_addr, timeout)

    async def send(self, data: bytes) -> int:
        """Write data to the peer and return the number of bytes sent."""
        payload = bytes(data)
        log_message(
            LogLevel.DEBUG,
            f"Sending {len(payload)} bytes to {self.peer_addr[0]}:{self.peer_addr[1]}",
        )
        try:
            self._writer.write(payload)
            await asyncio.wait_for(self._writer.drain(), self.timeout)
        except asyncio.TimeoutError:
            raise TimeoutError("Write timed out") from None
        except OSError as exc:
            raise ConnectionError(f"Failed to write data: {exc}") from exc
        return len(payload)

    async def receive(self, buffer_size: int) -> bytes:
        """Read at most buffer_size bytes; an empty result means the peer closed."""
        try:
            data = await asyncio.wait_for(self._reader.read(buffer_size), self.timeout)
        except asyncio.TimeoutError:
            raise TimeoutError("Read timed out") from None
        except OSError as exc:
            raise ConnectionError(f"Failed to read data: {exc}") from exc
        log_message(
            LogLevel.DEBUG,
            f"Received {len(data)} bytes from {self.peer_addr[0]}:{self.peer_addr[1]}",
        )
        return data

    async def close(self) -> None:
        """Shut the connection down."""
        log_message(
            LogLevel.INFO,
            f"Closing connection to {self.peer_addr[0]}:{self.peer_addr[1]}",
        )
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError):
            pass

    async def __aenter__(self) -> "TcpConnection":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()