"""A connected UDP socket with per-operation timeouts."""

from __future__ import annotations

import asyncio
from typing import Optional, Union

from vpnkit.logging import LogLevel, log_message

_Item = Union[bytes, Exception, None]


class _Protocol(asyncio.DatagramProtocol):
    def __init__(self) -> None:
        self.queue: asyncio.Queue[_Item] = asyncio.Queue()

    def datagram_received(self, data: bytes, addr) -> None:
        self.queue.put_nowait(data)

    def error_received(self, exc: Exception) -> None:
        self.queue.put_nowait(exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        self.queue.put_nowait(None)


class UdpConnection:
    """A UDP socket bound locally and connected to a single peer."""

    def __init__(
        self,
        transport: asyncio.DatagramTransport,
        protocol: _Protocol,
        peer_addr: tuple[str, int],
        timeout: float,
    ) -> None:
        self._transport = transport
        self._protocol = protocol
        self.peer_addr = peer_addr
        self.timeout = timeout

    @classmethod
    async def bind(
        cls,
        local_addr: tuple[str, int],
        peer_addr: tuple[str, int],
        timeout: float,
    ) -> "UdpConnection":
        """Bind to local_addr and connect the socket to peer_addr."""
        log_message(LogLevel.INFO, f"Binding UDP socket to {local_addr[0]}:{local_addr[1]}")
        loop = asyncio.get_running_loop()
        try:
            transport, protocol = await loop.create_datagram_endpoint(
                _Protocol,
                local_addr=(local_addr[0], local_addr[1]),
                remote_addr=(peer_addr[0], peer_addr[1]),
            )
        except OSError as exc:
            raise ConnectionError(f"Failed to bind UDP socket: {exc}") from exc
        log_message(LogLevel.INFO, f"UDP socket bound to {local_addr[0]}:{local_addr[1]}")
        return cls(transport, protocol, (peer_addr[0], peer_addr[1]), timeout)

    async def send_to(self, data: bytes) -> int:
        """Send one datagram to the peer and return its length."""
        payload = bytes(data)
        log_message(
            LogLevel.DEBUG,
            f"Sending {len(payload)} bytes to {self.peer_addr[0]}:{self.peer_addr[1]}",
        )
        if self._transport.is_closing():
            raise ConnectionError("Failed to send data: socket is closed")
        try:
            self._transport.sendto(payload)
        except OSError as exc:
            raise ConnectionError(f"Failed to send data: {exc}") from exc
        return len(payload)

    async def recv_from(self, buffer_size: int) -> bytes:
        """Receive one datagram, truncated to buffer_size bytes."""
        try:
            item = await asyncio.wait_for(self._protocol.queue.get(), self.timeout)
        except asyncio.TimeoutError:
            raise TimeoutError("Receive timed out") from None
        if item is None:
            self._protocol.queue.put_nowait(None)
            raise ConnectionError("Failed to receive data: socket is closed")
        if isinstance(item, Exception):
            raise ConnectionError(f"Failed to receive data: {item}") from item
        data = item[:buffer_size]
        log_message(
            LogLevel.DEBUG,
            f"Received {len(data)} bytes from {self.peer_addr[0]}:{self.peer_addr[1]}",
        )
        return data

    async def close(self) -> None:
        """Close the socket."""
        log_message(LogLevel.INFO, "Closing UDP socket")
        self._transport.close()
        await asyncio.sleep(0)

    def local_addr(self) -> tuple[str, int]:
        """The address the socket is bound to."""
        sockname = self._transport.get_extra_info("sockname")
        if sockname is None:
            raise ConnectionError("Failed to get local address")
        return (sockname[0], sockname[1])

    async def __aenter__(self) -> "UdpConnection":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()