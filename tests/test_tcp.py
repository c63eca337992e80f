import asyncio
import contextlib
import socket

import pytest

from vpnkit.tcp import TcpConnection


@contextlib.asynccontextmanager
async def _serve(handler):
    server = await asyncio.start_server(handler, "127.0.0.1", 0)
    host, port = server.sockets[0].getsockname()[:2]
    try:
        yield (host, port)
    finally:
        server.close()
        await server.wait_closed()


async def _hello_world(reader, writer):
    await reader.readexactly(5)
    writer.write(b"world")
    await writer.drain()
    writer.close()


async def _silent(reader, writer):
    await reader.read()
    writer.close()


@pytest.mark.asyncio
async def test_tcp_connection():
    async with _serve(_hello_world) as addr:
        conn = await TcpConnection.connect(addr, 1.0)
        sent = await conn.send(b"hello")
        response = await conn.receive(5)
        await conn.close()
    assert sent == 5
    assert response == b"world"


@pytest.mark.asyncio
async def test_peer_addr_matches_server():
    async with _serve(_silent) as addr:
        async with await TcpConnection.connect(addr, 1.0) as conn:
            peer = conn.peer_addr
    assert peer == addr


@pytest.mark.asyncio
async def test_receive_returns_empty_after_peer_closes():
    async with _serve(_hello_world) as addr:
        conn = await TcpConnection.connect(addr, 1.0)
        await conn.send(b"hello")
        first = await conn.receive(5)
        second = await conn.receive(5)
        await conn.close()
    assert first == b"world"
    assert second == b""


@pytest.mark.asyncio
async def test_receive_times_out():
    async with _serve(_silent) as addr:
        conn = await TcpConnection.connect(addr, 0.1)
        try:
            with pytest.raises(TimeoutError, match="Read timed out"):
                await conn.receive(5)
        finally:
            await conn.close()


@pytest.mark.asyncio
async def test_connect_refused():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(ConnectionError, match="Failed to connect"):
        await TcpConnection.connect(("127.0.0.1", port), 1.0)