# vpnkit

Building blocks for a VPN client, for use from your own Python code:

- `vpnkit.config` – load and validate a JSON file describing one or more servers, and
  parse the usual client command-line options.
- `vpnkit.logging` – levelled logging to an append-only file and/or a coloured console,
  plus size-based log rotation.
- `vpnkit.encryption` – AES-256-GCM or ChaCha20-Poly1305 contexts, with a process-wide
  default context, key rotation and wiping of key material.
- `vpnkit.pfs` – ephemeral ECDH over P-256 with DER-encoded public keys.
- `vpnkit.killswitch` – block outbound traffic except through the VPN interface, using
  `iptables`/`ip6tables` on Linux or Windows Firewall rules through PowerShell on Windows.
- `vpnkit.tcp`, `vpnkit.udp` – asyncio TCP and UDP connections with per-operation timeouts.
- `vpnkit.utils`, `vpnkit.common` – IP validation, random strings and IVs, file and time
  helpers, UUIDs and a minimal `ServerConfig(ip, port)`.

Requires Python 3.10 or later. The only runtime dependency is `cryptography`.

## What it does not do

vpnkit is a library of parts. It has no command to run and no client that puts the parts
together: it does not set up a tunnel, does not speak WireGuard, Shadowsocks or any other
VPN protocol, and does not route traffic. `parse_cmd_args` parses options for a program
you write yourself.

## Configuration

```json
{
  "servers": [
    {
      "protocol": "wireguard",
      "server": "192.0.2.10",
      "port": 51820,
      "login": "user",
      "password": "password",
      "country": null,
      "city": null,
      "use_udp": true,
      "enable_dpi": false,
      "enable_udp_over_tcp": false,
      "wireguard_private_key": null,
      "wireguard_peer_public_key": null,
      "dns_server": null,
      "proxy_type": null
    }
  ],
  "default_server": 0,
  "log_level": "info"
}
```

`protocol`, `server`, `port`, `login`, `password`, `use_udp`, `enable_dpi` and
`enable_udp_over_tcp` are required in every server entry; the other fields may be left
out or `null`. `default_server` and `log_level` are optional; `log_level` is a level name
(any case) or its number.

```python
from vpnkit.config import Config

config = Config.from_file("config.json")
server = config.get_active_server()   # default_server if in range, else the first, else None
print(server.socket_addr())           # ("192.0.2.10", 51820)
```

`Config.from_file` raises `ConfigError` (a `ValueError`) for malformed JSON, missing or
mistyped fields, and for any server whose address is not an IP or whose port is 0 or
above 65535. `ServerConfig.validate()` performs the same server check on its own.

`parse_cmd_args(argv)` returns an `argparse.Namespace` with `config` (default
`config.json`), `server` (an integer index or `None`), `dpi` and `udp_over_tcp`.

## Logging

```python
from vpnkit.logging import LogLevel, init_logging, log_message, close_logging

init_logging("vpn.log", LogLevel.INFO, True)
log_message(LogLevel.ERROR, "tunnel down")
close_logging()
```

Each line carries a timestamp and the caller's file, line and function. Messages whose
level is below the configured level are dropped; the default level is `ERROR`.
Console output goes to standard output, coloured by level. `flush_logging()` flushes the
file, and `rotate_logs(path, max_size)` renames a file that has reached `max_size` bytes
to `<path>.<epoch seconds>` and returns `True` when it did. `LogLevel.from_int` maps
unknown numbers to `ERROR`.

## Encryption

```python
from vpnkit.encryption import (
    CipherType, initialize_encryption, encrypt_data, decrypt_data,
    rotate_encryption_keys, secure_clear_memory,
)

initialize_encryption(CipherType.AES256GCM)
ciphertext = encrypt_data(b"payload")
assert decrypt_data(ciphertext) == b"payload"
rotate_encryption_keys()
secure_clear_memory()
```

A context holds a random 32-byte key and a 12-byte IV; the authentication tag is appended
to the ciphertext. The same IV is used for every message until `rotate_keys()` (or
`rotate_encryption_keys()`) replaces key and IV. Failed authentication raises
`EncryptionError`; using the global functions before `initialize_encryption` raises
`EncryptionNotInitializedError`. `get_encryption_key()`, `get_encryption_iv()`,
`set_encryption_key()`, `set_encryption_iv()` and `is_encryption_initialized()` work on
the global context; `EncryptionContext` offers the same through its `key` and `iv`
properties, and `clear()` overwrites them with zeros.

## Key exchange

```python
from vpnkit.pfs import PFSContext

alice, bob = PFSContext(), PFSContext()
shared = alice.compute_shared_secret(bob.public_key_der())
assert shared == bob.compute_shared_secret(alice.public_key_der())
assert alice.shared_secret == shared
alice.rotate_keys()                   # new key pair, stored secret forgotten
```

## Kill switch

Changing firewall rules needs administrator rights.

```python
from vpnkit.killswitch import create_kill_switch

with create_kill_switch("tun0"):
    ...  # outbound traffic leaves only through tun0 (and loopback on Linux)
```

`create_kill_switch` returns a `LinuxKillSwitch` or `WindowsKillSwitch` for the running
platform and raises `KillSwitchError` elsewhere. Both offer `enable()`, `disable()` and an
`enabled` property, and disable themselves when the `with` block ends. On Linux,
`enable()` saves the output of `iptables-save` and `disable()` restores it with
`iptables-restore`. Interface names are checked when the object is created; a failing
firewall command raises `KillSwitchError`.

## Transports

```python
import asyncio
from vpnkit.tcp import TcpConnection
from vpnkit.udp import UdpConnection

async def main():
    async with await TcpConnection.connect(("127.0.0.1", 8080), 1.0) as conn:
        await conn.send(b"hello")
        print(await conn.receive(1024))

    async with await UdpConnection.bind(("127.0.0.1", 0), ("127.0.0.1", 8081), 1.0) as udp:
        await udp.send_to(b"hello")
        print(udp.local_addr(), await udp.recv_from(1024))

asyncio.run(main())
```

Timeouts are in seconds and raise `TimeoutError`; socket failures raise
`ConnectionError`. `receive` returns an empty result once the peer has closed;
`recv_from` returns one datagram cut to `buffer_size` bytes.

## Tests

The test suite uses pytest and pytest-asyncio, available through the `test` extra.