"""Building blocks for a VPN client: config, logging, encryption, key exchange, kill switch and transports."""

__version__ = "0.1.0"