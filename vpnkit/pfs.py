"""Ephemeral ECDH key agreement on P-256 for perfect forward secrecy."""

from __future__ import annotations

import threading
from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec


class PFSContext:
    """An ephemeral P-256 key pair and the last shared secret derived with it."""

    def __init__(self) -> None:
        self._curve = ec.SECP256R1()
        self._local_key = ec.generate_private_key(self._curve)
        self._lock = threading.Lock()
        self._shared_secret: Optional[bytearray] = None

    def public_key_der(self) -> bytes:
        """The local public key as DER SubjectPublicKeyInfo."""
        return self._local_key.public_key().public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def compute_shared_secret(self, peer_der: bytes) -> bytes:
        """Derive and remember the shared secret with a peer's DER public key."""
        peer_key = serialization.load_der_public_key(bytes(peer_der))
        if not isinstance(peer_key, ec.EllipticCurvePublicKey):
            raise ValueError("Peer key is not an EC public key")
        derived = self._local_key.exchange(ec.ECDH(), peer_key)
        with self._lock:
            self._wipe_secret()
            self._shared_secret = bytearray(derived)
        return derived

    @property
    def shared_secret(self) -> Optional[bytes]:
        """The last computed shared secret, or None."""
        with self._lock:
            return bytes(self._shared_secret) if self._shared_secret is not None else None

    def rotate_keys(self) -> None:
        """Generate a new ephemeral key pair and forget the old secret."""
        new_key = ec.generate_private_key(self._curve)
        with self._lock:
            self._local_key = new_key
            self._wipe_secret()

    def _wipe_secret(self) -> None:
        if self._shared_secret is not None:
            self._shared_secret[:] = bytes(len(self._shared_secret))
            self._shared_secret = None

    def __del__(self) -> None:
        stored = self.__dict__.get("_shared_secret")
        if stored is not None:
            stored[:] = bytes(len(stored))