"""Authenticated symmetric encryption with a process-wide default context."""

from __future__ import annotations

import enum
import secrets
import threading
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

KEY_SIZE = 32
IV_SIZE = 12


class EncryptionError(Exception):
    """Raised when encryption or decryption fails."""


class EncryptionNotInitializedError(EncryptionError):
    """Raised when the global encryption context has not been set up."""

    def __init__(self) -> None:
        super().__init__("Encryption not initialized")


class CipherType(enum.Enum):
    """Supported AEAD ciphers."""

    AES256GCM = "aes-256-gcm"
    CHACHA20_POLY1305 = "chacha20-poly1305"


_AEAD_CLASSES = {
    CipherType.AES256GCM: AESGCM,
    CipherType.CHACHA20_POLY1305: ChaCha20Poly1305,
}


def _zero(buffer: bytearray) -> None:
    buffer[:] = bytes(len(buffer))


class EncryptionContext:
    """A key and IV bound to one cipher.

    The key and IV live in mutable buffers so that they can be wiped.
    """

    def __init__(self, cipher_type: CipherType = CipherType.AES256GCM) -> None:
        self.cipher_type = CipherType(cipher_type)
        self._key = bytearray(secrets.token_bytes(KEY_SIZE))
        self._iv = bytearray(secrets.token_bytes(IV_SIZE))

    @property
    def key(self) -> bytes:
        """A copy of the current key."""
        return bytes(self._key)

    @key.setter
    def key(self, value: bytes) -> None:
        if len(value) != len(self._key):
            raise ValueError("Invalid key length")
        self._key[:] = value

    @property
    def iv(self) -> bytes:
        """A copy of the current IV."""
        return bytes(self._iv)

    @iv.setter
    def iv(self, value: bytes) -> None:
        if len(value) != len(self._iv):
            raise ValueError("Invalid IV length")
        self._iv[:] = value

    def _aead(self):
        return _AEAD_CLASSES[self.cipher_type](bytes(self._key))

    def encrypt(self, data: bytes) -> bytes:
        """Encrypt data; the authentication tag is appended to the result."""
        return self._aead().encrypt(bytes(self._iv), bytes(data), None)

    def decrypt(self, data: bytes) -> bytes:
        """Decrypt and authenticate data produced by encrypt."""
        try:
            return self._aead().decrypt(bytes(self._iv), bytes(data), None)
        except InvalidTag:
            raise EncryptionError("Decryption failed: authentication error") from None

    def rotate_keys(self) -> None:
        """Replace the key and IV with fresh random values, wiping the old ones."""
        new_key = bytearray(secrets.token_bytes(len(self._key)))
        new_iv = bytearray(secrets.token_bytes(len(self._iv)))
        _zero(self._key)
        _zero(self._iv)
        self._key = new_key
        self._iv = new_iv

    def clear(self) -> None:
        """Overwrite the key and IV with zeros."""
        _zero(self._key)
        _zero(self._iv)

    def __del__(self) -> None:
        key = getattr(self, "_key", None)
        iv = getattr(self, "_iv", None)
        if key is not None:
            _zero(key)
        if iv is not None:
            _zero(iv)


class _Holder:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.context: Optional[EncryptionContext] = None

    def require(self) -> EncryptionContext:
        if self.context is None:
            raise EncryptionNotInitializedError()
        return self.context


_holder = _Holder()


def initialize_encryption(cipher_type: CipherType = CipherType.AES256GCM) -> None:
    """Create the global context with fresh random key material."""
    context = EncryptionContext(cipher_type)
    with _holder.lock:
        old = _holder.context
        _holder.context = context
    if old is not None:
        old.clear()


def encrypt_data(data: bytes) -> bytes:
    """Encrypt with the global context."""
    with _holder.lock:
        return _holder.require().encrypt(data)


def decrypt_data(data: bytes) -> bytes:
    """Decrypt with the global context."""
    with _holder.lock:
        return _holder.require().decrypt(data)


def get_encryption_key() -> Optional[bytes]:
    """The global key, or None when not initialized."""
    with _holder.lock:
        return _holder.context.key if _holder.context is not None else None


def get_encryption_iv() -> Optional[bytes]:
    """The global IV, or None when not initialized."""
    with _holder.lock:
        return _holder.context.iv if _holder.context is not None else None


def set_encryption_key(key: bytes) -> None:
    """Replace the global key; its length must match the current one."""
    with _holder.lock:
        _holder.require().key = key


def set_encryption_iv(iv: bytes) -> None:
    """Replace the global IV; its length must match the current one."""
    with _holder.lock:
        _holder.require().iv = iv


def is_encryption_initialized() -> bool:
    """True when the global context exists."""
    with _holder.lock:
        return _holder.context is not None


def rotate_encryption_keys() -> None:
    """Give the global context a fresh key and IV."""
    with _holder.lock:
        _holder.require().rotate_keys()


def secure_clear_memory() -> None:
    """Wipe and drop the global context."""
    with _holder.lock:
        context, _holder.context = _holder.context, None
    if context is not None:
        context.clear()