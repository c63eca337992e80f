"""Small helpers for strings, files, randomness and time."""

from __future__ import annotations

import ipaddress
import os
import secrets
import string
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, os.PathLike]

_ALPHANUMERIC = string.ascii_letters + string.digits


def is_empty(s: Optional[str]) -> bool:
    """True when the string is missing or contains only whitespace."""
    return s is None or not s.strip()


def is_valid_ip(ip: str) -> bool:
    """True when the text is a valid IPv4 or IPv6 address."""
    try:
        ipaddress.ip_address(ip)
    except ValueError:
        return False
    return True


def read_file(path: PathLike) -> str:
    """Return the whole file as text."""
    return Path(path).read_text(encoding="utf-8")


def write_file(path: PathLike, content: Union[str, bytes]) -> None:
    """Replace the file's contents with the given text or bytes."""
    data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
    Path(path).write_bytes(data)


def generate_random_string(length: int) -> str:
    """Return a random string of ASCII letters and digits."""
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


def generate_iv(size: int) -> bytes:
    """Return ``size`` random bytes."""
    return secrets.token_bytes(size)


def format_timestamp(ts: Union[datetime, float, int]) -> str:
    """Format a datetime or epoch seconds as local ``YYYY-MM-DD HH:MM:SS``."""
    moment = ts if isinstance(ts, datetime) else datetime.fromtimestamp(ts)
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def create_dir(path: PathLike) -> None:
    """Create the directory and its parents; an existing one is fine."""
    Path(path).mkdir(parents=True, exist_ok=True)


def check_permissions(path: PathLike) -> bool:
    """True when the path exists and is both readable and writable."""
    return os.path.exists(path) and os.access(path, os.R_OK | os.W_OK)


def trim(s: str) -> str:
    """Strip leading and trailing whitespace."""
    return s.strip()


def file_exists(path: PathLike) -> bool:
    """True when the path exists."""
    return Path(path).exists()


def to_lowercase(s: str) -> str:
    """Return the string in lower case."""
    return s.lower()


def current_timestamp() -> int:
    """Return the current time in whole seconds since the epoch."""
    return max(0, int(time.time()))