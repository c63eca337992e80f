import re
import time
from datetime import datetime

import pytest

from vpnkit.utils import (
    check_permissions,
    create_dir,
    current_timestamp,
    file_exists,
    format_timestamp,
    generate_iv,
    generate_random_string,
    is_empty,
    is_valid_ip,
    read_file,
    to_lowercase,
    trim,
    write_file,
)


def test_random_string():
    s = generate_random_string(16)
    assert len(s) == 16
    assert all(c.isascii() and c.isalnum() for c in s)


def test_random_string_empty():
    assert generate_random_string(0) == ""


def test_trim():
    assert trim("  test  ") == "test"
    assert trim("\t\n\rtest\t\n\r") == "test"


def test_valid_ip():
    assert is_valid_ip("192.168.1.1")
    assert is_valid_ip("2001:db8::1")
    assert not is_valid_ip("invalid.ip")


@pytest.mark.parametrize(
    "value, expected",
    [(None, True), ("", True), ("   \t", True), ("x", False), (" a ", False)],
)
def test_is_empty(value, expected):
    assert is_empty(value) is expected


def test_generate_iv_length():
    assert len(generate_iv(12)) == 12
    assert generate_iv(0) == b""


def test_write_and_read_text(tmp_path):
    path = tmp_path / "data.txt"
    write_file(path, "hello")
    assert read_file(path) == "hello"


def test_write_bytes(tmp_path):
    path = tmp_path / "data.bin"
    write_file(path, b"\x00\x01")
    assert path.read_bytes() == b"\x00\x01"


def test_read_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_file(tmp_path / "missing.txt")


def test_create_dir_nested_and_existing(tmp_path):
    target = tmp_path / "a" / "b" / "c"
    create_dir(target)
    create_dir(target)
    assert target.is_dir()


def test_file_exists(tmp_path):
    path = tmp_path / "f"
    assert file_exists(path) is False
    path.write_text("x")
    assert file_exists(path) is True


def test_check_permissions(tmp_path):
    path = tmp_path / "f"
    assert check_permissions(path) is False
    path.write_text("x")
    assert check_permissions(path) is True


def test_to_lowercase():
    assert to_lowercase("HeLLo") == "hello"


def test_format_timestamp_round_trip():
    ts = int(time.time())
    text = format_timestamp(ts)
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", text)
    assert datetime.strptime(text, "%Y-%m-%d %H:%M:%S") == datetime.fromtimestamp(ts)


def test_format_timestamp_datetime():
    moment = datetime(2020, 1, 2, 3, 4, 5)
    assert format_timestamp(moment) == "2020-01-02 03:04:05"


def test_current_timestamp_is_now():
    before = int(time.time())
    value = current_timestamp()
    after = int(time.time())
    assert before <= value <= after