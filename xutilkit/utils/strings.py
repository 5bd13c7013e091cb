"""Globally unique, time-sortable identifiers."""

from __future__ import annotations

import base64
import hashlib
import os
import secrets
import socket
import struct
import threading
import time


def _machine_id() -> bytes:
    try:
        host = socket.gethostname()
    except OSError:
        host = ""
    if host:
        return hashlib.md5(host.encode("utf-8")).digest()[:3]
    return secrets.token_bytes(3)


_MACHINE_ID = _machine_id()
_COUNTER_MASK = 0xFFFFFF
_lock = threading.Lock()
_counter = secrets.randbits(24)


def _next_counter() -> int:
    global _counter
    with _lock:
        _counter = (_counter + 1) & _COUNTER_MASK
        return _counter


def generate_uid() -> str:
    """A 20-character id: seconds, machine, process and counter in base32hex."""
    raw = (
        struct.pack(">I", int(time.time()) & 0xFFFFFFFF)
        + _MACHINE_ID
        + struct.pack(">H", os.getpid() & 0xFFFF)
        + _next_counter().to_bytes(3, "big")
    )
    return base64.b32hexencode(raw).decode("ascii").rstrip("=").lower()