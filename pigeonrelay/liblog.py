"""Correlation ids and loggers that carry them."""

from __future__ import annotations

import base64
import contextvars
import hashlib
import itertools
import logging
import os
import socket
import struct
import time

DEFAULT_CORRELATION_ID = "00000000000000000000"
CORRELATION_ID_FIELD = "x-correlation-id"
LOGGER_NAME = "pigeonrelay"

_XID_ALPHABET = frozenset("0123456789abcdefghijklmnopqrstuv")
_XID_LENGTH = 20
_XID_RAW_LENGTH = 12

_machine_id = hashlib.md5(socket.gethostname().encode()).digest()[:3]
_counter = itertools.count(int.from_bytes(os.urandom(3), "big"))

_correlation_id_var: contextvars.ContextVar[object] = contextvars.ContextVar(
    "correlation_id", default=None
)


def _encode_xid(raw: bytes) -> str:
    return base64.b32hexencode(raw).decode("ascii").rstrip("=").lower()


def new_xid() -> str:
    """Return a new globally unique, time-sortable 20-character id."""
    raw = (
        struct.pack(">I", int(time.time()) & 0xFFFFFFFF)
        + _machine_id
        + (os.getpid() & 0xFFFF).to_bytes(2, "big")
        + (next(_counter) & 0xFFFFFF).to_bytes(3, "big")
    )
    return _encode_xid(raw)


def parse_xid(value: str) -> bytes:
    """Decode an id made by :func:`new_xid` into its 12 raw bytes."""
    if len(value) != _XID_LENGTH or not set(value) <= _XID_ALPHABET:
        raise ValueError(f"invalid ID: {value!r}")
    raw = base64.b32hexdecode(value.upper() + "====")
    if len(raw) != _XID_RAW_LENGTH or _encode_xid(raw) != value:
        raise ValueError(f"invalid ID: {value!r}")
    return raw


def must_enrich_context() -> str:
    """Give the current context a fresh correlation id and return it."""
    correlation = new_xid()
    _correlation_id_var.set(correlation)
    return correlation


def enrich_context() -> str:
    """Give the current context a correlation id unless it already has one."""
    if _correlation_id_var.get() is not None:
        return correlation_id()
    return must_enrich_context()


def correlation_id() -> str:
    """Return the correlation id of the current context, or an empty string."""
    value = _correlation_id_var.get()
    return value if isinstance(value, str) else ""


def default_logger() -> logging.LoggerAdapter:
    """Logger tagged with the all-zero correlation id."""
    return logging.LoggerAdapter(
        logging.getLogger(LOGGER_NAME), {CORRELATION_ID_FIELD: DEFAULT_CORRELATION_ID}
    )


def context_logger() -> logging.LoggerAdapter:
    """Logger tagged with the current context's correlation id."""
    return logging.LoggerAdapter(
        logging.getLogger(LOGGER_NAME), {CORRELATION_ID_FIELD: correlation_id()}
    )