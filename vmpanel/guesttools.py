"""Framed messages exchanged with the tools running inside a guest.

A frame is a big-endian unsigned 64-bit payload length followed by the
payload: the module name as a string and one variant value, both in the
binary stream format of the guest side (version 4.0).
"""

from __future__ import annotations

import logging
import struct
from typing import Any, Callable

log = logging.getLogger(__name__)

_INVALID = 0
_BOOL = 1
_INT = 2
_UINT = 3
_LONGLONG = 4
_ULONGLONG = 5
_DOUBLE = 6
_MAP = 8
_LIST = 9
_STRING = 10
_STRINGLIST = 11
_BYTEARRAY = 12

_NULL = 0xFFFFFFFF
_HEADER = struct.Struct(">Q")


class ProtocolError(Exception):
    """Raised when received bytes do not form a valid frame."""


def _u32(value: int) -> bytes:
    return struct.pack(">I", value)


def _pack_string(text: Any) -> bytes:
    if text is None:
        return _u32(_NULL)
    raw = str(text).encode("utf-16-be")
    return _u32(len(raw)) + raw


def _pack_variant(value: Any) -> bytes:
    if value is None:
        return _u32(_INVALID) + _pack_string(None)
    if isinstance(value, bool):
        return _u32(_BOOL) + struct.pack(">b", 1 if value else 0)
    if isinstance(value, int):
        if -(2**31) <= value < 2**31:
            return _u32(_INT) + struct.pack(">i", value)
        if -(2**63) <= value < 2**63:
            return _u32(_LONGLONG) + struct.pack(">q", value)
        if 0 <= value < 2**64:
            return _u32(_ULONGLONG) + struct.pack(">Q", value)
        raise OverflowError(f"integer {value} does not fit in 64 bits")
    if isinstance(value, float):
        return _u32(_DOUBLE) + struct.pack(">d", value)
    if isinstance(value, str):
        return _u32(_STRING) + _pack_string(value)
    if isinstance(value, (bytes, bytearray)):
        return _u32(_BYTEARRAY) + _u32(len(value)) + bytes(value)
    if isinstance(value, (list, tuple)):
        if value and all(isinstance(item, str) for item in value):
            return _u32(_STRINGLIST) + _u32(len(value)) + b"".join(
                _pack_string(item) for item in value
            )
        return _u32(_LIST) + _u32(len(value)) + b"".join(_pack_variant(item) for item in value)
    if isinstance(value, dict):
        if not all(isinstance(key, str) for key in value):
            raise TypeError("map keys must be strings")
        parts = [_pack_string(key) + _pack_variant(value[key]) for key in sorted(value)]
        return _u32(_MAP) + _u32(len(value)) + b"".join(parts)
    raise TypeError(f"cannot encode a value of type {type(value).__name__}")


def encode_frame(module: str, data: Any) -> bytes:
    """Encode one message for ``module`` carrying ``data``."""
    payload = _pack_string(module) + _pack_variant(data)
    return _HEADER.pack(len(payload)) + payload


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def take(self, count: int) -> bytes:
        if count > self.remaining:
            raise ProtocolError("frame ends before its content does")
        chunk = self._data[self._pos:self._pos + count]
        self._pos += count
        return chunk

    def unpack(self, fmt: str) -> Any:
        size = struct.calcsize(fmt)
        return struct.unpack(fmt, self.take(size))[0]

    def string(self) -> str:
        length = self.unpack(">I")
        if length == _NULL:
            return ""
        if length % 2:
            raise ProtocolError("string has an odd number of bytes")
        return self.take(length).decode("utf-16-be")

    def variant(self) -> Any:
        kind = self.unpack(">I")
        if kind == _INVALID:
            self.string()
            return None
        if kind == _BOOL:
            return self.unpack(">b") != 0
        if kind == _INT:
            return self.unpack(">i")
        if kind == _UINT:
            return self.unpack(">I")
        if kind == _LONGLONG:
            return self.unpack(">q")
        if kind == _ULONGLONG:
            return self.unpack(">Q")
        if kind == _DOUBLE:
            return self.unpack(">d")
        if kind == _STRING:
            return self.string()
        if kind == _BYTEARRAY:
            length = self.unpack(">I")
            return b"" if length == _NULL else self.take(length)
        if kind == _STRINGLIST:
            return [self.string() for _ in range(self.unpack(">I"))]
        if kind == _LIST:
            return [self.variant() for _ in range(self.unpack(">I"))]
        if kind == _MAP:
            result = {}
            for _ in range(self.unpack(">I")):
                key = self.string()
                result[key] = self.variant()
            return result
        raise ProtocolError(f"unsupported value type {kind}")


class FrameDecoder:
    """Reassembles frames from a byte stream that arrives in pieces."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._size: int | None = None

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet part of a complete frame."""
        return len(self._buffer)

    def feed(self, data: bytes) -> list[tuple[str, Any]]:
        """Add ``data`` and return every ``(module, value)`` now complete."""
        self._buffer.extend(data)
        frames: list[tuple[str, Any]] = []
        while True:
            if self._size is None:
                if len(self._buffer) < _HEADER.size:
                    break
                self._size = _HEADER.unpack(bytes(self._buffer[:_HEADER.size]))[0]
                del self._buffer[:_HEADER.size]
            if len(self._buffer) < self._size:
                break
            payload = bytes(self._buffer[:self._size])
            del self._buffer[:self._size]
            self._size = None
            reader = _Reader(payload)
            module = reader.string()
            value = reader.variant()
            if reader.remaining:
                raise ProtocolError("frame has trailing bytes")
            frames.append((module, value))
        return frames


class GuestToolsListener:
    """Dispatches frames from the guest to named modules and sends replies."""

    def __init__(self, send_bytes: Callable[[bytes], Any]) -> None:
        self._send_bytes = send_bytes
        self._decoder = FrameDecoder()
        self._modules: dict[str, Callable[[Any], Any]] = {}

    def add_module(self, name: str, handler: Callable[[Any], Any]) -> None:
        """Route frames addressed to ``name`` to ``handler(value)``."""
        self._modules[name] = handler

    def receive(self, data: bytes) -> list[str]:
        """Process received bytes; return the modules that got a frame."""
        handled: list[str] = []
        for module, value in self._decoder.feed(data):
            handler = self._modules.get(module)
            if handler is None:
                log.warning("invalid module %s", module)
                continue
            log.debug("received data from %s", module)
            handler(value)
            handled.append(module)
        return handled

    def send(self, module: str, data: Any) -> None:
        """Send ``data`` to the guest-side ``module``."""
        self._send_bytes(encode_frame(module, data))