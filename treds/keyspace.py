"""The core key space: plain key/value entries, expiry, scans and snapshots."""

from __future__ import annotations

import enum
import re
import time
from datetime import datetime

from sortedcontainers import SortedDict

from treds.helper import split_command_with_quotes, validate_key

NIL_RESP = "(nil)\n"

_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


class KeyType(enum.Enum):
    """The kind of structure a key holds."""

    KEY_VALUE = 0
    SORTED_MAP = 1
    LIST = 2
    SET = 3
    HASH = 4


class StoreError(ValueError):
    """Raised when a store operation cannot be carried out."""


def fnv32a(text: str) -> int:
    """Return the 32-bit FNV-1a hash of the UTF-8 bytes of ``text``."""
    value = _FNV32_OFFSET
    for byte in text.encode("utf-8", errors="surrogatepass"):
        value ^= byte
        value = (value * _FNV32_PRIME) & 0xFFFFFFFF
    return value


def _atoi(text: str) -> int:
    if not isinstance(text, str) or not _INT_PATTERN.fullmatch(text):
        raise StoreError(f"invalid integer: {text!r}")
    return int(text)


def _split(text: str) -> list[str]:
    try:
        return split_command_with_quotes(text)
    except ValueError as exc:
        raise StoreError(str(exc)) from exc


def _to_timestamp(at: datetime | float | int) -> float:
    if isinstance(at, datetime):
        return at.timestamp()
    return float(at)


def _encode_varint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _read_varint(data: bytes, pos: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(data) or shift >= 70:
            raise StoreError("malformed snapshot: bad varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7


def _iter_fields(data: bytes):
    """Yield ``(field_number, wire_type, payload)`` for each encoded field."""
    pos = 0
    while pos < len(data):
        tag, pos = _read_varint(data, pos)
        field, wire_type = tag >> 3, tag & 7
        if field == 0:
            raise StoreError("malformed snapshot: zero field number")
        if wire_type == 0:
            value, pos = _read_varint(data, pos)
            yield field, wire_type, value
        elif wire_type == 2:
            length, pos = _read_varint(data, pos)
            end = pos + length
            if end > len(data):
                raise StoreError("malformed snapshot: truncated field")
            yield field, wire_type, data[pos:end]
            pos = end
        elif wire_type in (1, 5):
            size = 8 if wire_type == 1 else 4
            if pos + size > len(data):
                raise StoreError("malformed snapshot: truncated field")
            yield field, wire_type, data[pos : pos + size]
            pos += size
        else:
            raise StoreError(f"malformed snapshot: unsupported wire type {wire_type}")


def _string_field(field: bytes) -> bytes:
    return field


def _decode_text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise StoreError(f"malformed snapshot: {exc}") from exc


def _encode_pair(key: str, value: str) -> bytes:
    inner = bytearray()
    for field_tag, text in ((0x0A, key), (0x12, value)):
        if text:
            raw = text.encode("utf-8")
            inner += bytes([field_tag]) + _encode_varint(len(raw)) + raw
    return b"\x0a" + _encode_varint(len(inner)) + bytes(inner)


def _decode_pair(data: bytes) -> tuple[str, str]:
    key = value = ""
    for field, wire_type, payload in _iter_fields(data):
        if wire_type != 2:
            continue
        if field == 1:
            key = _decode_text(payload)
        elif field == 2:
            value = _decode_text(payload)
    return key, value


class Keyspace:
    """Holds every structure of the store and implements the key/value commands.

    Collections for sorted maps, lists, sets and hashes live here so that
    deletion, expiry, sizing and flushing cover every kind of key.
    """

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self._kv: SortedDict = SortedDict()
        self._sorted_maps: dict = {}
        self._sorted_scores: dict = {}
        self._sorted_keys: dict = {}
        self._lists: dict = {}
        self._sets: dict = {}
        self._hashes: dict = {}
        self._expiry: dict[str, float] = {}

    # -- key bookkeeping -------------------------------------------------

    def _has_expired(self, key: str) -> bool:
        deadline = self._expiry.get(key)
        return deadline is not None and time.time() > deadline

    def _stored_type(self, key: str) -> KeyType | None:
        if key in self._kv:
            return KeyType.KEY_VALUE
        if key in self._sorted_maps:
            return KeyType.SORTED_MAP
        if key in self._lists:
            return KeyType.LIST
        if key in self._sets:
            return KeyType.SET
        if key in self._hashes:
            return KeyType.HASH
        return None

    def _key_type(self, key: str) -> KeyType | None:
        """Return the type of ``key``, deleting it first if it has expired."""
        if self._has_expired(key):
            self.delete(key)
            return None
        return self._stored_type(key)

    def _require_type(self, key: str, expected: KeyType, message: str) -> None:
        kind = self._key_type(key)
        if kind is not None and kind is not expected:
            raise StoreError(message)

    def cleanup_expired_keys(self) -> None:
        """Delete every key whose expiry time has passed."""
        for key in list(self._expiry):
            if self._has_expired(key):
                self.delete(key)

    # -- plain key/value commands -----------------------------------------

    def get(self, key: str) -> str:
        """Return the value followed by a newline, or ``(nil)\\n``."""
        if self._key_type(key) is not KeyType.KEY_VALUE:
            return NIL_RESP
        return f"{self._kv[key]}\n"

    def mget(self, keys: list[str]) -> str:
        """Concatenate the responses of :meth:`get` for each key."""
        return "".join(self.get(key) for key in keys)

    def set(self, key: str, value: str) -> None:
        """Store the first token of ``value`` under ``key``."""
        self._require_type(key, KeyType.KEY_VALUE, "not key value store")
        if not validate_key(key):
            raise StoreError(f"invalid key: {key}")
        tokens = _split(value)
        if not tokens:
            raise StoreError("missing value")
        self._kv[key] = tokens[0]

    def mset(self, args: list[str]) -> None:
        """Set alternating keys and values."""
        tokens = _split(" ".join(args))
        if len(tokens) % 2:
            raise StoreError("wrong number of arguments for mset")
        for key, value in zip(tokens[::2], tokens[1::2]):
            if not validate_key(key):
                raise StoreError(f"invalid key: {key}")
            self.set(key, value)

    def delete(self, key: str) -> None:
        """Remove ``key`` from every structure; missing keys are ignored."""
        self._kv.pop(key, None)
        for table in (
            self._sorted_maps,
            self._sorted_scores,
            self._sorted_keys,
            self._lists,
            self._sets,
            self._hashes,
            self._expiry,
        ):
            table.pop(key, None)

    # -- scans ------------------------------------------------------------

    def _prefix_keys(self, prefix: str):
        for key in self._kv.irange(minimum=prefix):
            if not key.startswith(prefix):
                break
            yield key

    def _pattern_keys(self, regex: str):
        try:
            pattern = re.compile(regex)
        except re.error as exc:
            raise StoreError(f"invalid regex: {exc}") from exc
        return (key for key in self._kv if pattern.search(key))

    def _scan(self, keys, cursor: str, count: int, with_values: bool) -> str:
        start_hash = _atoi(cursor) & 0xFFFFFFFF
        seen = cursor == "0"
        next_cursor = 0
        parts: list[str] = []
        for key in keys:
            if self._has_expired(key):
                continue
            key_hash = fnv32a(key)
            if not seen and key_hash == start_hash:
                seen = True
                continue
            if seen and count > 0:
                parts.append(f"{key}\n{self._kv[key]}\n" if with_values else f"{key}\n")
                next_cursor = key_hash
                count -= 1
            if count == 0:
                break
        if count != 0:
            next_cursor = 0
        parts.append(f"{next_cursor}\n")
        return "".join(parts)

    def prefix_scan(self, cursor: str, prefix: str, count: str) -> str:
        """Page through keys and values starting with ``prefix``."""
        total = _atoi(count)
        return self._scan(list(self._prefix_keys(prefix)), cursor, total, True)

    def prefix_scan_keys(self, cursor: str, prefix: str, count: str) -> str:
        """Page through keys starting with ``prefix``."""
        total = _atoi(count)
        return self._scan(list(self._prefix_keys(prefix)), cursor, total, False)

    def delete_prefix(self, prefix: str) -> int:
        """Delete every plain key starting with ``prefix``; return how many."""
        doomed = list(self._prefix_keys(prefix))
        for key in doomed:
            del self._kv[key]
        return len(doomed)

    def keys(self, cursor: str, regex: str, count: int) -> str:
        """Page through keys matching ``regex``."""
        matches = list(self._pattern_keys(regex))
        return self._scan(matches, cursor, count, False)

    def kvs(self, cursor: str, regex: str, count: int) -> str:
        """Page through keys and values whose key matches ``regex``."""
        matches = list(self._pattern_keys(regex))
        return self._scan(matches, cursor, count, True)

    def size(self) -> str:
        """Return the number of keys of every kind, as a string."""
        total = (
            len(self._kv)
            + len(self._sorted_maps)
            + len(self._lists)
            + len(self._sets)
            + len(self._hashes)
        )
        return str(total)

    def flush_all(self) -> None:
        """Remove everything."""
        self._reset()

    # -- expiry -----------------------------------------------------------

    def expire(self, key: str, at: datetime | float | int) -> None:
        """Mark ``key`` to expire at ``at`` (a datetime or epoch seconds)."""
        self._expiry[key] = _to_timestamp(at)

    def ttl(self, key: str) -> int:
        """Seconds left to live, -1 without expiry, -2 if the key is absent."""
        if self._stored_type(key) is None:
            return -2
        deadline = self._expiry.get(key)
        if deadline is None:
            return -1
        return int(deadline - time.time())

    def longest_prefix(self, prefix: str) -> str:
        """Return the longest stored key that is a prefix of ``prefix``, with its value."""
        for end in range(len(prefix), -1, -1):
            candidate = prefix[:end]
            if candidate in self._kv:
                return f"{candidate}\n{self._kv[candidate]}\n"
        return ""

    # -- snapshots --------------------------------------------------------

    def snapshot(self) -> bytes:
        """Serialise the plain key/value entries in key order."""
        return b"".join(_encode_pair(key, value) for key, value in self._kv.items())

    def restore(self, data: bytes) -> None:
        """Replace the plain key/value entries with those in ``data``."""
        pairs = [
            _decode_pair(payload)
            for field, wire_type, payload in _iter_fields(bytes(data))
            if field == 1 and wire_type == 2
        ]
        self._kv = SortedDict(pairs)