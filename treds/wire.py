"""Request parsing and the length-prefixed response framing."""

from __future__ import annotations

import binascii
from typing import BinaryIO

ERROR_PREFIX = "Error Executing command - "


def parse_command(text: str) -> list[str]:
    """Trim surrounding whitespace and split on single spaces."""
    return text.strip().split(" ")


def encode_response(payload: str | bytes) -> bytes:
    """Frame ``payload`` as ``<byte length>\\n<payload>``."""
    body = payload.encode("utf-8") if isinstance(payload, str) else bytes(payload)
    return str(len(body)).encode("ascii") + b"\n" + body


def encode_error(message: object) -> bytes:
    """Frame an error message the way the server reports failures."""
    return encode_response(f"{ERROR_PREFIX}{message}\n")


def read_response(stream: BinaryIO) -> str:
    """Read one framed response from a binary stream.

    Raises EOFError if the stream ends early and ValueError on a bad length.
    """
    line = stream.readline()
    if not line.endswith(b"\n"):
        raise EOFError("connection closed before length line")
    length = int(line[:-1].decode("ascii"))
    if length < 0:
        raise ValueError(f"invalid response length: {length}")
    body = b""
    while len(body) < length:
        chunk = stream.read(length - len(body))
        if not chunk:
            raise EOFError("connection closed before full response")
        body += chunk
    return body.decode("utf-8", errors="replace")


def decode_hex_address(address: str) -> str:
    """Decode a hex-encoded host, ignoring a leading ``?``."""
    if address.startswith("?"):
        address = address[1:]
    try:
        raw = binascii.unhexlify(address.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise ValueError(f"invalid hex address: {exc}") from exc
    return raw.decode("utf-8", errors="replace")


def _split_host_port(address: str) -> tuple[str, str]:
    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise ValueError(f"missing ']' in address: {address}")
        if end + 1 >= len(address) or address[end + 1] != ":":
            raise ValueError(f"missing port in address: {address}")
        host, port = address[1:end], address[end + 2 :]
        if ":" in port:
            raise ValueError(f"too many colons in address: {address}")
        return host, port
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address: {address}")
    if ":" in host:
        raise ValueError(f"too many colons in address: {address}")
    return host, port


def _join_host_port(host: str, port: int | str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def raft_to_client_address(raft_addr: str, port: int) -> str:
    """Turn a replication address with a hex host into a client address."""
    try:
        host, _ = _split_host_port(raft_addr)
        decoded = decode_hex_address(host)
    except ValueError as exc:
        raise ValueError(f"invalid Raft address: {raft_addr}") from exc
    return _join_host_port(decoded, port)