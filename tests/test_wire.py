import io

import pytest

from treds.wire import (
    decode_hex_address,
    encode_error,
    encode_response,
    parse_command,
    raft_to_client_address,
    read_response,
)


def test_parse_command_trims_and_splits():
    assert parse_command("  SET key value \n") == ["SET", "key", "value"]


def test_parse_command_keeps_empty_parts():
    assert parse_command("SET  key") == ["SET", "", "key"]


def test_encode_response_ok():
    assert encode_response("OK") == b"2\nOK"


def test_encode_response_counts_bytes():
    framed = encode_response("é")
    length, _, body = framed.partition(b"\n")
    assert int(length) == len(body)
    assert body.decode("utf-8") == "é"


def test_encode_error_round_trip():
    framed = encode_error("empty command")
    assert read_response(io.BytesIO(framed)) == "Error Executing command - empty command\n"


@pytest.mark.parametrize("payload", ["", "OK", "key1\nvalue1\n0\n", "héllo wörld"])
def test_response_round_trip(payload):
    assert read_response(io.BytesIO(encode_response(payload))) == payload


def test_read_response_consumes_exactly_one_frame():
    stream = io.BytesIO(encode_response("a") + encode_response("bc"))
    assert read_response(stream) == "a"
    assert read_response(stream) == "bc"


def test_read_response_truncated_body():
    with pytest.raises(EOFError):
        read_response(io.BytesIO(b"5\nab"))


def test_read_response_missing_newline():
    with pytest.raises(EOFError):
        read_response(io.BytesIO(b"12"))


def test_read_response_bad_length():
    with pytest.raises(ValueError):
        read_response(io.BytesIO(b"xx\nabc"))


def test_decode_hex_address_round_trip():
    encoded = "127.0.0.1".encode().hex()
    assert decode_hex_address(encoded) == "127.0.0.1"
    assert decode_hex_address("?" + encoded) == "127.0.0.1"


@pytest.mark.parametrize("address", ["zz", "abc", "41 42"])
def test_decode_hex_address_invalid(address):
    with pytest.raises(ValueError, match="invalid hex address"):
        decode_hex_address(address)


def test_raft_to_client_address():
    encoded = "127.0.0.1".encode().hex()
    assert raft_to_client_address(f"{encoded}:8300", 7997) == "127.0.0.1:7997"


def test_raft_to_client_address_ipv6_host_is_bracketed():
    encoded = "::1".encode().hex()
    assert raft_to_client_address(f"?{encoded}:8300", 7997) == "[::1]:7997"


@pytest.mark.parametrize("address", ["nocolon", "zz:8300", "a:b:c"])
def test_raft_to_client_address_invalid(address):
    with pytest.raises(ValueError, match="invalid Raft address"):
        raft_to_client_address(address, 7997)