import time
from datetime import datetime, timedelta

import pytest

from treds.keyspace import NIL_RESP, Keyspace, StoreError, fnv32a


@pytest.fixture
def store():
    return Keyspace()


def test_get_missing_and_set(store):
    assert store.get("nonexistent") == NIL_RESP
    store.set("key1", "value1")
    assert store.get("key1") == "value1\n"


def test_mget(store):
    store.set("key1", "value1")
    store.set("key2", "value2")
    assert store.mget(["key1", "key2", "nonexistent"]) == "value1\nvalue2\n(nil)\n"


def test_delete(store):
    store.set("key1", "value1")
    store.delete("key1")
    assert store.get("key1") == NIL_RESP
    store.delete("nonexistent")
    assert store.size() == "0"


def test_prefix_scan(store):
    for i in (1, 2, 3):
        store.set(f"key{i}", f"value{i}")
    assert store.prefix_scan("0", "key", "2") == "key1\nvalue1\nkey2\nvalue2\n944401402\n"


def test_prefix_scan_keys(store):
    for i in (1, 2, 3):
        store.set(f"key{i}", f"value{i}")
    assert store.prefix_scan_keys("0", "key", "2") == "key1\nkey2\n944401402\n"


def test_prefix_scan_continues_from_cursor(store):
    for i in (1, 2, 3):
        store.set(f"key{i}", f"value{i}")
    assert store.prefix_scan("944401402", "key", "2") == "key3\nvalue3\n0\n"


def test_prefix_scan_bad_cursor(store):
    with pytest.raises(StoreError):
        store.prefix_scan("abc", "key", "2")


def test_delete_prefix(store):
    store.set("key1", "value1")
    store.set("key2", "value2")
    store.set("other", "value3")
    assert store.delete_prefix("key") == 2
    assert store.get("key1") == NIL_RESP
    assert store.get("other") == "value3\n"


def test_keys(store):
    store.set("key1", "value1")
    store.set("key2", "value2")
    store.set("otherkey", "value3")
    assert store.keys("0", "^key.*", 100000000) == "key1\nkey2\n0\n"


def test_kvs(store):
    store.set("key1", "value1")
    store.set("key2", "value2")
    store.set("otherkey", "value3")
    assert store.kvs("0", "^key.*", 10000000000000) == "key1\nvalue1\nkey2\nvalue2\n0\n"


def test_keys_bad_regex(store):
    with pytest.raises(StoreError):
        store.keys("0", "(", 10)


def test_fnv32a_matches_scan_cursor():
    assert fnv32a("key2") == 944401402


def test_set_keeps_first_token_and_quotes(store):
    store.set("a", "first second")
    store.set("b", '"hello world"')
    assert store.get("a") == "first\n"
    assert store.get("b") == '"hello world"\n'


def test_set_rejects_invalid_key_and_empty_value(store):
    with pytest.raises(StoreError):
        store.set("bad\x00key", "v")
    with pytest.raises(StoreError):
        store.set("k", "")
    with pytest.raises(StoreError):
        store.set("k", '"unterminated')


def test_mset(store):
    store.mset(["k1", "v1", "k2", "v2"])
    assert store.mget(["k1", "k2"]) == "v1\nv2\n"
    with pytest.raises(StoreError):
        store.mset(["k3"])


def test_size_and_flush(store):
    store.set("a", "1")
    store.set("b", "2")
    assert store.size() == "2"
    store.flush_all()
    assert store.size() == "0"
    assert store.get("a") == NIL_RESP


def test_expire_in_past_removes_key(store):
    store.set("k", "v")
    store.expire("k", datetime.now() - timedelta(seconds=5))
    assert store.get("k") == NIL_RESP
    assert store.ttl("k") == -2


def test_cleanup_expired_keys(store):
    store.set("old", "v")
    store.set("fresh", "v")
    store.expire("old", time.time() - 1)
    store.expire("fresh", time.time() + 100)
    store.cleanup_expired_keys()
    assert store.size() == "1"
    assert store.get("fresh") == "v\n"


def test_ttl(store):
    assert store.ttl("missing") == -2
    store.set("k", "v")
    assert store.ttl("k") == -1
    store.expire("k", time.time() + 100)
    assert 98 <= store.ttl("k") <= 100


def test_scan_skips_expired(store):
    store.set("key1", "a")
    store.set("key2", "b")
    store.expire("key1", time.time() - 1)
    assert store.prefix_scan_keys("0", "key", "10") == "key2\n0\n"


def test_longest_prefix(store):
    store.set("a", "1")
    store.set("abc", "3")
    assert store.longest_prefix("abcd") == "abc\n3\n"
    assert store.longest_prefix("abx") == "a\n1\n"
    assert store.longest_prefix("zzz") == ""


def test_snapshot_encoding(store):
    store.set("a", "b")
    assert store.snapshot() == b"\n\x06\n\x01a\x12\x01b"


def test_snapshot_empty(store):
    assert store.snapshot() == b""


def test_snapshot_round_trip(store):
    store.set("key1", "value1")
    store.set("key2", "value2")
    data = store.snapshot()
    other = Keyspace()
    other.set("stale", "x")
    other.restore(data)
    assert other.mget(["key1", "key2", "stale"]) == "value1\nvalue2\n(nil)\n"


def test_restore_malformed(store):
    with pytest.raises(StoreError):
        store.restore(b"\x0a\x05ab")