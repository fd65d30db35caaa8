# treds

An in-memory key-value store whose plain keys are kept in sorted order, so
prefix scans, regex scans and longest-prefix lookups come naturally. Beside
plain string values it holds sorted sets, lists, sets and hashes, with
per-key expiry and snapshots of the plain key-value entries.

Replies are returned as newline-separated text, the same shape a client
would read off the wire.

## Installing

    pip install .

For running the tests:

    pip install .[test]
    pytest

## Using the store

`treds.store.TredsStore` combines every data type in one keyspace:

```python
from treds.store import TredsStore

store = TredsStore()
store.set("user:1", "alice")
store.set("user:2", "bob")

store.get("user:1")                      # "alice\n"
store.mget(["user:1", "missing"])        # "alice\n(nil)\n"
store.prefix_scan("0", "user:", "10")    # "user:1\nalice\nuser:2\nbob\n0\n"
store.keys("0", "^user.*", 100)          # "user:1\nuser:2\n0\n"
store.longest_prefix("user:1:extra")     # "user:1\nalice\n"

store.zadd(["board", "1", "a", "x", "2", "b", "y"])
store.zrange_by_score_keys("board", "0", "10", "0", "10", True)  # "1\na\n2\nb\n"

store.rpush(["queue", "one", "two"])
store.lpop("queue", 1)                   # "one\n"

store.sadd("tags", ["red", "blue"])
store.sismember("tags", "red")           # True

store.hset("profile", ["name", "alice"])
store.hget("profile", "name")            # "alice\n"
```

The store is built in layers: `treds.keyspace.Keyspace` holds the plain
key-value commands, scans, expiry and snapshots; `treds.sorted_sets.SortedSetStore`
adds sorted sets (members carrying a score and a value, ranged by name or by
score, forwards or backwards); `TredsStore` adds lists, sets and hashes.

Values passed to `set`, `mset`, `zadd`, the push commands, `sadd`, `srem` and
`hset` are split on spaces, with quoted and bracketed parts kept whole
(`treds.helper.split_command_with_quotes`). Keys are checked by
`treds.helper.validate_key`: no control or non-printable characters and no
unbalanced braces or double quotes.

### Scans

`prefix_scan`, `prefix_scan_keys`, `keys` and `kvs` return the matched
entries followed by a cursor line. The cursor is the FNV-1a hash
(`treds.keyspace.fnv32a`) of the last key returned; pass it back to resume
after that key. A cursor of `0` means the scan is complete.

### Expiry

`expire(key, at)` takes a `datetime` or epoch seconds. `ttl(key)` reports the
remaining whole seconds, `-1` for a key without expiry and `-2` for a missing
key. Expired keys are dropped when next touched, and `cleanup_expired_keys()`
removes all of them at once.

### Errors

Using a key as the wrong type, invalid keys, unbalanced quotes, malformed
numbers and bad snapshot data raise `treds.keyspace.StoreError`, a
`ValueError`.

## Snapshots

`snapshot()` serialises the plain key-value pairs, in key order, to
protobuf-compatible bytes; `restore(data)` replaces the plain key-value
entries with those in such bytes. Sorted sets, lists, sets, hashes and expiry
times are not part of a snapshot.

## Wire helpers

`treds.wire` frames replies as a decimal length line followed by the payload
(`encode_response`, `encode_error`), reads one framed reply back from a binary
stream (`read_response`), splits a request line (`parse_command`) and turns a
replication address with a hex-encoded host into a client address
(`decode_hex_address`, `raft_to_client_address`).

`treds.connpool.ConnectionPool` dials TCP connections (`dial("host:port")`).
Closing a `PooledConnection` hands it back to the pool, which then closes
every connection idle for longer than its timeout in seconds. Closing the
pool closes every pooled connection.

## What it does not do

This package is the storage engine and its helpers only. It has no network
server accepting client connections, no command dispatcher mapping request
lines to store methods, no transactions, no replication between nodes and
no command-line program. Data lives in memory; nothing is written to disk
unless you store the bytes from `snapshot()` yourself.