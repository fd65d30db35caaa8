"""In-memory key-value store with ordered keys, sorted sets, lists, sets and hashes, plus wire framing and a connection pool."""

__version__ = "0.1.0"
__all__ = ["connpool", "helper", "keyspace", "sorted_sets", "store", "wire"]