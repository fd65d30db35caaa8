"""The full store: key/value entries, sorted sets, lists, sets and hashes."""

from __future__ import annotations

from treds.helper import validate_key
from treds.keyspace import KeyType, StoreError, _atoi, _split
from treds.sorted_sets import SortedSetStore

_NOT_LIST = "not list store"
_NOT_SET = "not set store"
_NOT_HASH = "not hash store"


def _lines(items) -> str:
    return "".join(f"{item}\n" for item in items)


class TredsStore(SortedSetStore):
    """Every command of the store, including lists, sets and hashes."""

    # -- lists ------------------------------------------------------------

    def _push(self, args: list[str], front: bool) -> None:
        if not args:
            raise StoreError("wrong number of arguments")
        key = args[0]
        self._require_type(key, KeyType.LIST, _NOT_LIST)
        if not validate_key(key):
            raise StoreError("invalid key")
        stored = self._lists.get(key, [])
        items = _split(" ".join(args[1:]))
        if front:
            stored[0:0] = items[::-1]
        else:
            stored.extend(items)
        self._lists[key] = stored

    def lpush(self, args: list[str]) -> None:
        """Prepend each of ``args[1:]`` in turn to the list ``args[0]``."""
        self._push(args, front=True)

    def rpush(self, args: list[str]) -> None:
        """Append ``args[1:]`` to the list ``args[0]``."""
        self._push(args, front=False)

    def lpop(self, key: str, count: int) -> str:
        """Remove and return up to ``count`` elements from the head."""
        self._require_type(key, KeyType.LIST, _NOT_LIST)
        stored = self._lists.get(key)
        if stored is None:
            return ""
        popped = []
        while count > 0 and stored:
            popped.append(stored.pop(0))
            count -= 1
        return _lines(popped)

    def rpop(self, key: str, count: int) -> str:
        """Remove and return up to ``count`` elements from the tail."""
        self._require_type(key, KeyType.LIST, _NOT_LIST)
        stored = self._lists.get(key)
        if stored is None:
            return ""
        popped = []
        while count > 0 and stored:
            popped.append(stored.pop())
            count -= 1
        return _lines(popped)

    def lrem(self, key: str, index: int) -> None:
        """Remove the element at ``index``; out-of-range indexes are ignored."""
        self._require_type(key, KeyType.LIST, _NOT_LIST)
        stored = self._lists.get(key)
        if stored is None:
            return
        if index < 0:
            index += len(stored)
        if 0 <= index < len(stored):
            del stored[index]

    def lset(self, key: str, index: int, element: str) -> None:
        """Replace the element at ``index``; an index equal to the length appends."""
        self._require_type(key, KeyType.LIST, _NOT_LIST)
        stored = self._lists.get(key)
        if stored is None:
            return
        if index < 0:
            index += len(stored)
        if 0 <= index < len(stored):
            stored[index] = element
        elif index == len(stored):
            stored.append(element)

    def lrange(self, key: str, start: int, stop: int) -> str:
        """Return the elements from ``start`` to ``stop`` inclusive."""
        self._require_type(key, KeyType.LIST, _NOT_LIST)
        stored = self._lists.get(key)
        if stored is None:
            return ""
        size = len(stored)
        if start < 0:
            start += size
        if stop < 0:
            stop += size
        if start > stop:
            return ""
        if start < 0 or stop >= size:
            raise StoreError("index out of range")
        return _lines(stored[start : stop + 1])

    def llen(self, key: str) -> str:
        """Return the list length; a missing list gives ``0`` without a newline."""
        self._require_type(key, KeyType.LIST, _NOT_LIST)
        stored = self._lists.get(key)
        if stored is None:
            return "0"
        return f"{len(stored)}\n"

    def lindex(self, args: list[str]) -> str:
        """Return the element of list ``args[0]`` at index ``args[1]``."""
        if len(args) < 2:
            raise StoreError("wrong number of arguments")
        key = args[0]
        self._require_type(key, KeyType.LIST, _NOT_LIST)
        stored = self._lists.get(key)
        if stored is None:
            return ""
        index = _atoi(args[1])
        if index < 0:
            index += len(stored)
        if not 0 <= index < len(stored):
            return ""
        return f"{stored[index]}\n"

    # -- sets -------------------------------------------------------------

    def sadd(self, key: str, members: list[str]) -> None:
        """Add ``members`` to the set ``key``."""
        self._require_type(key, KeyType.SET, _NOT_SET)
        if not validate_key(key):
            raise StoreError("invalid key")
        parsed = _split(" ".join(members))
        self._sets.setdefault(key, set()).update(parsed)

    def srem(self, key: str, members: list[str]) -> None:
        """Remove ``members`` from the set ``key``."""
        self._require_type(key, KeyType.SET, _NOT_SET)
        parsed = _split(" ".join(members))
        stored = self._sets.get(key)
        if stored is None:
            return
        stored.difference_update(parsed)

    def smembers(self, key: str) -> str:
        """Return every member of the set, one per line."""
        self._require_type(key, KeyType.SET, _NOT_SET)
        return _lines(self._sets.get(key, ()))

    def sismember(self, key: str, member: str) -> bool:
        """Return True if ``member`` is in the set ``key``."""
        self._require_type(key, KeyType.SET, _NOT_SET)
        return member in self._sets.get(key, ())

    def scard(self, key: str) -> int:
        """Return the number of members of the set."""
        self._require_type(key, KeyType.SET, _NOT_SET)
        return len(self._sets.get(key, ()))

    def _check_sets(self, keys: list[str]) -> list[set]:
        for key in keys:
            self._require_type(key, KeyType.SET, _NOT_SET)
        return [self._sets[key] for key in keys if key in self._sets]

    def sunion(self, keys: list[str]) -> str:
        """Return the union of the existing sets among ``keys``."""
        return _lines(set().union(*self._check_sets(keys)))

    def sinter(self, keys: list[str]) -> str:
        """Return the intersection of the existing sets among ``keys``."""
        existing = self._check_sets(keys)
        if not existing:
            return ""
        return _lines(existing[0].intersection(*existing[1:]))

    def sdiff(self, keys: list[str]) -> str:
        """Return members of the first set that are in none of the others."""
        if not keys:
            raise StoreError("wrong number of arguments")
        self._check_sets(keys)
        first = self._sets.get(keys[0])
        if first is None:
            return ""
        others = [self._sets[key] for key in keys[1:] if key in self._sets]
        return _lines(first.difference(*others))

    # -- hashes -----------------------------------------------------------

    def hset(self, key: str, args: list[str]) -> None:
        """Set alternating fields and values in the hash ``key``."""
        self._require_type(key, KeyType.HASH, _NOT_HASH)
        if not validate_key(key):
            raise StoreError("invalid key")
        stored = self._hashes.setdefault(key, {})
        parsed = _split(" ".join(args))
        if len(parsed) % 2:
            raise StoreError("wrong number of arguments for hset")
        fields = parsed[::2]
        if not all(validate_key(field) for field in fields):
            raise StoreError("invalid key")
        stored.update(zip(fields, parsed[1::2]))

    def hget(self, key: str, field: str) -> str:
        """Return the value of ``field`` followed by a newline, or an empty string."""
        self._require_type(key, KeyType.HASH, _NOT_HASH)
        stored = self._hashes.get(key)
        if stored is None or field not in stored:
            return ""
        return f"{stored[field]}\n"

    def hgetall(self, key: str) -> str:
        """Return each field followed by its value, one per line."""
        self._require_type(key, KeyType.HASH, _NOT_HASH)
        stored = self._hashes.get(key, {})
        return "".join(f"{field}\n{value}\n" for field, value in stored.items())

    def hlen(self, key: str) -> int:
        """Return the number of fields in the hash."""
        self._require_type(key, KeyType.HASH, _NOT_HASH)
        return len(self._hashes.get(key, ()))

    def hdel(self, key: str, fields: list[str]) -> None:
        """Remove ``fields`` from the hash; missing fields are ignored."""
        self._require_type(key, KeyType.HASH, _NOT_HASH)
        stored = self._hashes.get(key)
        if stored is None:
            return
        for field in fields:
            stored.pop(field, None)

    def hexists(self, key: str, field: str) -> bool:
        """Return True if ``field`` is present in the hash."""
        self._require_type(key, KeyType.HASH, _NOT_HASH)
        return field in self._hashes.get(key, ())

    def hkeys(self, key: str) -> str:
        """Return the fields of the hash, one per line."""
        self._require_type(key, KeyType.HASH, _NOT_HASH)
        return _lines(self._hashes.get(key, {}).keys())

    def hvals(self, key: str) -> str:
        """Return the values of the hash, one per line."""
        self._require_type(key, KeyType.HASH, _NOT_HASH)
        return _lines(self._hashes.get(key, {}).values())