"""Sorted-set commands: members ordered by score and by name."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Iterator

from sortedcontainers import SortedDict

from treds.helper import validate_key
from treds.keyspace import KeyType, Keyspace, StoreError, _atoi, _split

_NOT_SORTED_MAP = "not sorted map store"


def _parse_score(text: str) -> float:
    """Parse a score the strict way: no surrounding blanks, no underscores."""
    if not isinstance(text, str) or text != text.strip() or "_" in text or not text:
        raise StoreError(f"invalid float: {text!r}")
    try:
        value = float(text)
    except ValueError as exc:
        raise StoreError(f"invalid float: {text!r}") from exc
    if math.isinf(value) and "inf" not in text.lower():
        raise StoreError(f"value out of range: {text!r}")
    return value


def _format_score(score: float) -> str:
    """Render a score in shortest plain decimal form, without an exponent."""
    if math.isnan(score):
        return "NaN"
    if math.isinf(score):
        return "+Inf" if score > 0 else "-Inf"
    return format(Decimal(repr(score)).normalize(), "f")


def _entry(score: float, member: str, value: str, with_score: bool, with_values: bool) -> str:
    fields = []
    if with_score:
        fields.append(_format_score(score))
    fields.append(member)
    if with_values:
        fields.append(value)
    return "".join(f"{field}\n" for field in fields)


class SortedSetStore(Keyspace):
    """Keyspace with sorted sets whose members carry a score and a value."""

    def _check_sorted(self, key: str) -> None:
        self._require_type(key, KeyType.SORTED_MAP, _NOT_SORTED_MAP)

    @staticmethod
    def _drop_from_bucket(buckets: SortedDict, score: float, member: str) -> None:
        bucket = buckets.get(score)
        if bucket is None:
            return
        bucket.pop(member, None)
        if not bucket:
            del buckets[score]

    def zadd(self, args: list[str]) -> None:
        """Add ``score member value`` triples to the sorted set named by ``args[0]``."""
        if not args:
            raise StoreError("wrong number of arguments for zadd")
        key = args[0]
        self._check_sorted(key)
        tokens = _split(" ".join(args[1:]))
        if not validate_key(key):
            raise StoreError("invalid key")
        triples = [tuple(tokens[i : i + 3]) for i in range(0, len(tokens) - 2, 3)]
        if not all(validate_key(member) for _, member, _ in triples):
            raise StoreError("invalid key")
        parsed = [(_parse_score(score), member, value) for score, member, value in triples]
        if any(math.isnan(score) for score, _, _ in parsed):
            raise StoreError("score is not a number")

        buckets = self._sorted_maps.setdefault(key, SortedDict())
        scores = self._sorted_scores.setdefault(key, {})
        members = self._sorted_keys.setdefault(key, SortedDict())
        for score, member, value in parsed:
            old = scores.get(member)
            if old is not None and old != score:
                self._drop_from_bucket(buckets, old, member)
            scores[member] = score
            buckets.setdefault(score, SortedDict())[member] = value
            members[member] = value

    def zrem(self, args: list[str]) -> None:
        """Remove the members ``args[1:]`` from the sorted set ``args[0]``."""
        if not args:
            raise StoreError("wrong number of arguments for zrem")
        key = args[0]
        self._check_sorted(key)
        buckets = self._sorted_maps.get(key)
        if buckets is None:
            return
        scores = self._sorted_scores.setdefault(key, {})
        members = self._sorted_keys.setdefault(key, SortedDict())
        for member in args[1:]:
            score = scores.pop(member, None)
            if score is not None:
                self._drop_from_bucket(buckets, score, member)
            members.pop(member, None)

    def zcard(self, key: str) -> int:
        """Return the number of members of the sorted set."""
        self._check_sorted(key)
        return len(self._sorted_keys.get(key, ()))

    def zscore(self, args: list[str]) -> str:
        """Return the score of member ``args[1]`` in ``args[0]``, or an empty string."""
        if len(args) < 2:
            raise StoreError("wrong number of arguments for zscore")
        key, member = args[0], args[1]
        self._check_sorted(key)
        scores = self._sorted_scores.get(key)
        if scores is None or member not in scores:
            return ""
        return _format_score(scores[member])

    # -- lexicographic ranges ---------------------------------------------

    def _lex_range(self, key, cursor, min_key, max_key, count, with_score, with_values, reverse):
        self._check_sorted(key)
        members = self._sorted_keys.get(key)
        if members is None:
            return ""
        start = _atoi(cursor)
        remaining = _atoi(count)
        scores = self._sorted_scores.get(key, {})
        items = reversed(members.items()) if reverse else members.items()
        parts: list[str] = []
        for index, (member, value) in enumerate(items):
            if index >= start and remaining > 0 and min_key <= member <= max_key:
                parts.append(_entry(scores.get(member, 0.0), member, value, with_score, with_values))
                remaining -= 1
            past_end = member < min_key if reverse else member > max_key
            if remaining == 0 or past_end:
                break
        return "".join(parts)

    def zrange_by_lex_kvs(self, key, cursor, min_key, max_key, count, with_score):
        """Members and values between ``min_key`` and ``max_key``, ascending."""
        return self._lex_range(key, cursor, min_key, max_key, count, with_score, True, False)

    def zrange_by_lex_keys(self, key, cursor, min_key, max_key, count, with_score):
        """Members between ``min_key`` and ``max_key``, ascending."""
        return self._lex_range(key, cursor, min_key, max_key, count, with_score, False, False)

    def zrevrange_by_lex_kvs(self, key, cursor, min_key, max_key, count, with_score):
        """Members and values between ``min_key`` and ``max_key``, descending."""
        return self._lex_range(key, cursor, min_key, max_key, count, with_score, True, True)

    def zrevrange_by_lex_keys(self, key, cursor, min_key, max_key, count, with_score):
        """Members between ``min_key`` and ``max_key``, descending."""
        return self._lex_range(key, cursor, min_key, max_key, count, with_score, False, True)

    # -- score ranges -----------------------------------------------------

    @staticmethod
    def _walk(buckets: SortedDict, low: float, high: float, reverse: bool) -> Iterator[tuple]:
        if reverse:
            for score in buckets.irange(maximum=high, reverse=True):
                for member, value in reversed(buckets[score].items()):
                    yield score, member, value
        else:
            for score in buckets.irange(minimum=low):
                for member, value in buckets[score].items():
                    yield score, member, value

    def _score_range(self, key, min_score, max_score, offset, count, with_score, with_values, reverse):
        self._check_sorted(key)
        buckets = self._sorted_maps.get(key)
        if buckets is None:
            return ""
        low = _parse_score(min_score)
        high = _parse_score(max_score)
        skip = _atoi(offset)
        remaining = _atoi(count)
        parts: list[str] = []
        for index, (score, member, value) in enumerate(self._walk(buckets, low, high, reverse)):
            if remaining == 0:
                break
            if (score < low) if reverse else (score > high):
                break
            if index >= skip:
                parts.append(_entry(score, member, value, with_score, with_values))
                remaining -= 1
        return "".join(parts)

    def zrange_by_score_kvs(self, key, min_score, max_score, offset, count, with_score):
        """Members and values with scores in range, lowest score first."""
        return self._score_range(key, min_score, max_score, offset, count, with_score, True, False)

    def zrange_by_score_keys(self, key, min_score, max_score, offset, count, with_score):
        """Members with scores in range, lowest score first."""
        return self._score_range(key, min_score, max_score, offset, count, with_score, False, False)

    def zrevrange_by_score_kvs(self, key, min_score, max_score, offset, count, with_score):
        """Members and values with scores in range, highest score first."""
        return self._score_range(key, min_score, max_score, offset, count, with_score, True, True)

    def zrevrange_by_score_keys(self, key, min_score, max_score, offset, count, with_score):
        """Members with scores in range, highest score first."""
        return self._score_range(key, min_score, max_score, offset, count, with_score, False, True)