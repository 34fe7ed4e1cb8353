"""
LexoRank order keys.

A key looks like ``0|hzzzzz:i`` - a bucket digit, a six digit base-36
integer part and an optional fraction. Keys compare correctly as plain
strings, and a new key can always be generated between two existing keys
without touching any other row.
"""
from typing import Union

from kanban.exceptions import MalformedKeyError, RankExhaustedError
from kanban.rank.decimal import RADIX_POINT, RankDecimal

BUCKET_SEPARATOR = "|"
BUCKETS = ("0", "1", "2")
INTEGER_WIDTH = 6

MIN_DECIMAL = RankDecimal.from_int(0)
MAX_DECIMAL = RankDecimal.parse("1000000") - RankDecimal.from_int(1)
INITIAL_MIN_DECIMAL = RankDecimal.parse("100000")
INITIAL_MAX_DECIMAL = RankDecimal.parse("y00000")
STEP_DECIMAL = RankDecimal.from_int(8)


def _mid(left: RankDecimal, right: RankDecimal) -> RankDecimal:
    mid = (left + right) * RankDecimal.half()
    scale = max(left.scale, right.scale)
    if mid.scale > scale:
        round_down = mid.set_scale(scale, False)
        if round_down > left:
            return round_down
        round_up = mid.set_scale(scale, True)
        if round_up < right:
            return round_up
    return mid


def _check_mid(lbound: RankDecimal, rbound: RankDecimal, mid: RankDecimal) -> RankDecimal:
    if lbound >= mid or mid >= rbound:
        return _mid(lbound, rbound)
    return mid


def between_decimals(o_left: RankDecimal, o_right: RankDecimal) -> RankDecimal:
    """
    Find a decimal strictly between ``o_left`` and ``o_right`` (o_left < o_right).

    Prefers the shortest fraction that still fits, so bisecting keys that are
    far apart yields short keys and only neighbouring keys grow a digit.
    """
    left, right = o_left, o_right

    if o_left.scale < o_right.scale:
        n_left = o_right.set_scale(o_left.scale, False)
        if o_left >= n_left:
            return _mid(o_left, o_right)
        right = n_left

    if o_left.scale > right.scale:
        n_left = o_left.set_scale(right.scale, True)
        if n_left >= right:
            return _mid(o_left, o_right)
        left = n_left

    # trim common precision while the bounds stay apart
    scale = left.scale
    while scale > 0:
        n_scale = scale - 1
        n_left = left.set_scale(n_scale, True)
        n_right = right.set_scale(n_scale, False)
        if n_left == n_right:
            return _check_mid(o_left, o_right, n_left)
        if n_left > n_right:
            break
        scale = n_scale
        left = n_left
        right = n_right

    mid = _check_mid(o_left, o_right, _mid(left, right))

    m_scale = mid.scale
    while m_scale > 0:
        n_scale = m_scale - 1
        n_mid = mid.set_scale(n_scale)
        if o_left >= n_mid or n_mid >= o_right:
            break
        mid = n_mid
        m_scale = n_scale

    return mid


def format_decimal(decimal: RankDecimal) -> str:
    """Pad the integer part to six digits and always include the radix point."""
    text = decimal.format()
    if RADIX_POINT not in text:
        text += RADIX_POINT
    integer_part, _, fraction = text.partition(RADIX_POINT)
    return integer_part.rjust(INTEGER_WIDTH, "0") + RADIX_POINT + fraction


class LexoRank:
    """Immutable order key within a bucket."""

    __slots__ = ("bucket", "decimal", "value")

    def __init__(self, bucket: str, decimal: RankDecimal):
        if bucket not in BUCKETS:
            raise MalformedKeyError(f"Unknown rank bucket: {bucket!r}")
        if decimal < MIN_DECIMAL or decimal > MAX_DECIMAL:
            raise MalformedKeyError(f"Rank out of range: {decimal}")
        self.bucket = bucket
        self.decimal = decimal
        self.value = bucket + BUCKET_SEPARATOR + format_decimal(decimal)

    @classmethod
    def min(cls, bucket: str = BUCKETS[0]) -> "LexoRank":
        return cls(bucket, MIN_DECIMAL)

    @classmethod
    def max(cls, bucket: str = BUCKETS[0]) -> "LexoRank":
        return cls(bucket, MAX_DECIMAL)

    @classmethod
    def middle(cls) -> "LexoRank":
        return cls.min().between(cls.max())

    @classmethod
    def parse(cls, text: str) -> "LexoRank":
        """
        Rebuild a rank from its persisted form.

        Raises:
            MalformedKeyError: If the text is not a LexoRank key
        """
        if not isinstance(text, str):
            raise MalformedKeyError(f"Rank key must be a string, got {type(text).__name__}")

        parts = text.split(BUCKET_SEPARATOR)
        if len(parts) != 2:
            raise MalformedKeyError(f"Invalid rank key: {text!r}")

        bucket, decimal_text = parts
        integer_part = decimal_text.partition(RADIX_POINT)[0]
        if len(integer_part) != INTEGER_WIDTH:
            raise MalformedKeyError(f"Invalid rank key: {text!r}")

        rank = cls(bucket, RankDecimal.parse(decimal_text))
        # stored keys sort by their text, so only the canonical spelling is accepted
        if rank.value != text:
            raise MalformedKeyError(f"Non-canonical rank key: {text!r} (expected {rank.value!r})")
        return rank

    def is_min(self) -> bool:
        return self.decimal == MIN_DECIMAL

    def is_max(self) -> bool:
        return self.decimal == MAX_DECIMAL

    def gen_next(self) -> "LexoRank":
        """A rank after this one, leaving room to insert more after it."""
        if self.is_max():
            raise RankExhaustedError("Cannot rank after the maximum key")
        if self.is_min():
            return LexoRank(self.bucket, INITIAL_MIN_DECIMAL)

        next_decimal = self.decimal.ceil() + STEP_DECIMAL
        if next_decimal >= MAX_DECIMAL:
            next_decimal = between_decimals(self.decimal, MAX_DECIMAL)
        return LexoRank(self.bucket, next_decimal)

    def gen_prev(self) -> "LexoRank":
        """A rank before this one, leaving room to insert more before it."""
        if self.is_min():
            raise RankExhaustedError("Cannot rank before the minimum key")
        if self.is_max():
            return LexoRank(self.bucket, INITIAL_MAX_DECIMAL)

        prev_decimal = self.decimal.floor() - STEP_DECIMAL
        if prev_decimal <= MIN_DECIMAL:
            prev_decimal = between_decimals(MIN_DECIMAL, self.decimal)
        return LexoRank(self.bucket, prev_decimal)

    def between(self, other: "LexoRank") -> "LexoRank":
        """A rank strictly between this one and ``other``, in either order."""
        if self.bucket != other.bucket:
            raise ValueError("Between works only within the same bucket")
        if self.decimal == other.decimal:
            raise ValueError(f"Cannot rank between equal keys {self} and {other}")
        if self.decimal > other.decimal:
            return LexoRank(self.bucket, between_decimals(other.decimal, self.decimal))
        return LexoRank(self.bucket, between_decimals(self.decimal, other.decimal))

    def to_string(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"LexoRank({self.value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LexoRank):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: "LexoRank") -> bool:
        return self.value < other.value

    def __hash__(self) -> int:
        return hash(self.value)


RankLike = Union[str, LexoRank]


def _coerce(rank: RankLike) -> LexoRank:
    return rank if isinstance(rank, LexoRank) else LexoRank.parse(rank)


def min_rank() -> str:
    return LexoRank.min().to_string()


def max_rank() -> str:
    return LexoRank.max().to_string()


def next_rank(rank: RankLike) -> str:
    return _coerce(rank).gen_next().to_string()


def prev_rank(rank: RankLike) -> str:
    return _coerce(rank).gen_prev().to_string()


def between(left: RankLike, right: RankLike) -> str:
    return _coerce(left).between(_coerce(right)).to_string()


def parse(text: str) -> LexoRank:
    return LexoRank.parse(text)
