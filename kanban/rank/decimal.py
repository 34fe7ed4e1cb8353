"""
Arbitrary precision base-36 fixed point numbers backing LexoRank keys.

A value is stored as an integer magnitude and a scale (number of base-36
digits after the radix point), so ``RankDecimal(54, 1)`` is ``1.i``.
Values are normalised: the fractional part never ends in a zero digit.
"""
import re
from functools import total_ordering
from typing import Tuple

from kanban.exceptions import MalformedKeyError

BASE = 36
DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
RADIX_POINT = ":"

_DECIMAL_RE = re.compile(r"^[0-9a-z]*(:[0-9a-z]*)?$")


def to_digits(value: int) -> str:
    """Format a non-negative integer in base 36."""
    if value < 0:
        raise ValueError("Cannot format a negative magnitude")
    if value == 0:
        return DIGITS[0]
    chars = []
    while value:
        value, remainder = divmod(value, BASE)
        chars.append(DIGITS[remainder])
    return "".join(reversed(chars))


@total_ordering
class RankDecimal:
    __slots__ = ("mag", "scale")

    def __init__(self, mag: int, scale: int = 0):
        if mag == 0:
            scale = 0
        while scale > 0 and mag % BASE == 0:
            mag //= BASE
            scale -= 1
        self.mag = mag
        self.scale = scale

    @classmethod
    def parse(cls, text: str) -> "RankDecimal":
        """Parse ``"<digits>[:<digits>]"``."""
        if not isinstance(text, str) or not _DECIMAL_RE.match(text):
            raise MalformedKeyError(f"Invalid rank decimal: {text!r}")

        integer_part, _, fraction = text.partition(RADIX_POINT)
        digits = integer_part + fraction
        if not digits:
            raise MalformedKeyError(f"Invalid rank decimal: {text!r}")
        return cls(int(digits, BASE), len(fraction))

    @classmethod
    def from_int(cls, value: int) -> "RankDecimal":
        return cls(value, 0)

    @classmethod
    def half(cls) -> "RankDecimal":
        return cls(BASE // 2, 1)

    # ---- arithmetic ----

    def _aligned(self, other: "RankDecimal") -> Tuple[int, int, int]:
        scale = max(self.scale, other.scale)
        left = self.mag * BASE ** (scale - self.scale)
        right = other.mag * BASE ** (scale - other.scale)
        return left, right, scale

    def __add__(self, other: "RankDecimal") -> "RankDecimal":
        left, right, scale = self._aligned(other)
        return RankDecimal(left + right, scale)

    def __sub__(self, other: "RankDecimal") -> "RankDecimal":
        left, right, scale = self._aligned(other)
        return RankDecimal(left - right, scale)

    def __mul__(self, other: "RankDecimal") -> "RankDecimal":
        return RankDecimal(self.mag * other.mag, self.scale + other.scale)

    def floor(self) -> "RankDecimal":
        return RankDecimal(self.mag // BASE ** self.scale, 0)

    def ceil(self) -> "RankDecimal":
        # normalised values with a scale always carry a fraction
        if self.scale == 0:
            return self
        return RankDecimal(self.floor().mag + 1, 0)

    def set_scale(self, scale: int, ceiling: bool = False) -> "RankDecimal":
        """Drop fraction digits beyond ``scale``, optionally rounding up."""
        if scale >= self.scale:
            return self
        scale = max(scale, 0)
        mag = self.mag // BASE ** (self.scale - scale)
        if ceiling:
            mag += 1
        return RankDecimal(mag, scale)

    # ---- comparison ----

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RankDecimal):
            return NotImplemented
        return self.mag == other.mag and self.scale == other.scale

    def __lt__(self, other: "RankDecimal") -> bool:
        left, right, _ = self._aligned(other)
        return left < right

    def __hash__(self) -> int:
        return hash((self.mag, self.scale))

    # ---- formatting ----

    def format(self) -> str:
        digits = to_digits(self.mag)
        if self.scale == 0:
            return digits
        digits = digits.rjust(self.scale + 1, DIGITS[0])
        return digits[:-self.scale] + RADIX_POINT + digits[-self.scale:]

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"RankDecimal({self.format()!r})"
