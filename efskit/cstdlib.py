"""Number parsing, integer division and a linear congruential generator.

``unsigned long`` and ``long`` are 64 bits wide and ``int`` is 32 bits wide.
Parsers report where parsing stopped and whether the value was out of range,
instead of setting ``errno``.
"""

from __future__ import annotations

from dataclasses import dataclass

from . import chartype

ULONG_MAX = (1 << 64) - 1
LONG_MAX = (1 << 63) - 1
LONG_MIN = -(1 << 63)
INT_MAX = (1 << 31) - 1
INT_MIN = -(1 << 31)
RAND_MAX = 32767
BASE_MAX = 36

_DIGIT_VALUES = {ch: value for value, ch in enumerate("0123456789abcdefghijklmnopqrstuvwxyz")}
_DIGIT_VALUES.update({ch.upper(): value for ch, value in list(_DIGIT_VALUES.items())})
_DECIMAL = "0123456789"
_EXPONENT_CAP = 100000


@dataclass(frozen=True)
class ParseResult:
    """A parsed value, the index just past it, and whether it was out of range.

    An ``end`` of 0 means nothing could be parsed.
    """

    value: int | float
    end: int
    overflow: bool = False


def _is_space(ch: str) -> bool:
    return ord(ch) <= 255 and chartype.isspace(ch)


def _skip_space(s: str) -> int:
    pos = 0
    while pos < len(s) and _is_space(s[pos]):
        pos += 1
    return pos


def _char(s: str, pos: int) -> str:
    return s[pos] if pos < len(s) else ""


def _parse_unsigned(s: str, base: int) -> tuple[ParseResult, bool]:
    """Core of ``strtoul``; also reports whether a minus sign was seen."""
    if base < 0 or base == 1 or base > BASE_MAX:
        raise ValueError(f"base must be 0 or between 2 and {BASE_MAX}, got {base}")
    pos = _skip_space(s)
    sign = _char(s, pos)
    negative = sign == "-"
    if sign in ("-", "+") and sign:
        pos += 1

    if base:
        if base == 16 and _char(s, pos) == "0" and _char(s, pos + 1) in ("x", "X") and _char(s, pos + 1):
            pos += 2
    elif _char(s, pos) != "0":
        base = 10
    elif _char(s, pos + 1) in ("x", "X") and _char(s, pos + 1):
        base = 16
        pos += 2
    else:
        base = 8

    first = pos
    while _char(s, pos) == "0":
        pos += 1
    value = 0
    while pos < len(s):
        digit = _DIGIT_VALUES.get(s[pos])
        if digit is None or digit >= base:
            break
        value = value * base + digit
        pos += 1

    if pos == first:
        return ParseResult(0, 0), negative

    overflow = value > ULONG_MAX
    if overflow:
        value = ULONG_MAX
    if negative:
        value = -value & ULONG_MAX
    return ParseResult(value, pos, overflow), negative


def strtoul(s: str, base: int = 10) -> ParseResult:
    """Parse an unsigned long; a leading minus negates modulo 2**64.

    ``base`` 0 picks 16 for a ``0x`` prefix, 8 for a leading zero and 10
    otherwise. Values past ``ULONG_MAX`` give ``ULONG_MAX`` and ``overflow``.
    """
    result, _ = _parse_unsigned(s, base)
    return result


def strtol(s: str, base: int = 10) -> ParseResult:
    """Parse a signed long, clamping to ``LONG_MIN``/``LONG_MAX`` on overflow."""
    result, negative = _parse_unsigned(s, base)
    value = int(result.value)
    if negative:
        if value and value <= LONG_MAX:
            return ParseResult(LONG_MIN, result.end, True)
        value = value - (1 << 64) if value else 0
    elif value > LONG_MAX:
        return ParseResult(LONG_MAX, result.end, True)
    return ParseResult(value, result.end, result.overflow)


def strtod(s: str) -> ParseResult:
    """Parse a decimal floating-point number with an optional exponent."""
    pos = _skip_space(s)
    negative = _char(s, pos) == "-"
    if _char(s, pos) in ("-", "+") and _char(s, pos):
        pos += 1

    whole: list[str] = []
    fraction: list[str] = []
    seen_point = False
    while pos < len(s):
        ch = s[pos]
        if ch == ".":
            if seen_point:
                break
            seen_point = True
        elif ch in _DECIMAL:
            (fraction if seen_point else whole).append(ch)
        else:
            break
        pos += 1

    if not whole and not fraction:
        return ParseResult(0.0, 0)

    exponent = 0
    if _char(s, pos) in ("e", "E") and _char(s, pos):
        scan = pos + 1
        exp_negative = _char(s, scan) == "-"
        if _char(s, scan) in ("-", "+") and _char(s, scan):
            scan += 1
        if _char(s, scan) in _DECIMAL and _char(s, scan):
            while scan < len(s) and s[scan] in _DECIMAL:
                if exponent < _EXPONENT_CAP:
                    exponent = exponent * 10 + int(s[scan])
                scan += 1
            if exp_negative:
                exponent = -exponent
            pos = scan

    text = f"{''.join(whole) or '0'}.{''.join(fraction) or '0'}e{exponent}"
    value = float(text)
    return ParseResult(-value if negative else value, pos)


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return value - (1 << bits) if value >> (bits - 1) else value


def atoi(s: str) -> int:
    """Parse a decimal int; the unsigned result is cut to 32 bits."""
    return _to_signed(int(strtoul(s, 10).value), 32)


def atol(s: str) -> int:
    """Parse a decimal long; the unsigned result is read as 64-bit signed."""
    return _to_signed(int(strtoul(s, 10).value), 64)


def _truncating_div(numer: int, denom: int, low: int, high: int) -> tuple[int, int]:
    for name, value in (("numerator", numer), ("denominator", denom)):
        if not low <= value <= high:
            raise OverflowError(f"{name} {value} out of range {low}..{high}")
    if denom == 0:
        raise ZeroDivisionError("integer division by zero")
    quot = abs(numer) // abs(denom)
    if (numer < 0) != (denom < 0):
        quot = -quot
    if not low <= quot <= high:
        raise OverflowError(f"quotient {quot} out of range {low}..{high}")
    return quot, numer - denom * quot


def div(numer: int, denom: int) -> tuple[int, int]:
    """Quotient rounded toward zero and remainder, for 32-bit ints."""
    return _truncating_div(numer, denom, INT_MIN, INT_MAX)


def ldiv(numer: int, denom: int) -> tuple[int, int]:
    """Quotient rounded toward zero and remainder, for 64-bit longs."""
    return _truncating_div(numer, denom, LONG_MIN, LONG_MAX)


class RandomGenerator:
    """A linear congruential generator yielding values in ``0..RAND_MAX``."""

    _MULTIPLIER = 1103515425
    _INCREMENT = 12345

    def __init__(self, seed: int = 1) -> None:
        self._state = 1
        self.seed(seed)

    def seed(self, value: int) -> None:
        """Restart the sequence from ``value`` (taken as a 32-bit unsigned int)."""
        self._state = value & 0xFFFFFFFF

    def rand(self) -> int:
        """Advance the generator and return the next value."""
        self._state = (self._state * self._MULTIPLIER + self._INCREMENT) & ULONG_MAX
        return ((self._state >> 16) & 0xFFFFFFFF) & RAND_MAX