"""printf-style formatting with the conversions of a small embedded C library.

Supported specifiers are ``d i u x X o b f F e E g G c s p %`` with the flags
``0 - + space #``, a width and precision given as digits or ``*``, and the
length modifiers ``hh h l ll j z t``. Integers are reduced to the width that
the length modifier selects (32 bits by default), as a C ``va_arg`` would.
"""

from __future__ import annotations

import operator
import sys
from typing import Any, Callable, Iterator

from .cnumbers import FormatFlags, format_exponential, format_fixed, format_integer

_FLAG_CHARS = {
    "0": FormatFlags.ZEROPAD,
    "-": FormatFlags.LEFT,
    "+": FormatFlags.PLUS,
    " ": FormatFlags.SPACE,
    "#": FormatFlags.HASH,
}
_INTEGER_SPECIFIERS = "diuxXob"
_POINTER_WIDTH = 16


def _wrap_unsigned(value: int, bits: int) -> int:
    return value & ((1 << bits) - 1)


def _wrap_signed(value: int, bits: int) -> int:
    value = _wrap_unsigned(value, bits)
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _integer_bits(flags: FormatFlags) -> int:
    if flags & (FormatFlags.LONG | FormatFlags.LONG_LONG):
        return 64
    if flags & FormatFlags.CHAR:
        return 8
    if flags & FormatFlags.SHORT:
        return 16
    return 32


class _Arguments:
    """The variable arguments, consumed in order."""

    def __init__(self, args: tuple[Any, ...]) -> None:
        self._it = iter(args)

    def _next(self) -> Any:
        try:
            return next(self._it)
        except StopIteration:
            raise TypeError("not enough arguments for format string") from None

    def integer(self) -> int:
        value = self._next()
        try:
            return operator.index(value)
        except TypeError:
            raise TypeError(f"integer argument expected, got {type(value).__name__}") from None

    def real(self) -> float:
        value = self._next()
        if isinstance(value, (int, float)):
            return float(value)
        raise TypeError(f"number argument expected, got {type(value).__name__}")

    def character(self) -> str:
        value = self._next()
        if isinstance(value, str):
            if len(value) != 1:
                raise TypeError("character argument must be a single character")
            return value
        try:
            return chr(_wrap_unsigned(operator.index(value), 8))
        except TypeError:
            raise TypeError(f"character argument expected, got {type(value).__name__}") from None

    def string(self) -> str:
        value = self._next()
        if not isinstance(value, str):
            raise TypeError(f"string argument expected, got {type(value).__name__}")
        return value


def _read_number(fmt: str, pos: int) -> tuple[int, int]:
    start = pos
    while pos < len(fmt) and "0" <= fmt[pos] <= "9":
        pos += 1
    return int(fmt[start:pos]), pos


def _pad(text: str, width: int, flags: FormatFlags) -> str:
    return text.ljust(width) if flags & FormatFlags.LEFT else text.rjust(width)


def _convert_integer(
    spec: str, args: _Arguments, precision: int, width: int, flags: FormatFlags
) -> str:
    if spec in "xX":
        base = 16
    elif spec == "o":
        base = 8
    elif spec == "b":
        base = 2
    else:
        base = 10
        flags &= ~FormatFlags.HASH
    if spec == "X":
        flags |= FormatFlags.UPPERCASE
    if spec not in "id":
        flags &= ~(FormatFlags.PLUS | FormatFlags.SPACE)
    if flags & FormatFlags.PRECISION:
        flags &= ~FormatFlags.ZEROPAD

    bits = _integer_bits(flags)
    raw = args.integer()
    if spec in "id":
        value = _wrap_signed(raw, bits)
        return format_integer(abs(value), value < 0, base, precision, width, flags)
    return format_integer(_wrap_unsigned(raw, bits), False, base, precision, width, flags)


def _render(fmt: str, args: tuple[Any, ...]) -> Iterator[str]:
    arguments = _Arguments(args)
    pos = 0
    length = len(fmt)
    while pos < length:
        percent = fmt.find("%", pos)
        if percent < 0:
            yield fmt[pos:]
            return
        if percent > pos:
            yield fmt[pos:percent]
        pos = percent + 1

        flags = FormatFlags.NONE
        while pos < length and fmt[pos] in _FLAG_CHARS:
            flags |= _FLAG_CHARS[fmt[pos]]
            pos += 1

        width = 0
        if pos < length and fmt[pos].isdigit() and fmt[pos].isascii():
            width, pos = _read_number(fmt, pos)
        elif pos < length and fmt[pos] == "*":
            requested = _wrap_signed(arguments.integer(), 32)
            if requested < 0:
                flags |= FormatFlags.LEFT
                width = -requested
            else:
                width = requested
            pos += 1

        precision = 0
        if pos < length and fmt[pos] == ".":
            flags |= FormatFlags.PRECISION
            pos += 1
            if pos < length and fmt[pos].isdigit() and fmt[pos].isascii():
                precision, pos = _read_number(fmt, pos)
            elif pos < length and fmt[pos] == "*":
                requested = _wrap_signed(arguments.integer(), 32)
                precision = max(requested, 0)
                pos += 1

        if pos < length:
            modifier = fmt[pos]
            if modifier == "l":
                flags |= FormatFlags.LONG
                pos += 1
                if pos < length and fmt[pos] == "l":
                    flags |= FormatFlags.LONG_LONG
                    pos += 1
            elif modifier == "h":
                flags |= FormatFlags.SHORT
                pos += 1
                if pos < length and fmt[pos] == "h":
                    flags |= FormatFlags.CHAR
                    pos += 1
            elif modifier in "tjz":
                flags |= FormatFlags.LONG
                pos += 1

        if pos >= length:
            return
        spec = fmt[pos]
        pos += 1

        if spec in _INTEGER_SPECIFIERS:
            yield _convert_integer(spec, arguments, precision, width, flags)
        elif spec in "fF":
            if spec == "F":
                flags |= FormatFlags.UPPERCASE
            yield format_fixed(arguments.real(), precision, width, flags)
        elif spec in "eEgG":
            if spec in "gG":
                flags |= FormatFlags.ADAPT_EXP
            if spec in "EG":
                flags |= FormatFlags.UPPERCASE
            yield format_exponential(arguments.real(), precision, width, flags)
        elif spec == "c":
            yield _pad(arguments.character(), width, flags)
        elif spec == "s":
            text = arguments.string().split("\0", 1)[0]
            if flags & FormatFlags.PRECISION:
                text = text[:precision]
            yield _pad(text, width, flags)
        elif spec == "p":
            flags |= FormatFlags.ZEROPAD | FormatFlags.UPPERCASE
            value = _wrap_unsigned(arguments.integer(), 64)
            yield format_integer(value, False, 16, precision, _POINTER_WIDTH, flags)
        else:
            # '%%' and unknown specifiers both emit the character itself.
            yield spec


def format_string(fmt: str, *args: Any) -> str:
    """Return ``fmt`` with every conversion replaced by its formatted argument."""
    return "".join(_render(fmt, args))


def snprintf(count: int, fmt: str, *args: Any) -> tuple[str, int]:
    """Format into a buffer of ``count`` characters, terminator included.

    Returns the text that fits and the length the full output would have had;
    a length of ``count`` or more means the text was truncated.
    """
    if count < 0:
        raise ValueError("count must not be negative")
    full = format_string(fmt, *args)
    text = full[: count - 1] if count > 0 else ""
    return text, len(full)


def fctprintf(out: Callable[[str], Any], fmt: str, *args: Any) -> int:
    """Send each formatted character to ``out``; return the number produced."""
    full = format_string(fmt, *args)
    for ch in full:
        if ch != "\0":
            out(ch)
    return len(full)


def printf(fmt: str, *args: Any) -> int:
    """Write the formatted text to standard output; return its length."""
    full = format_string(fmt, *args)
    sys.stdout.write(full.replace("\0", ""))
    return len(full)