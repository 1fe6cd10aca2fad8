"""Number conversions behind the printf family: integers, fixed and exponential floats.

Each function returns the converted text with padding and sign applied, the
way a single ``%d``/``%x``/``%f``/``%e``/``%g`` conversion would produce it.
Intermediate digit buffers are limited to 32 characters, so very long
conversions are cut short rather than growing without bound.
"""

from __future__ import annotations

import math
import struct
from enum import IntFlag

_BUFFER_SIZE = 32
_DEFAULT_FLOAT_PRECISION = 6
_MAX_FLOAT = 1e9
_POW10 = (1, 10, 100, 1000, 10000, 100000, 1000000, 10000000, 100000000, 1000000000)
_UINT_MASK = 0xFFFFFFFF
_U64_MASK = (1 << 64) - 1


class FormatFlags(IntFlag):
    """Conversion flags, as gathered from a format specifier."""

    NONE = 0
    ZEROPAD = 1 << 0
    LEFT = 1 << 1
    PLUS = 1 << 2
    SPACE = 1 << 3
    HASH = 1 << 4
    UPPERCASE = 1 << 5
    CHAR = 1 << 6
    SHORT = 1 << 7
    LONG = 1 << 8
    LONG_LONG = 1 << 9
    PRECISION = 1 << 10
    ADAPT_EXP = 1 << 11


def _check_sizes(precision: int, width: int) -> None:
    if precision < 0:
        raise ValueError("precision must not be negative")
    if width < 0:
        raise ValueError("width must not be negative")


def _out_rev(reversed_chars: list[str], width: int, flags: FormatFlags) -> str:
    """Emit a reversed buffer, padding with spaces up to ``width``."""
    text = "".join(reversed(reversed_chars))
    if not flags & FormatFlags.LEFT and not flags & FormatFlags.ZEROPAD:
        text = text.rjust(width)
    if flags & FormatFlags.LEFT:
        text = text.ljust(width)
    return text


def _sign_char(negative: bool, flags: FormatFlags) -> str | None:
    if negative:
        return "-"
    if flags & FormatFlags.PLUS:
        return "+"
    if flags & FormatFlags.SPACE:
        return " "
    return None


def _ntoa_format(
    buf: list[str],
    negative: bool,
    base: int,
    prec: int,
    width: int,
    flags: FormatFlags,
) -> str:
    if not flags & FormatFlags.LEFT:
        if (
            width
            and flags & FormatFlags.ZEROPAD
            and (negative or flags & (FormatFlags.PLUS | FormatFlags.SPACE))
        ):
            width -= 1
        while len(buf) < prec and len(buf) < _BUFFER_SIZE:
            buf.append("0")
        while flags & FormatFlags.ZEROPAD and len(buf) < width and len(buf) < _BUFFER_SIZE:
            buf.append("0")

    if flags & FormatFlags.HASH:
        if not flags & FormatFlags.PRECISION and buf and (len(buf) == prec or len(buf) == width):
            buf.pop()
            if buf and base == 16:
                buf.pop()
        if base == 16 and len(buf) < _BUFFER_SIZE:
            buf.append("X" if flags & FormatFlags.UPPERCASE else "x")
        elif base == 2 and len(buf) < _BUFFER_SIZE:
            buf.append("b")
        if len(buf) < _BUFFER_SIZE:
            buf.append("0")

    if len(buf) < _BUFFER_SIZE:
        sign = _sign_char(negative, flags)
        if sign is not None:
            buf.append(sign)

    return _out_rev(buf, width, flags)


def format_integer(
    value: int,
    negative: bool = False,
    base: int = 10,
    precision: int = 0,
    width: int = 0,
    flags: int = FormatFlags.NONE,
) -> str:
    """Convert the magnitude ``value`` in ``base``; ``negative`` adds a minus sign."""
    if value < 0:
        raise ValueError("value is a magnitude and must not be negative")
    if not 2 <= base <= 36:
        raise ValueError(f"base must be between 2 and 36, got {base}")
    _check_sizes(precision, width)
    flags = FormatFlags(flags)

    if not value:
        flags &= ~FormatFlags.HASH

    letter = "A" if flags & FormatFlags.UPPERCASE else "a"
    buf: list[str] = []
    if not flags & FormatFlags.PRECISION or value:
        while True:
            value, digit = divmod(value, base)
            buf.append(chr(ord("0") + digit) if digit < 10 else chr(ord(letter) + digit - 10))
            if not value or len(buf) >= _BUFFER_SIZE:
                break

    return _ntoa_format(buf, negative, base, precision, width, flags)


def format_fixed(
    value: float,
    precision: int = 0,
    width: int = 0,
    flags: int = FormatFlags.NONE,
) -> str:
    """Fixed-point conversion (``%f``); precision applies only with PRECISION set."""
    _check_sizes(precision, width)
    flags = FormatFlags(flags)
    value = float(value)

    if math.isnan(value):
        return _out_rev(list("nan"), width, flags)
    if value == -math.inf:
        return _out_rev(list("fni-"), width, flags)
    if value == math.inf:
        text = "fni+" if flags & FormatFlags.PLUS else "fni"
        return _out_rev(list(text), width, flags)

    # Every whole digit of a huge number would overflow the buffer.
    if value > _MAX_FLOAT or value < -_MAX_FLOAT:
        return format_exponential(value, precision, width, flags)

    negative = value < 0
    if negative:
        value = 0 - value

    prec = precision if flags & FormatFlags.PRECISION else _DEFAULT_FLOAT_PRECISION
    buf: list[str] = []
    while len(buf) < _BUFFER_SIZE and prec > 9:
        buf.append("0")
        prec -= 1

    whole = int(value)
    tmp = (value - whole) * _POW10[prec]
    frac = int(tmp)
    diff = tmp - frac

    if diff > 0.5:
        frac += 1
        if frac >= _POW10[prec]:
            frac = 0
            whole += 1
    elif diff < 0.5:
        pass
    elif frac == 0 or frac & 1:
        frac += 1

    if prec == 0:
        diff = value - whole
        if (not diff < 0.5 or diff > 0.5) and whole & 1:
            whole += 1
    else:
        count = prec
        while len(buf) < _BUFFER_SIZE:
            count = (count - 1) & _UINT_MASK
            frac, digit = divmod(frac, 10)
            buf.append(chr(48 + digit))
            if not frac:
                break
        while len(buf) < _BUFFER_SIZE and count > 0:
            count -= 1
            buf.append("0")
        if len(buf) < _BUFFER_SIZE:
            buf.append(".")

    while len(buf) < _BUFFER_SIZE:
        whole, digit = divmod(whole, 10)
        buf.append(chr(48 + digit))
        if not whole:
            break

    if not flags & FormatFlags.LEFT and flags & FormatFlags.ZEROPAD:
        if width and (negative or flags & (FormatFlags.PLUS | FormatFlags.SPACE)):
            width -= 1
        while len(buf) < width and len(buf) < _BUFFER_SIZE:
            buf.append("0")

    if len(buf) < _BUFFER_SIZE:
        sign = _sign_char(negative, flags)
        if sign is not None:
            buf.append(sign)

    return _out_rev(buf, width, flags)


def _to_bits(value: float) -> int:
    return struct.unpack("<Q", struct.pack("<d", value))[0]


def _from_bits(bits: int) -> float:
    return struct.unpack("<d", struct.pack("<Q", bits & _U64_MASK))[0]


def format_exponential(
    value: float,
    precision: int = 0,
    width: int = 0,
    flags: int = FormatFlags.NONE,
) -> str:
    """Exponential conversion (``%e``), or ``%g`` when ADAPT_EXP is set."""
    _check_sizes(precision, width)
    flags = FormatFlags(flags)
    value = float(value)

    if math.isnan(value) or math.isinf(value):
        return format_fixed(value, precision, width, flags)

    negative = value < 0
    if negative:
        value = -value

    prec = precision if flags & FormatFlags.PRECISION else _DEFAULT_FLOAT_PRECISION

    # Estimate the decimal exponent from the binary one.
    bits = _to_bits(value)
    exp2 = ((bits >> 52) & 0x7FF) - 1023
    mantissa = _from_bits((bits & ((1 << 52) - 1)) | (1023 << 52))
    expval = int(
        0.1760912590558 + exp2 * 0.301029995663981 + (mantissa - 1.5) * 0.289529654602168
    )
    exp2 = int(expval * 3.321928094887362 + 0.5)
    z = expval * 2.302585092994046 - exp2 * 0.6931471805599453
    z2 = z * z
    scale = _from_bits((exp2 + 1023) << 52)
    scale *= 1 + 2 * z / (2 - z + (z2 / (6 + (z2 / (10 + z2 / 14)))))
    if value < scale:
        expval -= 1
        scale /= 10

    minwidth = 4 if -100 < expval < 100 else 5

    if flags & FormatFlags.ADAPT_EXP:
        if 1e-4 <= value < 1e6:
            prec = prec - expval - 1 if prec > expval else 0
            flags |= FormatFlags.PRECISION
            minwidth = 0
            expval = 0
        elif prec > 0 and flags & FormatFlags.PRECISION:
            prec -= 1

    fwidth = width - minwidth if width > minwidth else 0
    if flags & FormatFlags.LEFT and minwidth:
        fwidth = 0

    if expval:
        value /= scale

    text = format_fixed(
        -value if negative else value, prec, fwidth, flags & ~FormatFlags.ADAPT_EXP
    )

    if minwidth:
        text += "E" if flags & FormatFlags.UPPERCASE else "e"
        text += format_integer(
            abs(expval),
            expval < 0,
            10,
            0,
            minwidth - 1,
            FormatFlags.ZEROPAD | FormatFlags.PLUS,
        )
        if flags & FormatFlags.LEFT:
            text = text.ljust(width)
    return text