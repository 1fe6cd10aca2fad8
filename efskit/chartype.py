"""Character classification and case mapping for the C locale.

Each function takes a character code in ``-1..255`` (``-1`` being ``EOF``)
or a single character whose code lies in ``0..255``. Codes from 128 upwards
belong to no class and map to themselves.
"""

from __future__ import annotations

import operator
from typing import overload

EOF = -1

# Class bits, one per kind of character.
XA = 0x200  # extra alphabetic
XS = 0x100  # extra space
BB = 0x80  # BEL, BS and other control characters
CN = 0x40  # \t \n \v \f \r
DI = 0x20  # decimal digit
LO = 0x10  # lower case
PU = 0x08  # punctuation
SP = 0x04  # space
UP = 0x02  # upper case
XD = 0x01  # hex digit


def _build_ctype() -> tuple[int, ...]:
    table = [0] * 256
    spans = (
        (0x00, 0x08, BB),
        (0x09, 0x0D, CN),
        (0x0E, 0x1F, BB),
        (0x20, 0x20, SP),
        (0x21, 0x2F, PU),
        (0x30, 0x39, DI | XD),
        (0x3A, 0x40, PU),
        (0x41, 0x46, UP | XD),
        (0x47, 0x5A, UP),
        (0x5B, 0x60, PU),
        (0x61, 0x66, LO | XD),
        (0x67, 0x7A, LO),
        (0x7B, 0x7E, PU),
        (0x7F, 0x7F, BB),
    )
    for first, last, bits in spans:
        table[first:last + 1] = [bits] * (last - first + 1)
    return tuple(table)


_CTYPE = _build_ctype()
_TOLOWER = tuple(c + 0x20 if 0x41 <= c <= 0x5A else c for c in range(256))
_TOUPPER = tuple(c - 0x20 if 0x61 <= c <= 0x7A else c for c in range(256))


def _code(c: int | str) -> int:
    if isinstance(c, str):
        if len(c) != 1:
            raise TypeError(f"expected a single character, got {c!r}")
        code = ord(c)
    else:
        code = operator.index(c)
    if not EOF <= code <= 255:
        raise ValueError(f"character code {code} outside -1..255")
    return code


def _bits(c: int | str) -> int:
    code = _code(c)
    return 0 if code == EOF else _CTYPE[code]


def isalnum(c: int | str) -> bool:
    """Letter or decimal digit."""
    return bool(_bits(c) & (DI | LO | UP | XA))


def isalpha(c: int | str) -> bool:
    """Letter."""
    return bool(_bits(c) & (LO | UP | XA))


def iscntrl(c: int | str) -> bool:
    """Control character."""
    return bool(_bits(c) & (BB | CN))


def isdigit(c: int | str) -> bool:
    """Decimal digit."""
    return bool(_bits(c) & DI)


def isgraph(c: int | str) -> bool:
    """Printable character other than space."""
    return bool(_bits(c) & (DI | LO | PU | UP | XA))


def islower(c: int | str) -> bool:
    """Lower-case letter."""
    return bool(_bits(c) & LO)


def isprint(c: int | str) -> bool:
    """Printable character, space included."""
    return bool(_bits(c) & (DI | LO | PU | UP | XA | SP))


def ispunct(c: int | str) -> bool:
    """Punctuation character."""
    return bool(_bits(c) & PU)


def isspace(c: int | str) -> bool:
    """White space: space, tab, newline, vertical tab, form feed, return."""
    return bool(_bits(c) & (CN | SP | XS))


def isupper(c: int | str) -> bool:
    """Upper-case letter."""
    return bool(_bits(c) & UP)


def isxdigit(c: int | str) -> bool:
    """Hexadecimal digit."""
    return bool(_bits(c) & XD)


@overload
def tolower(c: str) -> str: ...
@overload
def tolower(c: int) -> int: ...


def tolower(c):
    """Lower-case counterpart; a character in gives a character out."""
    code = _code(c)
    mapped = code if code == EOF else _TOLOWER[code]
    return chr(mapped) if isinstance(c, str) else mapped


@overload
def toupper(c: str) -> str: ...
@overload
def toupper(c: int) -> int: ...


def toupper(c):
    """Upper-case counterpart; a character in gives a character out."""
    code = _code(c)
    mapped = code if code == EOF else _TOUPPER[code]
    return chr(mapped) if isinstance(c, str) else mapped