import pytest

from efskit import cstdlib
from efskit.cstdlib import ParseResult, RandomGenerator


def test_strtoul_stops_at_first_non_digit():
    result = cstdlib.strtoul("  42abc", 10)
    assert result == ParseResult(42, 4, False)


@pytest.mark.parametrize("n", [0, 1, 7, 255, 4096, 123456789, 2**40 + 3, 2**64 - 1])
@pytest.mark.parametrize("base", [2, 8, 10, 16, 36])
def test_strtoul_round_trips_through_base(n, base):
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    text = ""
    value = n
    while True:
        value, d = divmod(value, base)
        text = digits[d] + text
        if not value:
            break
    result = cstdlib.strtoul(text, base)
    assert result.value == n
    assert result.end == len(text)
    assert not result.overflow


def test_strtoul_accepts_hex_prefix_and_upper_case():
    assert cstdlib.strtoul("0XfF", 16).value == cstdlib.strtoul("ff", 16).value
    assert cstdlib.strtoul("0x10", 0).value == cstdlib.strtoul("10", 16).value


def test_strtoul_base_zero_detection():
    assert cstdlib.strtoul("123", 0).value == cstdlib.strtoul("123", 10).value
    assert cstdlib.strtoul("0755", 0).value == cstdlib.strtoul("755", 8).value


@pytest.mark.parametrize("text", ["", "   ", "xyz", "+", "-", "0x"])
def test_strtoul_without_digits_parses_nothing(text):
    assert cstdlib.strtoul(text, 16 if text == "0x" else 10) == ParseResult(0, 0)


def test_strtoul_overflow_clamps():
    result = cstdlib.strtoul("99999999999999999999999", 10)
    assert result.overflow
    assert result.value == cstdlib.ULONG_MAX
    assert result.end == 23


def test_strtoul_negates_modulo_word():
    assert cstdlib.strtoul("-1", 10).value == cstdlib.ULONG_MAX


@pytest.mark.parametrize("base", [-1, 1, 37])
def test_strtoul_rejects_bad_base(base):
    with pytest.raises(ValueError):
        cstdlib.strtoul("10", base)


@pytest.mark.parametrize("n", [0, 5, -5, 1000, -123456, cstdlib.LONG_MAX, cstdlib.LONG_MIN])
def test_strtol_round_trips(n):
    text = str(n)
    result = cstdlib.strtol(text, 10)
    assert result.value == n
    assert result.end == len(text)
    assert not result.overflow


def test_strtol_clamps_both_ways():
    high = cstdlib.strtol("9223372036854775808", 10)
    assert high.value == cstdlib.LONG_MAX and high.overflow
    low = cstdlib.strtol("-9223372036854775809", 10)
    assert low.value == cstdlib.LONG_MIN and low.overflow


@pytest.mark.parametrize(
    "text", ["0", "3.25", "-2.5e-2", "1e3", "+.5", "7.", "123456.789e+4", "-0.001E2"]
)
def test_strtod_matches_float(text):
    result = cstdlib.strtod(text)
    assert result.value == float(text)
    assert result.end == len(text)


def test_strtod_stops_at_trailing_text():
    result = cstdlib.strtod("  3.25xyz")
    assert result.value == 3.25
    assert result.end == 6


def test_strtod_ignores_incomplete_exponent():
    result = cstdlib.strtod("1e+")
    assert result.value == 1.0
    assert result.end == 1


def test_strtod_second_point_ends_number():
    result = cstdlib.strtod("1.2.3")
    assert result.value == 1.2
    assert result.end == 3


@pytest.mark.parametrize("text", ["", ".", "-", "abc", "e5"])
def test_strtod_without_digits_parses_nothing(text):
    assert cstdlib.strtod(text) == ParseResult(0.0, 0)


def test_strtod_huge_exponent_gives_infinity():
    assert cstdlib.strtod("1e999").value == float("inf")


def test_atoi_and_atol_parse_decimal():
    assert cstdlib.atoi("  -17xyz") == -17
    assert cstdlib.atol("9000000000") == 9000000000


def test_atoi_overflow_reads_as_minus_one():
    assert cstdlib.atoi("99999999999999999999") == -1


@pytest.mark.parametrize("numer", [-9, -7, -1, 0, 1, 7, 9, 100])
@pytest.mark.parametrize("denom", [-4, -2, -1, 1, 2, 3])
def test_div_truncates_toward_zero(numer, denom):
    quot, rem = cstdlib.div(numer, denom)
    assert quot * denom + rem == numer
    assert abs(rem) < abs(denom)
    assert rem == 0 or (rem < 0) == (numer < 0)
    assert cstdlib.ldiv(numer, denom) == (quot, rem)


def test_div_negative_numerator():
    assert cstdlib.div(-7, 2) == (-3, -1)


def test_div_by_zero_raises():
    with pytest.raises(ZeroDivisionError):
        cstdlib.div(1, 0)
    with pytest.raises(ZeroDivisionError):
        cstdlib.ldiv(1, 0)


def test_div_rejects_values_outside_int():
    with pytest.raises(OverflowError):
        cstdlib.div(cstdlib.INT_MAX + 1, 2)


def test_rand_first_value_from_default_seed():
    assert RandomGenerator().rand() == 16838


def test_rand_is_reproducible_and_bounded():
    first = RandomGenerator(1234)
    second = RandomGenerator(1234)
    values = [first.rand() for _ in range(200)]
    assert values == [second.rand() for _ in range(200)]
    assert all(0 <= v <= cstdlib.RAND_MAX for v in values)


def test_reseeding_restarts_sequence():
    gen = RandomGenerator(99)
    values = [gen.rand() for _ in range(10)]
    gen.seed(99)
    assert [gen.rand() for _ in range(10)] == values
    assert RandomGenerator(1).rand() == RandomGenerator().rand()