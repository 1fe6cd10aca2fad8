import pytest

from efskit.cnumbers import (
    FormatFlags,
    format_exponential,
    format_fixed,
    format_integer,
)

F = FormatFlags


@pytest.mark.parametrize("value", [0, 1, 9, 10, 255, 4096, 123456789, 2**40])
def test_decimal_matches_str(value):
    assert format_integer(value, False, 10, 0, 0, F.NONE) == str(value)


@pytest.mark.parametrize(
    "value, base, spec",
    [(255, 16, "%x"), (3054, 16, "%x"), (8, 8, "%o"), (511, 8, "%o"), (77, 10, "%d")],
)
def test_bases_match_percent_format(value, base, spec):
    assert format_integer(value, False, base, 0, 0, F.NONE) == spec % value


def test_uppercase_hex_with_hash():
    result = format_integer(255, False, 16, 0, 0, F.HASH | F.UPPERCASE)
    assert result == "%#X" % 255


def test_binary_with_hash_prefix():
    assert format_integer(5, False, 2, 0, 0, F.HASH) == "0b" + format(5, "b")


def test_negative_zero_padded():
    assert format_integer(42, True, 10, 0, 6, F.ZEROPAD) == "%06d" % -42


def test_left_justified():
    assert format_integer(7, False, 10, 0, 6, F.LEFT) == "%-6d" % 7


def test_plus_flag():
    assert format_integer(9, False, 10, 0, 0, F.PLUS) == "%+d" % 9


def test_right_aligned_width():
    assert format_integer(31, False, 10, 0, 5, F.NONE) == "%5d" % 31


def test_zero_with_zero_precision_prints_nothing():
    assert format_integer(0, False, 10, 0, 0, F.PRECISION) == ""


def test_precision_pads_with_zeros():
    assert format_integer(12, False, 10, 5, 0, F.PRECISION) == "%.5d" % 12


def test_digit_buffer_is_capped():
    result = format_integer(1, False, 10, 40, 0, F.PRECISION)
    assert len(result) == 32
    assert set(result[:-1]) == {"0"}


def test_integer_rejects_negative_magnitude():
    with pytest.raises(ValueError):
        format_integer(-1)


def test_integer_rejects_bad_base():
    with pytest.raises(ValueError):
        format_integer(10, False, 1)


@pytest.mark.parametrize(
    "value, precision, spec",
    [
        (3.25, 2, "%.2f"),
        (-2.71828, 3, "%.3f"),
        (1234.5678, 1, "%.1f"),
        (0.99, 1, "%.1f"),
        (42.0, 0, "%.0f"),
    ],
)
def test_fixed_matches_percent_format(value, precision, spec):
    assert format_fixed(value, precision, 0, F.PRECISION) == spec % value


def test_fixed_default_precision():
    assert format_fixed(1.5, 0, 0, F.NONE) == "%f" % 1.5


def test_fixed_zero_padded_negative():
    assert format_fixed(-3.5, 2, 8, F.ZEROPAD | F.PRECISION) == "%08.2f" % -3.5


def test_fixed_width_right_aligned():
    assert format_fixed(2.5, 1, 7, F.PRECISION) == "%7.1f" % 2.5


def test_fixed_special_values():
    assert format_fixed(float("nan")) == "nan"
    assert format_fixed(float("-inf")) == "-inf"
    assert format_fixed(float("inf"), 0, 0, F.PLUS) == "+inf"
    assert format_fixed(float("inf")) == "inf"


def test_fixed_large_value_switches_to_exponential():
    result = format_fixed(2.5e10, 2, 0, F.PRECISION)
    assert result == format_exponential(2.5e10, 2, 0, F.PRECISION)
    assert result == "%.2e" % 2.5e10


def test_exponential_basic():
    assert format_exponential(12345.678, 2, 0, F.PRECISION) == "%.2e" % 12345.678


def test_exponential_negative_uppercase_small():
    result = format_exponential(-0.000123, 3, 0, F.PRECISION | F.UPPERCASE)
    assert result == "%.3E" % -0.000123


def test_exponential_width_right_and_left():
    assert format_exponential(2.5e10, 2, 12, F.PRECISION) == "%12.2e" % 2.5e10
    assert format_exponential(2.5e10, 2, 12, F.PRECISION | F.LEFT) == "%-12.2e" % 2.5e10


def test_adaptive_large_value_uses_exponent():
    result = format_exponential(1234567.0, 3, 0, F.ADAPT_EXP | F.PRECISION)
    assert result == "%.3g" % 1234567.0


def test_adaptive_moderate_value_falls_back_to_fixed():
    assert format_exponential(0.5, 0, 0, F.ADAPT_EXP) == "%f" % 0.5


def test_exponential_special_values_defer_to_fixed():
    assert format_exponential(float("nan")) == format_fixed(float("nan"))
    assert format_exponential(float("-inf")) == format_fixed(float("-inf"))


def test_negative_width_rejected():
    with pytest.raises(ValueError):
        format_fixed(1.0, 0, -1)
    with pytest.raises(ValueError):
        format_exponential(1.0, -2, 0)