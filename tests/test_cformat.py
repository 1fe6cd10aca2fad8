import pytest

from efskit.cformat import fctprintf, format_string, printf, snprintf


@pytest.mark.parametrize(
    "fmt, args",
    [
        ("%d", (42,)),
        ("%i", (-7,)),
        ("%5d", (42,)),
        ("%-5d|", (42,)),
        ("%+d", (5,)),
        ("% d", (5,)),
        ("%05d", (-42,)),
        ("%.3d", (7,)),
        ("%x", (255,)),
        ("%X", (48879,)),
        ("%#x", (255,)),
        ("%o", (8,)),
        ("%s", ("hello",)),
        ("%10s|", ("hi",)),
        ("%-10s|", ("hi",)),
        ("%.2s", ("hello",)),
        ("%.0s|", ("hello",)),
        ("%c", (65,)),
        ("%c", ("Z",)),
        ("100%%", ()),
        ("%.2f", (2.5,)),
        ("%f", (3.14159,)),
        ("%.1f", (-0.5,)),
        ("%e", (1.5,)),
        ("%e", (-1.5,)),
        ("%f", (float("inf"),)),
        ("%f", (float("-inf"),)),
        ("%+f", (float("inf"),)),
        ("%f", (float("nan"),)),
        ("%*d|", (5, 42)),
        ("%*d|", (-5, 42)),
        ("%.*f", (3, 1.25)),
        ("[%s=%d]", ("n", 3)),
    ],
)
def test_matches_standard_formatting(fmt, args):
    assert format_string(fmt, *args) == fmt % args


def test_binary_conversion():
    assert format_string("%b", 5) == format(5, "b")


def test_pointer_is_zero_padded_upper_hex():
    assert format_string("%p", 0x1234) == format(0x1234, "016X")


def test_unsigned_wraps_to_64_bits_with_long():
    assert format_string("%lu", -1) == str(2**64 - 1)


def test_short_signed_wraps():
    assert format_string("%hd", 65535) == "-1"


def test_char_length_modifier_matches_wrapped_value():
    assert format_string("%hhu", 0x1FF) == format_string("%u", 0xFF)


def test_large_fixed_value_switches_to_exponential():
    assert format_string("%f", 1e10) == format_string("%e", 1e10)


def test_unknown_specifier_emits_itself():
    assert format_string("%q") == "q"


def test_missing_argument_raises():
    with pytest.raises(TypeError):
        format_string("%d %d", 1)


def test_wrong_argument_type_raises():
    with pytest.raises(TypeError):
        format_string("%d", "text")
    with pytest.raises(TypeError):
        format_string("%s", 3)


def test_snprintf_truncates_and_reports_full_length():
    full = format_string("%d-%s", 12345, "abc")
    text, length = snprintf(4, "%d-%s", 12345, "abc")
    assert text == full[:3]
    assert length == len(full)


def test_snprintf_zero_count_writes_nothing():
    text, length = snprintf(0, "%s", "abc")
    assert text == ""
    assert length == 3


def test_snprintf_large_count_holds_everything():
    full = format_string("%08.3f", 3.5)
    assert snprintf(64, "%08.3f", 3.5) == (full, len(full))


def test_snprintf_rejects_negative_count():
    with pytest.raises(ValueError):
        snprintf(-1, "x")


def test_fctprintf_sends_every_character():
    received = []
    count = fctprintf(received.append, "%s:%5d", "id", 17)
    assert "".join(received) == format_string("%s:%5d", "id", 17)
    assert count == len(received)


def test_fctprintf_skips_nul_characters():
    received = []
    count = fctprintf(received.append, "a%cb", 0)
    assert "".join(received) == "ab"
    assert count == 3


def test_printf_writes_to_stdout(capsys):
    count = printf("%s %d\n", "value", 9)
    captured = capsys.readouterr().out
    assert captured == "value 9\n"
    assert count == len(captured)