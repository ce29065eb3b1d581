import io

import pytest

from xv6sim.cstring import (
    atoi,
    gets,
    memcmp,
    safestrcpy,
    strchr,
    strcmp,
    strlen,
    strncmp,
    strncpy,
)


def test_memcmp_equal():
    assert memcmp(b"abc", b"abc", 3) == 0


def test_memcmp_difference_sign():
    assert memcmp(b"abc", b"abd", 3) < 0
    assert memcmp(b"abd", b"abc", 3) > 0


def test_memcmp_prefix_only():
    assert memcmp(b"abc", b"abd", 2) == 0


def test_memcmp_does_not_stop_at_nul():
    assert memcmp(b"a\0b", b"a\0c", 3) < 0


def test_memcmp_too_long():
    with pytest.raises(ValueError):
        memcmp(b"ab", b"abc", 3)


def test_strcmp():
    assert strcmp(b"hello", b"hello") == 0
    assert strcmp(b"abc", b"abd") < 0
    assert strcmp(b"abc", b"ab") > 0
    assert strcmp(b"ab", b"abc") < 0


def test_strcmp_stops_at_nul():
    assert strcmp(b"ab\0x", b"ab\0y") == 0


def test_strcmp_accepts_str():
    assert strcmp("same", b"same") == 0


def test_strncmp():
    assert strncmp(b"abcdef", b"abcxyz", 3) == 0
    assert strncmp(b"abcdef", b"abcxyz", 4) < 0
    assert strncmp(b"x", b"y", 0) == 0


def test_strncmp_negative():
    with pytest.raises(ValueError):
        strncmp(b"a", b"b", -1)


def test_strncpy_pads():
    result = strncpy(b"hi", 5)
    assert len(result) == 5
    assert result.startswith(b"hi")
    assert set(result[2:]) == {0}


def test_strncpy_truncates_without_terminator():
    assert strncpy(b"abcdef", 3) == b"abc"


@pytest.mark.parametrize("n", [1, 2, 5, 20])
def test_safestrcpy_terminates(n):
    src = b"hello"
    result = safestrcpy(src, n)
    assert result.endswith(b"\0")
    assert len(result) <= n
    assert src.startswith(result[:-1])


def test_safestrcpy_nonpositive():
    assert safestrcpy(b"abc", 0) == b""


def test_strlen():
    assert strlen(b"abc\0def") == len(b"abc")
    assert strlen(b"") == 0


def test_strchr():
    assert strchr(b"hello", "l") == b"hello".index(b"l")
    assert strchr(b"hello", b"z") is None


def test_strchr_nul_never_found():
    assert strchr(b"ab\0cd", 0) is None
    assert strchr(b"ab\0cd", "c") is None


def test_atoi():
    assert atoi("123abc") == 123
    assert atoi(b"42") == 42
    assert atoi("-5") == 0
    assert atoi("") == 0


def test_gets_stops_after_newline():
    stream = io.BytesIO(b"line one\nline two")
    assert gets(stream, 100) == b"line one\n"
    assert gets(stream, 100) == b"line two"
    assert gets(stream, 100) == b""


def test_gets_stops_after_cr():
    assert gets(io.BytesIO(b"ab\rcd"), 100) == b"ab\r"


def test_gets_respects_limit():
    stream = io.BytesIO(b"abcdef")
    assert gets(stream, 4) == b"abc"
    assert gets(stream, 4) == b"def"