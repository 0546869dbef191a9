from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from legsim.formatting import (
    FormatMode,
    format_binary,
    format_hex,
    format_value,
    value_header,
)

u32 = st.integers(min_value=0, max_value=0xFFFFFFFF)


def test_hex_has_no_padding() -> None:
    assert format_value(255, FormatMode.HEX) == "0xff"
    assert format_hex(0) == "0x0"


def test_decimal_passes_through() -> None:
    assert format_value(4096, FormatMode.DECIMAL) == "4096"


def test_binary_example() -> None:
    assert format_binary(5) == "00000000000000000000000000000101"


def test_binary_negative_is_twos_complement() -> None:
    assert format_binary(-1) == "1" * 32


@given(u32)
def test_binary_is_always_32_bits(value: int) -> None:
    text = format_value(value, FormatMode.BINARY)
    assert len(text) == 32
    assert int(text, 2) == value


@given(u32)
def test_hex_is_stable(value: int) -> None:
    assert format_value(value, FormatMode.HEX) == format_value(value, FormatMode.HEX)
    assert int(format_value(value, FormatMode.HEX), 16) == value


def test_value_header_mentions_bit_order_for_binary() -> None:
    assert value_header(FormatMode.BINARY) == "Value (MSB ... LSB)"
    assert value_header(FormatMode.HEX) == "Value"


@pytest.mark.parametrize("text", ["hex", "HEX", " Hex "])
def test_parse_format_mode(text: str) -> None:
    assert FormatMode.parse(text) is FormatMode.HEX


def test_parse_unknown_format_mode() -> None:
    with pytest.raises(ValueError):
        FormatMode.parse("octal")
