"""Value formatters used by the memory tables."""

from __future__ import annotations

from enum import Enum

from .engine import WORD_MASK

BINARY_WIDTH = 32


class FormatMode(Enum):
    """How memory values are displayed."""

    DECIMAL = "Decimal"
    HEX = "Hex"
    BINARY = "Binary"

    @classmethod
    def parse(cls, text: str) -> "FormatMode":
        for mode in cls:
            if mode.value.lower() == str(text).strip().lower():
                return mode
        raise ValueError(f"Unknown format mode: {text!r}")


def format_decimal(value: int) -> str:
    return str(value)


def format_hex(value: int) -> str:
    """Return ``0x`` followed by lowercase hex digits, without padding."""
    return f"0x{value:x}"


def format_binary(value: int) -> str:
    """Return the 32-bit two's complement bit string, MSB first."""
    return format(value & WORD_MASK, f"0{BINARY_WIDTH}b")


_FORMATTERS = {
    FormatMode.DECIMAL: format_decimal,
    FormatMode.HEX: format_hex,
    FormatMode.BINARY: format_binary,
}


def format_value(value: int, mode: FormatMode) -> str:
    return _FORMATTERS[mode](value)


def value_header(mode: FormatMode) -> str:
    if mode is FormatMode.BINARY:
        return "Value (MSB ... LSB)"
    return "Value"
