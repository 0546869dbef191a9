"""Memory images offered in the example picker."""

from __future__ import annotations

from typing import Dict, Tuple


def _words(*words: int) -> bytes:
    return b"".join(word.to_bytes(4, "big") for word in words)


EXAMPLE_IMAGES: Dict[str, bytes] = {
    # A single word program.
    "halt": bytes([0, 0, 128, 32]),
    "countdown": _words(
        0x00000005,
        0x10A00001,
        0x20A0FFFF,
        0x30000001,
        0x00008020,
    ),
    "fill": _words(*range(0x100, 0x110)),
}


def example_names() -> Tuple[str, ...]:
    return tuple(sorted(EXAMPLE_IMAGES))


def get_example(name: str) -> bytes:
    try:
        return EXAMPLE_IMAGES[name]
    except KeyError:
        raise KeyError(f"Unknown example: {name!r}") from None
