"""Search predicate over memory snapshots.

Address and value matching combine with OR semantics: a row is kept when
either enabled predicate matches. At least one of the two is always enabled.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Optional, Tuple

from .engine import MemorySnapshot
from .formatting import FormatMode, format_value

SEARCH_ADDRESSES = "addresses"
SEARCH_VALUES = "values"

_FLAG_FIELDS = {
    SEARCH_ADDRESSES: ("search_addresses", "search_values"),
    SEARCH_VALUES: ("search_values", "search_addresses"),
}


@dataclass(frozen=True)
class SearchState:
    """Search box text and its settings for one memory table."""

    query: str = ""
    search_addresses: bool = True
    search_values: bool = False
    fuzzy: bool = True

    def __post_init__(self) -> None:
        if not (self.search_addresses or self.search_values):
            raise ValueError("at least one of addresses or values must be searched")

    def toggle(self, flag: str) -> "SearchState":
        """Flip ``flag`` ("addresses" or "values").

        Turning off the only enabled flag enables the other one instead.
        """
        try:
            own, other = _FLAG_FIELDS[flag]
        except KeyError:
            raise ValueError(f"Unknown search flag: {flag!r}") from None

        enabled = not getattr(self, own)
        if not enabled and not getattr(self, other):
            return replace(self, **{own: False, other: True})
        return replace(self, **{own: enabled})

    def toggle_fuzzy(self) -> "SearchState":
        return replace(self, fuzzy=not self.fuzzy)

    def with_query(self, query: str) -> "SearchState":
        return replace(self, query=query)

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "search_addresses": self.search_addresses,
            "search_values": self.search_values,
            "fuzzy": self.fuzzy,
        }


@dataclass(frozen=True)
class MemoryRow:
    address: int
    value: str
    alias: Optional[str] = None
    highlighted: bool = False

    @property
    def label(self) -> str:
        if self.alias:
            return f"{self.address} ({self.alias})"
        return str(self.address)

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "label": self.label,
            "alias": self.alias,
            "value": self.value,
            "highlighted": self.highlighted,
        }


def matches(text: str, query: str, fuzzy: bool) -> bool:
    """Fuzzy is case-insensitive containment, exact is string equality."""
    if fuzzy:
        return query.lower() in text.lower()
    return text == query


def row_matches(
    address: int,
    formatted_value: str,
    search: SearchState,
    aliases: Mapping[int, str],
) -> bool:
    if search.search_addresses:
        candidates = [str(address)]
        if address in aliases:
            candidates.append(aliases[address])
        if any(matches(text, search.query, search.fuzzy) for text in candidates):
            return True
    if search.search_values:
        if matches(formatted_value, search.query, search.fuzzy):
            return True
    return False


def filter_rows(
    snapshot: MemorySnapshot,
    search: SearchState,
    mode: FormatMode = FormatMode.HEX,
    aliases: Optional[Mapping[int, str]] = None,
    highlighted_address: Optional[int] = None,
) -> Tuple[MemoryRow, ...]:
    """Format every value and keep the rows matching ``search``.

    Rows come back in ascending address order. The highlighted address only
    marks its row, it never changes whether the row is kept.
    """
    aliases = aliases or {}
    rows = []
    for address in sorted(snapshot):
        value = format_value(snapshot[address], mode)
        if not row_matches(address, value, search, aliases):
            continue
        rows.append(
            MemoryRow(
                address=address,
                value=value,
                alias=aliases.get(address),
                highlighted=address == highlighted_address,
            )
        )
    return tuple(rows)
