"""View model for one memory table (registers, DRAM or cache)."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .engine import MemorySnapshot
from .filtering import MemoryRow, SearchState, filter_rows
from .formatting import FormatMode, value_header


@dataclass(frozen=True)
class MemoryTableView:
    """Everything the display needs to draw one memory table."""

    title: str
    address_column: str
    value_column: str
    format: FormatMode
    search: SearchState
    expanded: bool
    rows: Tuple[MemoryRow, ...]
    snapshot_empty: bool

    @property
    def empty(self) -> bool:
        return not self.rows

    @property
    def empty_message(self) -> Optional[str]:
        if not self.empty:
            return None
        if self.snapshot_empty:
            return f"{self.title} empty"
        return "No matches"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "address_column": self.address_column,
            "value_column": self.value_column,
            "format": self.format.value,
            "search": self.search.to_dict(),
            "expanded": self.expanded,
            "rows": [row.to_dict() for row in self.rows],
            "empty": self.empty,
            "empty_message": self.empty_message,
        }


class MemoryViewModel:
    """Per-region search, format and expand state over the latest snapshot."""

    def __init__(
        self,
        title: str,
        aliases: Optional[Mapping[int, str]] = None,
        address_column: str = "Addresses",
    ) -> None:
        self.title = title
        self.aliases: Mapping[int, str] = MappingProxyType(dict(aliases or {}))
        self.address_column = address_column
        self.search = SearchState()
        self.format = FormatMode.HEX
        self.expanded = True
        self._snapshot: MemorySnapshot = MappingProxyType({})

    @property
    def snapshot(self) -> MemorySnapshot:
        return self._snapshot

    def set_snapshot(self, snapshot: MemorySnapshot) -> None:
        # Snapshots are replaced, never mutated in place.
        self._snapshot = snapshot

    def set_query(self, query: str) -> None:
        self.search = self.search.with_query(query)

    def toggle_search(self, flag: str) -> None:
        self.search = self.search.toggle(flag)

    def toggle_fuzzy(self) -> None:
        self.search = self.search.toggle_fuzzy()

    def set_format(self, mode: FormatMode) -> None:
        self.format = mode

    def toggle_expanded(self) -> None:
        self.expanded = not self.expanded

    def rows(self, highlighted_address: Optional[int] = None) -> Tuple[MemoryRow, ...]:
        return filter_rows(
            self._snapshot,
            self.search,
            self.format,
            self.aliases,
            highlighted_address,
        )

    def render(self, highlighted_address: Optional[int] = None) -> MemoryTableView:
        return MemoryTableView(
            title=self.title,
            address_column=self.address_column,
            value_column=value_header(self.format),
            format=self.format,
            search=self.search,
            expanded=self.expanded,
            rows=self.rows(highlighted_address),
            snapshot_empty=not self._snapshot,
        )
