from __future__ import annotations

from types import MappingProxyType

from legsim.engine import REGISTER_ALIASES
from legsim.filtering import SEARCH_ADDRESSES
from legsim.formatting import FormatMode
from legsim.memory_view import MemoryViewModel


def _view() -> MemoryViewModel:
    view = MemoryViewModel("Registers", REGISTER_ALIASES)
    view.set_snapshot(MappingProxyType({0: 1, 28: 255, 30: 5}))
    return view


def test_defaults() -> None:
    view = MemoryViewModel("DRAM")
    assert view.format is FormatMode.HEX
    assert view.expanded is True
    assert view.search.query == ""


def test_rows_use_current_format() -> None:
    view = _view()
    assert [row.value for row in view.rows()] == ["0x1", "0xff", "0x5"]
    view.set_format(FormatMode.DECIMAL)
    assert [row.value for row in view.rows()] == ["1", "255", "5"]


def test_alias_search_for_program_counter() -> None:
    view = _view()
    view.set_query("pc")
    rows = view.rows()
    assert [row.label for row in rows] == ["28 (PC)"]


def test_toggle_search_keeps_invariant() -> None:
    view = _view()
    view.toggle_search(SEARCH_ADDRESSES)
    assert view.search.search_values is True
    view.set_query("0xff")
    assert [row.address for row in view.rows()] == [28]


def test_render_reports_no_matches() -> None:
    view = _view()
    view.set_query("nothing")
    table = view.render()
    assert table.empty is True
    assert table.snapshot_empty is False
    assert table.empty_message == "No matches"


def test_render_reports_empty_snapshot() -> None:
    table = MemoryViewModel("Cache").render()
    assert table.empty is True
    assert table.empty_message == "Cache empty"


def test_render_binary_header_and_highlight() -> None:
    view = _view()
    view.set_format(FormatMode.BINARY)
    table = view.render(highlighted_address=30)
    assert table.value_column == "Value (MSB ... LSB)"
    assert [row.address for row in table.rows if row.highlighted] == [30]
    data = table.to_dict()
    assert data["format"] == "Binary"
    assert data["rows"][1]["value"] == "00000000000000000000000011111111"


def test_new_snapshot_replaces_old() -> None:
    view = _view()
    first = view.snapshot
    view.set_snapshot(MappingProxyType({1: 2}))
    assert dict(first) == {0: 1, 28: 255, 30: 5}
    assert [row.address for row in view.rows()] == [1]


def test_toggle_expanded() -> None:
    view = _view()
    view.toggle_expanded()
    assert view.render().expanded is False
