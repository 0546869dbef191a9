from __future__ import annotations

from legsim.adapter import ProgramStatus
from legsim.engine import PC_REGISTER, RunConfig
from legsim.errors import EngineFault
from legsim.preferences import InMemoryPreferenceStore, JsonFilePreferenceStore
from legsim.program_load import LoadState
from legsim.reference_engine import ReferenceEngine
from legsim.session import SimulatorSession

IMAGE = bytes([0, 0, 128, 32])


def test_initial_session_state(store) -> None:
    session = SimulatorSession(ReferenceEngine(), store)
    assert session.program_status is ProgramStatus.NOT_RUNNING
    assert session.cycle_count == 0
    assert len(session.memory_views["registers"].snapshot) == 32
    data = session.to_dict()
    assert data["memory"]["dram"]["empty_message"] == "DRAM empty"
    assert data["error"] is None


def test_stepping_until_completion_stops_play(store) -> None:
    session = SimulatorSession(ReferenceEngine(), store)
    assert session.load_bytes("halt.bin", IMAGE)

    ticks = 0
    while session.play_tick():
        ticks += 1
    assert session.program_status is ProgramStatus.COMPLETED
    assert session.cycle_count == 5
    assert ticks == 4

    # Completed ends the run: further ticks and steps do not touch the engine.
    assert session.play_tick() is False
    assert session.step() is False
    assert session.cycle_count == 5


def test_play_tick_stops_on_fault(store, engine) -> None:
    session = SimulatorSession(engine, store)
    engine.fail_on = "step"
    assert session.play_tick() is False
    assert isinstance(session.errors.current, EngineFault)
    assert session.cycle_count == 0


def test_finish_runs_to_completion(store) -> None:
    session = SimulatorSession(ReferenceEngine(), store)
    session.load_example("countdown")
    session.finish()
    assert session.completed
    assert len(session.pipeline_view.history) == session.cycle_count


def test_dram_highlights_program_counter(store) -> None:
    session = SimulatorSession(ReferenceEngine(), store)
    session.load_example("countdown")
    session.step()
    assert session.program_counter == 1
    rows = session.to_dict()["memory"]["dram"]["rows"]
    assert [row["address"] for row in rows if row["highlighted"]] == [1]


def test_run_config_only_changes_before_start(store) -> None:
    session = SimulatorSession(ReferenceEngine(), store)
    session.load_example("halt")
    session.set_pipelining(False)
    assert session.run_config == RunConfig(pipeline_enabled=False)
    assert session.errors.current is None

    session.step()
    session.set_pipelining(True)
    assert session.run_config == RunConfig(pipeline_enabled=False)
    assert "after the simulator has started" in session.errors.message
    assert session.to_dict()["run_config_locked"] is True


def test_loading_after_completion_starts_a_new_run(store) -> None:
    session = SimulatorSession(ReferenceEngine(), store)
    session.load_example("halt")
    session.finish()
    assert session.completed

    session.load_example("countdown")
    assert session.program_status is ProgramStatus.NOT_RUNNING
    assert session.cycle_count == 0
    assert session.step() is True
    assert session.cycle_count == 1
    assert session.program_status is ProgramStatus.RUNNING


def test_loading_mid_run_unlocks_run_config(store) -> None:
    session = SimulatorSession(ReferenceEngine(), store)
    session.load_example("countdown")
    session.step()
    assert session.to_dict()["run_config_locked"] is True

    session.load_example("halt")
    session.set_pipelining(False)
    assert session.errors.current is None
    assert session.run_config == RunConfig(pipeline_enabled=False)
    assert session.to_dict()["run_config_locked"] is False


def test_new_error_replaces_old_and_dismiss_clears(store) -> None:
    session = SimulatorSession(ReferenceEngine(), store)
    session.load_bytes("a.bin", b"\x01")
    first = session.errors.current
    session.load_assembly("add r1, r2, r3")
    assert session.errors.current is not first
    assert session.errors.message.startswith("Assembler is not available")

    session.dismiss_error()
    assert session.errors.current is None


def test_auto_reload_restores_image_in_next_session(tmp_path) -> None:
    path = tmp_path / "prefs.json"
    first = SimulatorSession(ReferenceEngine(), JsonFilePreferenceStore(path))
    first.set_auto_reload(True)
    first.load_bytes("x.bin", IMAGE)

    second = SimulatorSession(ReferenceEngine(), JsonFilePreferenceStore(path))
    assert second.loader.state is LoadState.LOADED
    assert dict(second.dram) == {0: 0x8020}
    assert second.program_status is ProgramStatus.NOT_RUNNING


def test_pipeline_preference_survives_sessions(store) -> None:
    SimulatorSession(ReferenceEngine(), store).set_pipeline_recent_only(True)
    assert SimulatorSession(ReferenceEngine(), store).pipeline_view.recent_only


def test_update_memory_view_controls(store) -> None:
    session = SimulatorSession(ReferenceEngine(), store)
    view = session.update_memory_view("registers", query="sp", format="Decimal")
    rows = view.rows()
    assert [row.label for row in rows] == ["30 (SP)"]
    assert rows[0].value == "0"

    session.update_memory_view("registers", toggle="fuzzy")
    assert view.search.fuzzy is False
    session.update_memory_view("registers", toggle="addresses")
    assert view.search.search_values is True
    session.update_memory_view("registers", expand=False)
    assert view.expanded is False


def test_rejected_table_controls_change_nothing(store) -> None:
    session = SimulatorSession(ReferenceEngine(), store)
    view = session.memory_view("dram")
    before = (view.search, view.format, view.expanded)

    for controls in (
        {"query": "12", "toggle": "addresses", "format": "Octal"},
        {"query": "12", "toggle": "labels", "expand": False},
    ):
        try:
            session.update_memory_view("dram", **controls)
        except ValueError:
            pass
        else:
            raise AssertionError(f"expected ValueError for {controls}")

    assert (view.search, view.format, view.expanded) == before


def test_unknown_region_is_rejected(store) -> None:
    session = SimulatorSession(ReferenceEngine(), store)
    try:
        session.update_memory_view("rom", query="1")
    except ValueError as exc:
        assert "rom" in str(exc)
    else:
        raise AssertionError("expected ValueError")


def test_sessions_do_not_share_state() -> None:
    a = SimulatorSession(ReferenceEngine(), InMemoryPreferenceStore())
    b = SimulatorSession(ReferenceEngine(), InMemoryPreferenceStore())
    a.load_example("halt")
    a.step()
    assert b.cycle_count == 0
    assert b.memory_views["registers"].snapshot[PC_REGISTER] == 0
