"""Composition root tying one engine to its view models.

A session is built once and handed to whoever drives it; nothing here is
module level state. All user controls catch faults at their boundary and
place them in the session's error slot.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from .adapter import EngineAdapter, ProgramStatus, StateSinks
from .engine import PC_REGISTER, REGISTER_ALIASES, Engine, MemorySnapshot, RunConfig
from .errors import EngineFault, ErrorSlot, LegSimError
from .examples import example_names
from .filtering import SEARCH_ADDRESSES, SEARCH_VALUES
from .formatting import FormatMode
from .memory_view import MemoryViewModel
from .pipeline_view import PipelineHistoryViewModel
from .preferences import PreferenceStore
from .program_load import ProgramLoader

logger = logging.getLogger(__name__)

REGION_TITLES = {"registers": "Registers", "dram": "DRAM", "cache": "Cache"}
TABLE_TOGGLES = ("fuzzy", SEARCH_ADDRESSES, SEARCH_VALUES)


class SimulatorSession:
    """Engine adapter, view models, loader and error slot for one user."""

    def __init__(self, engine: Engine, store: PreferenceStore) -> None:
        self.errors = ErrorSlot()
        self.cycle_count = 0
        self.program_status = ProgramStatus.NOT_RUNNING
        self.run_config = RunConfig()

        self.memory_views: Dict[str, MemoryViewModel] = {
            "registers": MemoryViewModel(REGION_TITLES["registers"], REGISTER_ALIASES),
            "dram": MemoryViewModel(REGION_TITLES["dram"]),
            "cache": MemoryViewModel(REGION_TITLES["cache"]),
        }
        self.pipeline_view = PipelineHistoryViewModel(store)

        self.adapter = EngineAdapter(
            engine,
            StateSinks(
                registers=self.memory_views["registers"].set_snapshot,
                memory=self._publish_memory,
                pipelines=self.pipeline_view.set_history,
                cycle_count=self._publish_cycle_count,
                program_status=self._publish_status,
                run_config=self._publish_run_config,
            ),
        )
        self.loader = ProgramLoader(
            self.adapter, store, self.errors, current_dram=lambda: self.dram
        )

        with self._guard():
            self.adapter.refresh()
        self.loader.restore()

    # ------------------------------------------------------------------ #
    # Sinks
    # ------------------------------------------------------------------ #

    def _publish_memory(self, region: str, snapshot: MemorySnapshot) -> None:
        self.memory_views[region].set_snapshot(snapshot)

    def _publish_cycle_count(self, count: int) -> None:
        self.cycle_count = count

    def _publish_status(self, status: ProgramStatus) -> None:
        self.program_status = status

    def _publish_run_config(self, config: RunConfig) -> None:
        self.run_config = config

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except LegSimError as exc:
            self.errors.report(exc)

    # ------------------------------------------------------------------ #
    # Derived values
    # ------------------------------------------------------------------ #

    @property
    def dram(self) -> MemorySnapshot:
        return self.memory_views["dram"].snapshot

    @property
    def program_counter(self) -> Optional[int]:
        return self.memory_views["registers"].snapshot.get(PC_REGISTER)

    @property
    def completed(self) -> bool:
        return self.program_status is ProgramStatus.COMPLETED

    # ------------------------------------------------------------------ #
    # Execution controls
    # ------------------------------------------------------------------ #

    def step(self) -> bool:
        """Advance one cycle; returns whether the program keeps running."""
        if self.completed:
            return False
        with self._guard():
            return self.adapter.step()
        return False

    def finish(self) -> None:
        if self.completed:
            return
        with self._guard():
            self.adapter.finish_program()

    def play_tick(self) -> bool:
        """One timer tick of continuous play; False means stop playing."""
        if self.completed:
            return False
        faults_before = self.errors.current
        keep_going = self.step()
        return keep_going and self.errors.current is faults_before

    def set_pipelining(self, enabled: bool) -> None:
        with self._guard():
            if self.program_status is not ProgramStatus.NOT_RUNNING:
                raise EngineFault(
                    "cannot change the run configuration after the simulator has started"
                )
            self.adapter.set_run_config(RunConfig(pipeline_enabled=enabled))

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #

    def load_bytes(self, name: str, data: bytes) -> bool:
        return self.loader.load_bytes(name, data)

    def load_example(self, name: str) -> bool:
        return self.loader.load_example(name)

    def load_assembly(self, source: str) -> bool:
        return self.loader.load_assembly(source)

    def set_auto_reload(self, enabled: bool) -> None:
        self.loader.set_auto_reload(enabled)

    # ------------------------------------------------------------------ #
    # View controls
    # ------------------------------------------------------------------ #

    def memory_view(self, region: str) -> MemoryViewModel:
        try:
            return self.memory_views[region]
        except KeyError:
            raise ValueError(f"Unknown memory region: {region!r}") from None

    def update_memory_view(
        self,
        region: str,
        *,
        query: Optional[str] = None,
        toggle: Optional[str] = None,
        format: Optional[str] = None,
        expand: Optional[bool] = None,
    ) -> MemoryViewModel:
        """Apply one or more table controls; raises ValueError on bad input.

        Every control is validated before any of them is applied.
        """
        view = self.memory_view(region)
        mode = FormatMode.parse(format) if format is not None else None
        if toggle is not None and toggle not in TABLE_TOGGLES:
            raise ValueError(f"Unknown search toggle: {toggle!r}")
        if query is not None:
            view.set_query(query)
        if toggle == "fuzzy":
            view.toggle_fuzzy()
        elif toggle is not None:
            view.toggle_search(toggle)
        if mode is not None:
            view.set_format(mode)
        if expand is not None and expand != view.expanded:
            view.toggle_expanded()
        return view

    def set_pipeline_recent_only(self, recent_only: bool) -> None:
        self.pipeline_view.set_recent_only(recent_only)

    def dismiss_error(self) -> None:
        self.errors.dismiss()

    def highlighted_address(self, region: str) -> Optional[int]:
        return self.program_counter if region == "dram" else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "program_status": self.program_status.value,
            "cycle_count": self.cycle_count,
            "run_config": self.run_config.to_dict(),
            "run_config_locked": self.program_status is not ProgramStatus.NOT_RUNNING,
            "error": self.errors.message,
            "load": self.loader.to_dict(),
            "examples": list(example_names()),
            "pipeline": self.pipeline_view.to_dict(),
            "memory": {
                region: view.render(self.highlighted_address(region)).to_dict()
                for region, view in self.memory_views.items()
            },
        }
