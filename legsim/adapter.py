"""Engine adapter: the single writer of engine state.

Every mutating call is followed by a refresh transaction. All derived
quantities are read from the engine first and only published to the state
sinks once every read succeeded, so the display never mixes values from two
different cycles. A fault leaves the previously published state in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Tuple

from .engine import Engine, MemorySnapshot, PipelineCycleSnapshot, RunConfig

logger = logging.getLogger(__name__)

MEMORY_REGIONS: Tuple[str, ...] = ("dram", "cache")


class ProgramStatus(Enum):
    NOT_RUNNING = "not_running"
    RUNNING = "running"
    COMPLETED = "completed"


def _ignore(*_args) -> None:
    return None


@dataclass
class StateSinks:
    """Callbacks receiving each derived quantity after a refresh."""

    registers: Callable[[MemorySnapshot], None] = _ignore
    memory: Callable[[str, MemorySnapshot], None] = _ignore
    pipelines: Callable[[Tuple[PipelineCycleSnapshot, ...]], None] = _ignore
    cycle_count: Callable[[int], None] = _ignore
    program_status: Callable[[ProgramStatus], None] = _ignore
    run_config: Callable[[RunConfig], None] = _ignore


@dataclass(frozen=True)
class RefreshSnapshot:
    """Consistent set of values read from the engine at one point in time."""

    registers: MemorySnapshot
    memory: Mapping[str, MemorySnapshot]
    pipelines: Tuple[PipelineCycleSnapshot, ...]
    cycle_count: int
    program_status: ProgramStatus
    run_config: Optional[RunConfig] = None


def _freeze(snapshot: MemorySnapshot) -> MemorySnapshot:
    return MappingProxyType({int(k): int(v) for k, v in snapshot.items()})


class EngineAdapter:
    """Wrap one engine instance and publish its state through ``sinks``."""

    def __init__(self, engine: Engine, sinks: Optional[StateSinks] = None) -> None:
        self._engine = engine
        self._sinks = sinks or StateSinks()
        self._status = ProgramStatus.NOT_RUNNING

    @property
    def status(self) -> ProgramStatus:
        return self._status

    # ------------------------------------------------------------------ #
    # Refresh transaction
    # ------------------------------------------------------------------ #

    def _read_memory(self) -> Dict[str, MemorySnapshot]:
        readers = {"dram": self._engine.get_dram, "cache": self._engine.get_cache}
        return {region: _freeze(readers[region]()) for region in MEMORY_REGIONS}

    def _read_snapshot(
        self, status: ProgramStatus, *, include_run_config: bool = False
    ) -> RefreshSnapshot:
        return RefreshSnapshot(
            registers=_freeze(self._engine.get_registers()),
            memory=self._read_memory(),
            pipelines=tuple(self._engine.get_pipelines()),
            cycle_count=int(self._engine.get_cycle_count()),
            program_status=status,
            run_config=self._engine.get_run_config() if include_run_config else None,
        )

    def _publish(self, snapshot: RefreshSnapshot) -> None:
        self._status = snapshot.program_status
        self._sinks.registers(snapshot.registers)
        for region in MEMORY_REGIONS:
            self._sinks.memory(region, snapshot.memory[region])
        self._sinks.pipelines(snapshot.pipelines)
        self._sinks.cycle_count(snapshot.cycle_count)
        self._sinks.program_status(snapshot.program_status)
        if snapshot.run_config is not None:
            self._sinks.run_config(snapshot.run_config)
        logger.debug(
            "Published cycle %d (%s)", snapshot.cycle_count, snapshot.program_status.value
        )

    def refresh(self) -> None:
        """Republish every derived quantity without mutating the engine."""
        self._publish(self._read_snapshot(self._status, include_run_config=True))

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def set_run_config(self, config: RunConfig) -> None:
        """Push ``config`` to the engine and republish what the engine reports.

        Callers only offer this while the program has not started; the
        adapter itself does not reject it.
        """
        self._engine.set_run_config(config)
        current = self._engine.get_run_config()
        self._sinks.run_config(current)
        logger.info("Run configuration set to %s", current)

    def load_image(self, data: bytes) -> None:
        """Load a raw memory image; a fresh image starts a new run."""
        self._engine.set_dram(bytes(data))
        self._publish(self._read_snapshot(ProgramStatus.NOT_RUNNING))
        logger.info("Loaded %d byte memory image", len(data))

    def load_assembled_program(self, source: str) -> None:
        """Assemble and load ``source``; assembly errors propagate unchanged."""
        self._engine.set_dram_assembled(source)
        self._publish(self._read_snapshot(ProgramStatus.NOT_RUNNING))
        logger.info("Loaded assembled program (%d characters)", len(source))

    def step(self) -> bool:
        """Advance one cycle and return whether more cycles remain."""
        should_continue = bool(self._engine.step())
        status = ProgramStatus.RUNNING if should_continue else ProgramStatus.COMPLETED
        self._publish(self._read_snapshot(status))
        return should_continue

    def finish_program(self) -> None:
        """Run the program to completion and publish the final state."""
        bulk = getattr(self._engine, "finish_program", None)
        if callable(bulk):
            bulk()
        else:
            while self._engine.step():
                pass
        self._publish(self._read_snapshot(ProgramStatus.COMPLETED))
