"""Stand-in engine bundled so the inspector runs without the real simulator.

It has no instruction semantics and no timing model. Words are fetched from
DRAM at the program counter and shifted through the five pipeline stages
unchanged, which is enough to exercise every view of the inspector.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from .engine import (
    PC_REGISTER,
    REGISTER_COUNT,
    STAGE_NAMES,
    MemorySnapshot,
    PipelineCycleSnapshot,
    RunConfig,
    parse_image,
)
from .errors import AssemblyError, EngineFault

logger = logging.getLogger(__name__)


class ReferenceEngine:
    """Shift-register pipeline over a word-addressed DRAM."""

    def __init__(self) -> None:
        self._dram: Dict[int, int] = {}
        self._run_config = RunConfig()
        self._reset_execution()

    def _reset_execution(self) -> None:
        self._registers: List[int] = [0] * REGISTER_COUNT
        self._stages: List[Optional[str]] = [None] * len(STAGE_NAMES)
        self._pipelines: List[PipelineCycleSnapshot] = []
        self._cycle_count = 0

    # ------------------------------------------------------------------ #
    # Snapshots
    # ------------------------------------------------------------------ #

    def get_registers(self) -> MemorySnapshot:
        return dict(enumerate(self._registers))

    def get_dram(self) -> MemorySnapshot:
        return dict(self._dram)

    def get_cache(self) -> MemorySnapshot:
        return {}

    def get_run_config(self) -> RunConfig:
        return self._run_config

    def get_pipelines(self) -> Sequence[PipelineCycleSnapshot]:
        return tuple(self._pipelines)

    def get_cycle_count(self) -> int:
        return self._cycle_count

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #

    def set_dram(self, data: bytes) -> None:
        self._dram = parse_image(data)
        self._reset_execution()
        logger.debug("Loaded %d DRAM words", len(self._dram))

    def set_dram_assembled(self, source: str) -> None:
        raise AssemblyError("assembler is not available in the reference engine")

    def set_run_config(self, config: RunConfig) -> None:
        if self._cycle_count:
            raise EngineFault("cannot change the run configuration after the program started")
        self._run_config = config

    def _can_fetch(self) -> bool:
        if self._registers[PC_REGISTER] not in self._dram:
            return False
        if self._run_config.pipeline_enabled:
            return True
        # Write back retires this cycle, so it does not block the next fetch.
        return all(stage is None for stage in self._stages[:-1])

    def step(self) -> bool:
        """Advance one cycle, returning True while work remains."""
        fetched: Optional[str] = None
        if self._can_fetch():
            pc = self._registers[PC_REGISTER]
            fetched = f"0x{self._dram[pc]:08x}"
            self._registers[PC_REGISTER] = pc + 1

        # Write back retires; every other stage moves one slot forward.
        self._stages = [fetched] + self._stages[:-1]
        self._cycle_count += 1
        self._pipelines.insert(
            0, PipelineCycleSnapshot.from_mapping(dict(zip(STAGE_NAMES, self._stages)))
        )

        in_flight = any(stage is not None for stage in self._stages[:-1])
        return in_flight or self._registers[PC_REGISTER] in self._dram

    def finish_program(self) -> None:
        while self.step():
            pass
