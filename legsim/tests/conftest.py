"""Shared fixtures for legsim tests."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest

from legsim.engine import PipelineCycleSnapshot, RunConfig
from legsim.errors import AssemblyError, EngineFault
from legsim.preferences import InMemoryPreferenceStore
from legsim.reference_engine import ReferenceEngine


class ScriptedEngine:
    """Engine double whose behaviour is driven by plain attributes."""

    def __init__(self, cycles: int = 3) -> None:
        self.registers: Dict[int, int] = {0: 0, 28: 0}
        self.dram: Dict[int, int] = {}
        self.cache: Dict[int, int] = {}
        self.run_config = RunConfig()
        self.pipelines: List[PipelineCycleSnapshot] = []
        self.cycle_count = 0
        self.cycles = cycles
        self.fail_on: Optional[str] = None
        self.calls: List[str] = []

    def _maybe_fail(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_on == name:
            raise EngineFault(f"{name} failed")

    def get_registers(self):
        self._maybe_fail("get_registers")
        return dict(self.registers)

    def get_dram(self):
        self._maybe_fail("get_dram")
        return dict(self.dram)

    def get_cache(self):
        self._maybe_fail("get_cache")
        return dict(self.cache)

    def set_dram(self, data: bytes) -> None:
        self._maybe_fail("set_dram")
        self.dram = {i: b for i, b in enumerate(data)}
        self._reset()

    def set_dram_assembled(self, source: str) -> None:
        self._maybe_fail("set_dram_assembled")
        if "bad" in source:
            raise AssemblyError("unknown mnemonic 'bad' on line 1")
        self.dram = {0: 0x1234, 1: 0x5678}
        self._reset()

    def _reset(self) -> None:
        self.registers = {0: 0, 28: 0}
        self.pipelines = []
        self.cycle_count = 0

    def get_run_config(self) -> RunConfig:
        self._maybe_fail("get_run_config")
        return self.run_config

    def set_run_config(self, config: RunConfig) -> None:
        self._maybe_fail("set_run_config")
        self.run_config = config

    def step(self) -> bool:
        self._maybe_fail("step")
        self.cycle_count += 1
        self.registers[28] = self.cycle_count
        self.pipelines.insert(
            0, PipelineCycleSnapshot(fetch=f"word{self.cycle_count}")
        )
        return self.cycle_count < self.cycles

    def get_pipelines(self) -> Sequence[PipelineCycleSnapshot]:
        self._maybe_fail("get_pipelines")
        return tuple(self.pipelines)

    def get_cycle_count(self) -> int:
        self._maybe_fail("get_cycle_count")
        return self.cycle_count


@pytest.fixture
def engine() -> ScriptedEngine:
    return ScriptedEngine()


@pytest.fixture
def reference_engine() -> ReferenceEngine:
    return ReferenceEngine()


@pytest.fixture
def store() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()
