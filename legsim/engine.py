"""Capability interface of the external simulation engine.

The engine (instruction decode/execute, memory timing and pipeline hazards)
is consumed as an opaque object. Everything in this package talks to it
through the :class:`Engine` protocol below; snapshots returned by an engine
are treated as fresh immutable copies.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import (
    Any,
    Dict,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)

from .errors import ImageFormatError

# Address -> 32-bit unsigned value.
MemorySnapshot = Mapping[int, int]

WORD_BYTES = 4
WORD_MASK = 0xFFFFFFFF

REGISTER_COUNT = 32

# Register file indexes with special meaning.
INTLR = 26
IHDLR = 27
PC_REGISTER = 28
STATUS_REGISTER = 29
SP_REGISTER = 30
LR_REGISTER = 31

REGISTER_ALIASES: Dict[int, str] = {
    INTLR: "INTLR",
    IHDLR: "IHDLR",
    PC_REGISTER: "PC",
    STATUS_REGISTER: "STATUS",
    SP_REGISTER: "SP",
    LR_REGISTER: "LR",
}

STAGE_NAMES: Tuple[str, ...] = (
    "fetch",
    "decode",
    "execute",
    "access_memory",
    "write_back",
)

STAGE_LABELS: Dict[str, str] = {
    "fetch": "Fetch",
    "decode": "Decode",
    "execute": "Execute",
    "access_memory": "Access Memory",
    "write_back": "Write Back",
}


@dataclass(frozen=True)
class RunConfig:
    """Engine execution-mode flags."""

    pipeline_enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"pipeline_enabled": self.pipeline_enabled}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RunConfig":
        return cls(pipeline_enabled=bool(data.get("pipeline_enabled", True)))


@dataclass(frozen=True)
class PipelineCycleSnapshot:
    """Instruction status of every pipeline stage after one cycle.

    ``None`` means the stage held no instruction during that cycle.
    """

    fetch: Optional[str] = None
    decode: Optional[str] = None
    execute: Optional[str] = None
    access_memory: Optional[str] = None
    write_back: Optional[str] = None

    @classmethod
    def from_mapping(cls, stages: Mapping[str, Optional[str]]) -> "PipelineCycleSnapshot":
        unknown = set(stages) - set(STAGE_NAMES)
        if unknown:
            raise ValueError(f"unknown pipeline stage(s): {sorted(unknown)}")
        return cls(**{name: stages.get(name) for name in STAGE_NAMES})

    def stages(self) -> Tuple[Tuple[str, Optional[str]], ...]:
        """Return ``(stage, status)`` pairs in pipeline order."""
        return tuple((f.name, getattr(self, f.name)) for f in fields(self))

    def is_empty(self) -> bool:
        return all(status is None for _, status in self.stages())

    def to_dict(self) -> Dict[str, Optional[str]]:
        return dict(self.stages())


@runtime_checkable
class Engine(Protocol):
    """Operations the simulation engine exposes.

    Any call may raise :class:`~legsim.errors.EngineFault`; none of them are
    assumed to be idempotent. ``finish_program`` is optional, callers check
    for it with ``getattr``.
    """

    def get_registers(self) -> MemorySnapshot: ...

    def get_dram(self) -> MemorySnapshot: ...

    def get_cache(self) -> MemorySnapshot: ...

    def set_dram(self, data: bytes) -> None: ...

    def set_dram_assembled(self, source: str) -> None: ...

    def get_run_config(self) -> RunConfig: ...

    def set_run_config(self, config: RunConfig) -> None: ...

    def step(self) -> bool: ...

    def get_pipelines(self) -> Sequence[PipelineCycleSnapshot]: ...

    def get_cycle_count(self) -> int: ...


def parse_image(data: bytes) -> Dict[int, int]:
    """Decode a memory image into ``{address: word}``.

    Every four bytes form one big-endian word; addresses start at 0 and
    increase by one per word.
    """
    data = bytes(data)
    remainder = len(data) % WORD_BYTES
    if remainder:
        raise ImageFormatError(
            f"failed to load input into DRAM: read {remainder} bytes "
            f"but expected {WORD_BYTES} bytes"
        )
    return {
        index: int.from_bytes(data[offset : offset + WORD_BYTES], "big")
        for index, offset in enumerate(range(0, len(data), WORD_BYTES))
    }


def encode_image(snapshot: MemorySnapshot) -> bytes:
    """Inverse of :func:`parse_image`; missing addresses are written as zero."""
    if not snapshot:
        return b""
    size = max(snapshot) + 1
    return b"".join(
        (snapshot.get(address, 0) & WORD_MASK).to_bytes(WORD_BYTES, "big")
        for address in range(size)
    )
