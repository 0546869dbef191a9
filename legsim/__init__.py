"""Browser inspector for the LEG simulator engine."""

from .adapter import EngineAdapter, ProgramStatus, RefreshSnapshot, StateSinks
from .engine import (
    Engine,
    PipelineCycleSnapshot,
    REGISTER_ALIASES,
    RunConfig,
    encode_image,
    parse_image,
)
from .errors import (
    AssemblyError,
    EngineFault,
    ErrorSlot,
    ImageFormatError,
    IOFault,
    LegSimError,
)
from .filtering import MemoryRow, SearchState, filter_rows
from .formatting import FormatMode, format_value
from .memory_view import MemoryTableView, MemoryViewModel
from .pipeline_view import PipelineHistoryViewModel, PipelineRow
from .preferences import InMemoryPreferenceStore, JsonFilePreferenceStore
from .program_load import LoadState, ProgramLoader
from .reference_engine import ReferenceEngine
from .session import SimulatorSession

__all__ = [
    "EngineAdapter",
    "ProgramStatus",
    "RefreshSnapshot",
    "StateSinks",
    "Engine",
    "PipelineCycleSnapshot",
    "REGISTER_ALIASES",
    "RunConfig",
    "encode_image",
    "parse_image",
    "AssemblyError",
    "EngineFault",
    "ErrorSlot",
    "ImageFormatError",
    "IOFault",
    "LegSimError",
    "MemoryRow",
    "SearchState",
    "filter_rows",
    "FormatMode",
    "format_value",
    "MemoryTableView",
    "MemoryViewModel",
    "PipelineHistoryViewModel",
    "PipelineRow",
    "InMemoryPreferenceStore",
    "JsonFilePreferenceStore",
    "LoadState",
    "ProgramLoader",
    "ReferenceEngine",
    "SimulatorSession",
]
