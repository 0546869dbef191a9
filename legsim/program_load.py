"""Program loading: files, built-in examples, assembly and auto-reload."""

from __future__ import annotations

import itertools
import logging
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, Optional, Union

from .adapter import EngineAdapter
from .engine import MemorySnapshot, encode_image
from .errors import ErrorSlot, IOFault, LegSimError
from .examples import get_example
from .preferences import (
    AUTO_RELOAD_KEY,
    PreferenceStore,
    read_flag,
    read_image,
    write_flag,
    write_image,
)

logger = logging.getLogger(__name__)

STORED_IMAGE_NAME = "stored image"


class LoadState(Enum):
    NO_FILE_YET = "no_file_yet"
    LOADING = "loading"
    LOADED = "loaded"


class ProgramLoader:
    """Push memory images to the adapter and remember the latest choice.

    Only one read is pending at a time: ``begin`` hands out a token and a
    later ``begin`` supersedes it, so a stale ``complete`` is ignored.
    """

    def __init__(
        self,
        adapter: EngineAdapter,
        store: PreferenceStore,
        errors: ErrorSlot,
        current_dram: Optional[Callable[[], MemorySnapshot]] = None,
    ) -> None:
        self._adapter = adapter
        self._store = store
        self._errors = errors
        self._current_dram = current_dram
        self._tokens = itertools.count(1)
        self._pending: Optional[int] = None
        self._restored = False
        self._image: Optional[bytes] = None
        self.state = LoadState.NO_FILE_YET
        self.source_name: Optional[str] = None
        self.auto_reload = read_flag(store, AUTO_RELOAD_KEY)

    # ------------------------------------------------------------------ #
    # Auto-reload
    # ------------------------------------------------------------------ #

    def restore(self) -> bool:
        """Reload the persisted image once per session when enabled."""
        if self._restored:
            return False
        self._restored = True
        if not self.auto_reload:
            return False
        image = read_image(self._store)
        if image is None:
            return False
        try:
            self._adapter.load_image(image)
        except LegSimError as exc:
            self._errors.report(exc)
            return False
        self._image = image
        self.source_name = STORED_IMAGE_NAME
        self.state = LoadState.LOADED
        logger.info("Restored stored memory image (%d bytes)", len(image))
        return True

    def set_auto_reload(self, enabled: bool) -> None:
        write_flag(self._store, AUTO_RELOAD_KEY, enabled)
        self.auto_reload = enabled
        if enabled and self._image is not None:
            write_image(self._store, self._image)

    # ------------------------------------------------------------------ #
    # Load lifecycle
    # ------------------------------------------------------------------ #

    def begin(self, source_name: str) -> int:
        token = next(self._tokens)
        self._pending = token
        self.source_name = source_name
        self.state = LoadState.LOADING
        return token

    def complete(self, token: int, data: bytes) -> bool:
        if token != self._pending:
            logger.debug("Ignoring superseded load %d", token)
            return False
        self._pending = None
        data = bytes(data)
        try:
            self._adapter.load_image(data)
        except LegSimError as exc:
            self._reset_after_failure(exc)
            return False
        self._loaded(data)
        return True

    def fail(self, token: int, exc: LegSimError) -> None:
        if token != self._pending:
            logger.debug("Ignoring failure of superseded load %d", token)
            return
        self._pending = None
        self._reset_after_failure(exc)

    def _reset_after_failure(self, exc: LegSimError) -> None:
        self.state = LoadState.NO_FILE_YET
        self.source_name = None
        self._errors.report(exc)

    def _loaded(self, image: bytes) -> None:
        self._image = image
        self.state = LoadState.LOADED
        if self.auto_reload:
            write_image(self._store, image)

    # ------------------------------------------------------------------ #
    # Sources
    # ------------------------------------------------------------------ #

    def load_bytes(self, name: str, data: bytes) -> bool:
        return self.complete(self.begin(name), data)

    def load_file(self, path: Union[str, Path]) -> bool:
        path = Path(path)
        token = self.begin(path.name)
        try:
            data = path.read_bytes()
        except OSError as exc:
            self.fail(token, IOFault(f"failed to read memory file {path.name}: {exc}"))
            return False
        return self.complete(token, data)

    def load_stream(self, name: str, stream: BinaryIO) -> bool:
        """Read an uploaded file object and load it."""
        token = self.begin(name)
        try:
            data = stream.read()
        except OSError as exc:
            self.fail(token, IOFault(f"failed to read memory file {name}: {exc}"))
            return False
        return self.complete(token, data)

    def load_example(self, name: str) -> bool:
        token = self.begin(name)
        try:
            data = get_example(name)
        except KeyError as exc:
            self.fail(token, IOFault(str(exc.args[0])))
            return False
        return self.complete(token, data)

    def load_assembly(self, source: str) -> bool:
        token = self.begin("assembly")
        try:
            self._adapter.load_assembled_program(source)
        except LegSimError as exc:
            self.fail(token, exc)
            return False
        self._pending = None
        image = encode_image(self._current_dram()) if self._current_dram else b""
        self._loaded(image)
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "source": self.source_name,
            "auto_reload": self.auto_reload,
        }
