"""Fault taxonomy and the single-slot error surface shown to the user."""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class LegSimError(Exception):
    """Base class for every fault surfaced to the user."""


class EngineFault(LegSimError):
    """Failure raised by the simulation engine."""


class AssemblyError(EngineFault):
    """The engine could not assemble textual program source."""


class ImageFormatError(EngineFault):
    """A memory image does not consist of whole 32-bit words."""


class IOFault(LegSimError):
    """Reading a user supplied file failed."""


class ErrorSlot:
    """Holds at most one active error; a new report replaces the old one."""

    def __init__(self) -> None:
        self._error: Optional[BaseException] = None

    @property
    def current(self) -> Optional[BaseException]:
        return self._error

    @property
    def message(self) -> Optional[str]:
        """Active error as display text with the first letter capitalised."""
        if self._error is None:
            return None
        text = str(self._error) or type(self._error).__name__
        return text[:1].upper() + text[1:]

    def report(self, exc: BaseException) -> None:
        logger.warning("%s: %s", type(exc).__name__, exc)
        self._error = exc

    def dismiss(self) -> None:
        self._error = None

    def __bool__(self) -> bool:
        return self._error is not None
