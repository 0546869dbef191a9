"""Durable key-value store for user preferences.

Values are strings. Flags are stored as ``"true"``/``"false"`` and the last
loaded memory image as base64 so the whole store stays a flat JSON object.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

logger = logging.getLogger(__name__)

AUTO_RELOAD_KEY = "should-use-mem-file"
STORED_IMAGE_KEY = "stored-mem-file"
PIPELINE_RECENT_ONLY_KEY = "pipeline-recent-only"


class PreferenceStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryPreferenceStore:
    """Store that lives as long as the process; handy for tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = str(value)


class JsonFilePreferenceStore:
    """Store persisted as a JSON object on disk.

    The file is read on first access and rewritten atomically on every
    ``set`` so a crash never leaves a truncated file behind.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._values: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._values is not None:
            return self._values
        values: Dict[str, str] = {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
            if isinstance(data, dict):
                values = {str(k): str(v) for k, v in data.items()}
            else:
                logger.warning("Ignoring preferences in %s: not an object", self.path)
        except FileNotFoundError:
            pass
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable preferences %s: %s", self.path, exc)
        self._values = values
        return values

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._load()
        values[key] = str(value)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(values, fh, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.debug("Stored preference %s", key)


def read_flag(store: PreferenceStore, key: str, default: bool = False) -> bool:
    raw = store.get(key)
    if raw is None:
        return default
    return raw.strip().lower() == "true"


def write_flag(store: PreferenceStore, key: str, value: bool) -> None:
    store.set(key, "true" if value else "false")


def read_image(store: PreferenceStore) -> Optional[bytes]:
    raw = store.get(STORED_IMAGE_KEY)
    if raw is None:
        return None
    try:
        return base64.b64decode(raw.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        logger.warning("Discarding corrupt stored memory image: %s", exc)
        return None


def write_image(store: PreferenceStore, data: bytes) -> None:
    store.set(STORED_IMAGE_KEY, base64.b64encode(bytes(data)).decode("ascii"))
