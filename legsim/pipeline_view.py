"""View model for the per-cycle pipeline history table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

from .engine import STAGE_LABELS, STAGE_NAMES, PipelineCycleSnapshot
from .preferences import PIPELINE_RECENT_ONLY_KEY, PreferenceStore, read_flag, write_flag

EMPTY_STAGE = "Empty"


@dataclass(frozen=True)
class PipelineRow:
    cycle: int
    stages: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"cycle": self.cycle, "stages": dict(zip(STAGE_NAMES, self.stages))}


def _render_stages(snapshot: PipelineCycleSnapshot) -> Tuple[str, ...]:
    return tuple(
        EMPTY_STAGE if status is None else status for _, status in snapshot.stages()
    )


class PipelineHistoryViewModel:
    """Project the newest-first pipeline history into display rows.

    The "recent only" toggle truncates what is displayed, never the history.
    """

    def __init__(self, store: PreferenceStore) -> None:
        self._store = store
        self._recent_only = read_flag(store, PIPELINE_RECENT_ONLY_KEY, default=False)
        self._history: Tuple[PipelineCycleSnapshot, ...] = ()

    @property
    def recent_only(self) -> bool:
        return self._recent_only

    @property
    def history(self) -> Tuple[PipelineCycleSnapshot, ...]:
        return self._history

    def set_history(self, history: Sequence[PipelineCycleSnapshot]) -> None:
        self._history = tuple(history)

    def set_recent_only(self, recent_only: bool) -> None:
        # Persist first so the store is never ahead of what is displayed.
        write_flag(self._store, PIPELINE_RECENT_ONLY_KEY, recent_only)
        self._recent_only = recent_only

    def toggle_recent_only(self) -> None:
        self.set_recent_only(not self._recent_only)

    def rows(self) -> Tuple[PipelineRow, ...]:
        total = len(self._history)
        shown = self._history[:1] if self._recent_only else self._history
        return tuple(
            PipelineRow(cycle=total - position - 1, stages=_render_stages(snapshot))
            for position, snapshot in enumerate(shown)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recent_only": self._recent_only,
            "columns": ["Cycle #"] + [STAGE_LABELS[name] for name in STAGE_NAMES],
            "history_length": len(self._history),
            "rows": [row.to_dict() for row in self.rows()],
        }
