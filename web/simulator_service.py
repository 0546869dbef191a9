"""Shared simulator session lifecycle management for the web API."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from legsim import Engine, ReferenceEngine, SimulatorSession
from legsim.preferences import InMemoryPreferenceStore, PreferenceStore

logger = logging.getLogger(__name__)

DEFAULT_PLAY_INTERVAL = 0.25


class SimulatorService:
    """Own one simulator session and drive continuous play.

    Every session call happens under ``_lock``, which makes the session
    behave as if it lived on a single event thread. Play is a background
    runner that performs one ``play_tick`` per interval; reading state never
    advances the engine.
    """

    def __init__(
        self,
        engine_factory: Callable[[], Engine] = ReferenceEngine,
        store: Optional[PreferenceStore] = None,
        play_interval: float = DEFAULT_PLAY_INTERVAL,
    ) -> None:
        self._engine_factory = engine_factory
        self._store = store if store is not None else InMemoryPreferenceStore()
        self.play_interval = float(play_interval)
        self._lock = threading.RLock()
        self._session: Optional[SimulatorSession] = None
        self._run_event = threading.Event()
        self._shutdown = threading.Event()
        self._runner_thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def ensure_session(self) -> SimulatorSession:
        """Return the session, creating it (and auto-reloading) if necessary."""
        with self._lock:
            if self._session is None:
                self._session = SimulatorSession(self._engine_factory(), self._store)
                logger.info("Simulator session created")
            return self._session

    def shutdown(self) -> None:
        """Stop the runner thread and drop the session."""
        self._shutdown.set()
        self._run_event.clear()
        if self._runner_thread and self._runner_thread.is_alive():
            self._runner_thread.join(timeout=1.0)
        with self._lock:
            self._session = None

    @contextmanager
    def session_context(self) -> Iterator[SimulatorSession]:
        """Provide exclusive access to the session."""
        with self._lock:
            yield self.ensure_session()

    # ------------------------------------------------------------------ #
    # Runner management
    # ------------------------------------------------------------------ #

    @property
    def is_playing(self) -> bool:
        return self._run_event.is_set()

    def run(self) -> bool:
        """Start continuous play; returns False when the program is done."""
        with self._lock:
            if self.ensure_session().completed:
                return False
        self._shutdown.clear()
        self._run_event.set()
        if not self._runner_thread or not self._runner_thread.is_alive():
            self._runner_thread = threading.Thread(
                target=self._runner_loop, name="LegSimPlayer", daemon=True
            )
            self._runner_thread.start()
        return True

    def pause(self) -> None:
        self._run_event.clear()

    def _runner_loop(self) -> None:
        """Background loop stepping once per tick while play is active."""
        while not self._shutdown.is_set():
            if not self._run_event.wait(timeout=0.1):
                continue
            with self._lock:
                session = self._session
                keep_playing = session.play_tick() if session is not None else False
            if not keep_playing:
                self._run_event.clear()
                logger.info("Play stopped")
                continue
            self._shutdown.wait(self.play_interval)

    # ------------------------------------------------------------------ #
    # State helpers
    # ------------------------------------------------------------------ #

    def step(self) -> bool:
        with self._lock:
            return self.ensure_session().step()

    def finish(self) -> None:
        self.pause()
        with self._lock:
            self.ensure_session().finish()

    def snapshot_state(self) -> Dict[str, object]:
        """Return the derived display state; never advances the engine."""
        with self._lock:
            state: Dict[str, object] = self.ensure_session().to_dict()
        state["is_playing"] = self.is_playing
        state["play_interval"] = self.play_interval
        return state


def init_app(app, service: SimulatorService) -> None:
    """Register ``service`` on ``app`` and make sure the session exists."""
    app.extensions["legsim"] = service
    with app.app_context():
        service.ensure_session()
