"""Flask backend for the LEG simulator inspector."""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Mapping, Optional

from flask import Blueprint, Flask, current_app, jsonify, render_template, request
from flask_cors import CORS

from legsim import Engine, ReferenceEngine
from legsim.engine import STAGE_LABELS, STAGE_NAMES
from legsim.preferences import JsonFilePreferenceStore, PreferenceStore

from .simulator_service import DEFAULT_PLAY_INTERVAL, SimulatorService, init_app

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "PREFERENCES_PATH": None,
    "PLAY_INTERVAL": DEFAULT_PLAY_INTERVAL,
    "WEB_ALLOWED_ORIGINS": None,
}

bp = Blueprint("legsim", __name__)


def create_app(
    config: Optional[Mapping[str, Any]] = None,
    *,
    engine_factory: Callable[[], Engine] = ReferenceEngine,
    store: Optional[PreferenceStore] = None,
) -> Flask:
    """Build the Flask application around one simulator session."""
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    app.config.from_prefixed_env("LEGSIM")
    if config:
        app.config.update(config)

    # Restrict CORS by default; allow opt-in via config/env
    allowed_origins = app.config.get("WEB_ALLOWED_ORIGINS")
    if allowed_origins:
        if isinstance(allowed_origins, str):
            origins = [
                origin.strip() for origin in allowed_origins.split(",") if origin.strip()
            ]
        else:
            origins = list(allowed_origins)
        if origins:
            CORS(app, resources={r"/api/*": {"origins": origins}})

    if store is None:
        path = app.config.get("PREFERENCES_PATH") or os.path.join(
            app.instance_path, "preferences.json"
        )
        store = JsonFilePreferenceStore(path)
        logger.info("Preferences stored in %s", path)

    service = SimulatorService(
        engine_factory=engine_factory,
        store=store,
        play_interval=float(app.config["PLAY_INTERVAL"]),
    )
    app.register_blueprint(bp)
    init_app(app, service)
    return app


def get_service() -> SimulatorService:
    return current_app.extensions["legsim"]


def _bad_request(message: str):
    return jsonify({"error": message}), 400


def _boolean_field(data, key: str):
    """Return the boolean at ``key``, or None when it is missing or not a JSON bool."""
    value = data.get(key)
    return value if isinstance(value, bool) else None


def _result(ok: bool):
    """Answer with the fresh state, or the active error when ``ok`` is False."""
    state = get_service().snapshot_state()
    if not ok:
        return jsonify({"ok": False, "error": state["error"], "state": state}), 400
    return jsonify({"ok": True, "state": state})


@bp.route("/")
def index():
    """Serve the main web interface."""
    return render_template(
        "index.html",
        state=get_service().snapshot_state(),
        stage_names=STAGE_NAMES,
        stage_labels=STAGE_LABELS,
    )


@bp.route("/api/v1/state", methods=["GET"])
def get_state():
    """Return current derived display state."""
    return jsonify(get_service().snapshot_state())


@bp.route("/api/v1/examples", methods=["GET"])
def get_examples():
    return jsonify({"examples": get_service().snapshot_state()["examples"]})


@bp.route("/api/v1/control", methods=["POST"])
def control_simulator():
    """Control execution (step/finish/run/pause)."""
    data = request.get_json(silent=True) or {}
    command = data.get("command")
    if not command:
        return _bad_request("Missing command")

    service = get_service()
    if command == "step":
        if service.is_playing:
            return _bad_request("Cannot step while playing")
        with service.session_context() as session:
            before = session.errors.current
            running = session.step()
            ok = session.errors.current is before
        return jsonify({"status": "stepped", "running": running, "ok": ok})
    if command == "finish":
        service.finish()
        return jsonify({"status": "finished"})
    if command == "run":
        started = service.run()
        return jsonify({"status": "running" if started else "completed"})
    if command == "pause":
        service.pause()
        return jsonify({"status": "paused"})

    return _bad_request(f"Unknown command: {command}")


@bp.route("/api/v1/memory/<region>", methods=["POST"])
def update_memory_view(region: str):
    """Apply search, format and expand controls to one memory table."""
    data = request.get_json(silent=True) or {}
    query = data.get("query")
    if query is not None and not isinstance(query, str):
        return _bad_request("query must be a string")
    expand = data.get("expanded")
    if expand is not None and not isinstance(expand, bool):
        return _bad_request("expanded must be a boolean")
    with get_service().session_context() as session:
        if region not in session.memory_views:
            return jsonify({"error": f"Unknown memory region: {region}"}), 404
        try:
            view = session.update_memory_view(
                region,
                query=query,
                toggle=data.get("toggle"),
                format=data.get("format"),
                expand=expand,
            )
        except ValueError as exc:
            return _bad_request(str(exc))
        return jsonify(view.render(session.highlighted_address(region)).to_dict())


@bp.route("/api/v1/pipeline", methods=["POST"])
def update_pipeline_view():
    data = request.get_json(silent=True) or {}
    recent_only = _boolean_field(data, "recent_only")
    if recent_only is None:
        return _bad_request("recent_only must be a boolean")
    with get_service().session_context() as session:
        session.set_pipeline_recent_only(recent_only)
        return jsonify(session.pipeline_view.to_dict())


@bp.route("/api/v1/run_config", methods=["POST"])
def update_run_config():
    data = request.get_json(silent=True) or {}
    enabled = _boolean_field(data, "pipeline_enabled")
    if enabled is None:
        return _bad_request("pipeline_enabled must be a boolean")
    with get_service().session_context() as session:
        before = session.errors.current
        session.set_pipelining(enabled)
        ok = session.errors.current is before
    return _result(ok)


@bp.route("/api/v1/load", methods=["POST"])
def load_program():
    """Load a memory file upload, a built-in example or assembly source."""
    upload = request.files.get("file")
    data = request.get_json(silent=True) or {}
    service = get_service()
    service.pause()
    with service.session_context() as session:
        if upload is not None:
            ok = session.loader.load_stream(upload.filename or "upload", upload.stream)
        elif "example" in data:
            ok = session.load_example(str(data["example"]))
        elif "assembly" in data:
            ok = session.load_assembly(str(data["assembly"]))
        else:
            return _bad_request("Missing file, example or assembly")
    return _result(ok)


@bp.route("/api/v1/auto_reload", methods=["POST"])
def update_auto_reload():
    data = request.get_json(silent=True) or {}
    enabled = _boolean_field(data, "enabled")
    if enabled is None:
        return _bad_request("enabled must be a boolean")
    with get_service().session_context() as session:
        session.set_auto_reload(enabled)
    return _result(True)


@bp.route("/api/v1/error", methods=["DELETE"])
def dismiss_error():
    with get_service().session_context() as session:
        session.dismiss_error()
    return jsonify({"status": "dismissed"})
