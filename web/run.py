#!/usr/bin/env python3
"""Run the LEG simulator web inspector."""

from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from .app import create_app
from .simulator_service import DEFAULT_PLAY_INTERVAL


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="LEG simulator web inspector")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=8080, help="Port to listen on")
    parser.add_argument(
        "--preferences",
        type=str,
        default=None,
        help="Preferences JSON file (default: instance/preferences.json)",
    )
    parser.add_argument(
        "--play-interval",
        type=float,
        default=None,
        help=f"Seconds between steps while playing (default {DEFAULT_PLAY_INTERVAL})",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Run Flask in debug mode"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = {}
    if args.preferences:
        config["PREFERENCES_PATH"] = args.preferences
    if args.play_interval is not None:
        config["PLAY_INTERVAL"] = args.play_interval

    app = create_app(config)
    print(f"Starting web server at http://{args.host}:{args.port}")
    # The reloader would build a second session in a child process.
    app.run(debug=args.debug, host=args.host, port=args.port, use_reloader=False)


if __name__ == "__main__":
    main()
