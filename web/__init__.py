"""Web front end for the LEG simulator inspector."""

from .app import create_app
from .simulator_service import SimulatorService

__all__ = ["create_app", "SimulatorService"]
