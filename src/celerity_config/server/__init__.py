"""Celerity Config HTTP integration.

FastAPI middleware and dependency wiring for ConfigLayer.
"""

from .app import create_app, run_server
from .routes import get_config_service

__all__ = ["create_app", "run_server", "get_config_service"]
