"""HTTP service mode for litpress."""

from .app import create_app, run_service

__all__ = ["create_app", "run_service"]
