"""HTTP transport for the server-backed contract editor."""

from .app import create_app, run_service

__all__ = ["create_app", "run_service"]
