"""Web API for wellness-pass."""

from .app import create_app

__all__ = ["create_app"]
