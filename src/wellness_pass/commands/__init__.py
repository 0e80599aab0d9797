"""CLI commands for wellness-pass."""

from .clients import clients
from .form import form
from .init import init
from .save import save
from .serve import serve
from .sync import sync

__all__ = [
    "clients",
    "form",
    "init",
    "save",
    "serve",
    "sync",
]
