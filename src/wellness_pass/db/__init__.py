"""Database layer for wellness-pass."""

from .engine import get_cache_path, get_data_dir, get_db_path, init_cache, init_db
from .local_cache import LocalCache
from .repositories import CLIENTS_COLLECTION, ClientRepository
from .store import DELETE_FIELD, SERVER_TIMESTAMP, DocumentStore

__all__ = [
    "CLIENTS_COLLECTION",
    "ClientRepository",
    "DELETE_FIELD",
    "DocumentStore",
    "get_cache_path",
    "get_data_dir",
    "get_db_path",
    "init_cache",
    "init_db",
    "LocalCache",
    "SERVER_TIMESTAMP",
]
