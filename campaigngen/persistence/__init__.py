"""
Persistence Module.
Provides in-memory or SQLite-backed storage for the credit ledger.
"""
import os
import logging
from typing import Optional

from .database import get_connection, transaction, close_connection, init_schema
from .ledger_repo import (
    BaseLedgerRepository,
    InMemoryLedgerRepository,
    SQLiteLedgerRepository,
    CreditTransaction,
    TransactionPhase,
)

logger = logging.getLogger(__name__)

STORAGE_BACKEND_ENV = "STORAGE_BACKEND"
STORAGE_BACKEND_SQLITE = "sqlite"
STORAGE_BACKEND_MEMORY = "memory"


def get_storage_backend() -> str:
    """Get storage backend from environment."""
    backend = os.environ.get(STORAGE_BACKEND_ENV, STORAGE_BACKEND_SQLITE)
    return backend.lower()


def is_sqlite_backend() -> bool:
    """Check if using SQLite backend."""
    return get_storage_backend() == STORAGE_BACKEND_SQLITE


_ledger_repo: Optional[BaseLedgerRepository] = None


def get_ledger_repository() -> BaseLedgerRepository:
    """Get or create ledger repository singleton for the configured backend."""
    global _ledger_repo
    if _ledger_repo is None:
        if is_sqlite_backend():
            _ledger_repo = SQLiteLedgerRepository()
        else:
            _ledger_repo = InMemoryLedgerRepository()
    return _ledger_repo


def reset_ledger_repository() -> None:
    """Reset ledger repository singleton (for testing)."""
    global _ledger_repo
    _ledger_repo = None


__all__ = [
    "get_connection",
    "transaction",
    "close_connection",
    "init_schema",
    "BaseLedgerRepository",
    "InMemoryLedgerRepository",
    "SQLiteLedgerRepository",
    "CreditTransaction",
    "TransactionPhase",
    "get_ledger_repository",
    "reset_ledger_repository",
    "get_storage_backend",
    "is_sqlite_backend",
    "STORAGE_BACKEND_SQLITE",
    "STORAGE_BACKEND_MEMORY",
]
