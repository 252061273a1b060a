"""
SQLite Database Connection and Schema Management.
"""
import os
import sqlite3
import logging
from pathlib import Path
from threading import Lock
from typing import Optional
from contextlib import contextmanager

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_PATH = "data/campaigns.db"

_connection_lock = Lock()
_connection: Optional[sqlite3.Connection] = None


def get_database_path() -> str:
    """Get database path from environment or default."""
    return os.environ.get("DATABASE_PATH", DEFAULT_DATABASE_PATH)


def connect(db_path: str) -> sqlite3.Connection:
    """
    Open a SQLite connection with the pragmas the ledger relies on.
    Creates the parent directory and schema if missing.
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(
        db_path,
        check_same_thread=False,
        isolation_level=None,
    )
    conn.row_factory = sqlite3.Row

    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute("PRAGMA busy_timeout=5000")

    logger.info(f"SQLite connection established: {db_path}")

    init_schema(conn)
    return conn


def get_connection() -> sqlite3.Connection:
    """
    Get or create the shared SQLite connection.
    Thread-safe singleton pattern.
    """
    global _connection

    with _connection_lock:
        if _connection is None:
            _connection = connect(get_database_path())
        return _connection


@contextmanager
def transaction(conn: sqlite3.Connection):
    """
    Context manager for database transactions.
    BEGIN IMMEDIATE takes the write lock up front so concurrent
    reservations serialize. Commits on success, rolls back on exception.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
        conn.execute("COMMIT")
    except Exception:
        conn.execute("ROLLBACK")
        raise


def init_schema(conn: sqlite3.Connection) -> None:
    """
    Initialize database schema.
    Creates tables if they don't exist.
    """
    conn.executescript("""
        -- Spendable balance per account
        CREATE TABLE IF NOT EXISTS accounts (
            account_id TEXT PRIMARY KEY,
            balance INTEGER NOT NULL DEFAULT 0 CHECK (balance >= 0),
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- Reservation lifecycle: reserved -> committed | released
        CREATE TABLE IF NOT EXISTS credit_transactions (
            reservation_id TEXT PRIMARY KEY,
            account_id TEXT NOT NULL,
            cost INTEGER NOT NULL,
            phase TEXT NOT NULL DEFAULT 'reserved',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (account_id) REFERENCES accounts(account_id)
        );

        CREATE INDEX IF NOT EXISTS idx_credit_transactions_account_id
            ON credit_transactions(account_id);
        CREATE INDEX IF NOT EXISTS idx_credit_transactions_created_at
            ON credit_transactions(created_at);
    """)

    logger.info("Database schema initialized")


def close_connection() -> None:
    """Close the shared database connection."""
    global _connection

    with _connection_lock:
        if _connection is not None:
            _connection.close()
            _connection = None
            logger.info("SQLite connection closed")
