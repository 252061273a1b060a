"""
Credit Ledger Repository.
Balances and reservation records for the campaign pipeline.
Supports both in-memory and SQLite backends.
"""
import sqlite3
import uuid
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Dict, List, Optional

from .database import connect, get_connection, transaction

logger = logging.getLogger(__name__)


class TransactionPhase(str, Enum):
    """Lifecycle of a credit reservation."""
    RESERVED = "reserved"
    COMMITTED = "committed"
    RELEASED = "released"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionPhase.RESERVED


@dataclass
class CreditTransaction:
    """One reservation and its current phase."""
    reservation_id: str
    account_id: str
    cost: int
    phase: TransactionPhase
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "reservation_id": self.reservation_id,
            "account_id": self.account_id,
            "cost": self.cost,
            "phase": self.phase.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


def new_reservation_id() -> str:
    return f"rsv_{uuid.uuid4().hex}"


class BaseLedgerRepository(ABC):
    """
    Abstract base class for ledger repositories.

    Implementations must make try_reserve atomic per account: the balance
    check and the hold happen as one step, so two concurrent reservations
    can never both pass against the same balance.
    """

    @abstractmethod
    def get_balance(self, account_id: str) -> int:
        """Spendable balance (reserved credits already excluded)."""
        pass

    @abstractmethod
    def add_credits(self, account_id: str, amount: int) -> int:
        """Top up an account, creating it if needed. Returns new balance."""
        pass

    @abstractmethod
    def try_reserve(self, account_id: str, amount: int) -> Optional[CreditTransaction]:
        """Hold amount from the balance. Returns None if balance is insufficient."""
        pass

    @abstractmethod
    def finalize(self, reservation_id: str, phase: TransactionPhase) -> Optional[CreditTransaction]:
        """
        Move a reserved transaction to a terminal phase.
        Already-terminal transactions are returned unchanged.
        Returns None for unknown reservation ids.
        """
        pass

    @abstractmethod
    def get_transaction(self, reservation_id: str) -> Optional[CreditTransaction]:
        """Get a transaction by reservation id."""
        pass

    @abstractmethod
    def list_transactions(self, account_id: str, limit: int = 100) -> List[CreditTransaction]:
        """Transactions for an account, newest first."""
        pass


class InMemoryLedgerRepository(BaseLedgerRepository):
    """
    In-memory ledger repository.
    Thread-safe via one lock per account, suitable for development/testing.
    """

    def __init__(self):
        self._balances: Dict[str, int] = {}
        self._transactions: Dict[str, CreditTransaction] = {}
        self._account_locks: Dict[str, Lock] = {}
        self._registry_lock = Lock()
        logger.info("LedgerRepository initialized (in-memory)")

    def _lock_for(self, account_id: str) -> Lock:
        with self._registry_lock:
            lock = self._account_locks.get(account_id)
            if lock is None:
                lock = Lock()
                self._account_locks[account_id] = lock
            return lock

    def get_balance(self, account_id: str) -> int:
        with self._lock_for(account_id):
            return self._balances.get(account_id, 0)

    def add_credits(self, account_id: str, amount: int) -> int:
        if amount <= 0:
            raise ValueError("Credit amount must be positive")

        with self._lock_for(account_id):
            balance = self._balances.get(account_id, 0) + amount
            self._balances[account_id] = balance

        logger.info(f"[LEDGER] Added {amount} credits: account={account_id}, balance={balance}")
        return balance

    def try_reserve(self, account_id: str, amount: int) -> Optional[CreditTransaction]:
        if amount <= 0:
            raise ValueError("Reservation amount must be positive")

        with self._lock_for(account_id):
            balance = self._balances.get(account_id, 0)
            if balance < amount:
                return None

            self._balances[account_id] = balance - amount
            now = datetime.utcnow()
            txn = CreditTransaction(
                reservation_id=new_reservation_id(),
                account_id=account_id,
                cost=amount,
                phase=TransactionPhase.RESERVED,
                created_at=now,
                updated_at=now,
            )
            self._transactions[txn.reservation_id] = txn
            return txn

    def finalize(self, reservation_id: str, phase: TransactionPhase) -> Optional[CreditTransaction]:
        with self._registry_lock:
            txn = self._transactions.get(reservation_id)
        if txn is None:
            return None

        with self._lock_for(txn.account_id):
            if txn.phase.is_terminal:
                return txn

            txn.phase = phase
            txn.updated_at = datetime.utcnow()
            if phase is TransactionPhase.RELEASED:
                self._balances[txn.account_id] = self._balances.get(txn.account_id, 0) + txn.cost
            return txn

    def get_transaction(self, reservation_id: str) -> Optional[CreditTransaction]:
        return self._transactions.get(reservation_id)

    def list_transactions(self, account_id: str, limit: int = 100) -> List[CreditTransaction]:
        rows = [t for t in self._transactions.values() if t.account_id == account_id]
        rows.sort(key=lambda t: t.created_at, reverse=True)
        return rows[:limit]


class SQLiteLedgerRepository(BaseLedgerRepository):
    """
    SQLite ledger repository.
    Reservation is a conditional UPDATE inside BEGIN IMMEDIATE, so the
    balance check and the hold cannot interleave across runs.
    """

    def __init__(self, db_path: Optional[str] = None):
        self._conn = connect(db_path) if db_path else get_connection()
        # One connection is shared across threads; serialize statement use
        self._lock = Lock()
        logger.info("LedgerRepository initialized (sqlite)")

    def get_balance(self, account_id: str) -> int:
        with self._lock:
            cursor = self._conn.execute(
                "SELECT balance FROM accounts WHERE account_id = ?",
                (account_id,)
            )
            row = cursor.fetchone()
        return row["balance"] if row else 0

    def add_credits(self, account_id: str, amount: int) -> int:
        if amount <= 0:
            raise ValueError("Credit amount must be positive")

        now = datetime.utcnow().isoformat()
        with self._lock, transaction(self._conn):
            self._conn.execute(
                """
                INSERT INTO accounts (account_id, balance, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(account_id) DO UPDATE
                SET balance = balance + excluded.balance, updated_at = excluded.updated_at
                """,
                (account_id, amount, now, now)
            )
            row = self._conn.execute(
                "SELECT balance FROM accounts WHERE account_id = ?",
                (account_id,)
            ).fetchone()

        logger.info(f"[LEDGER] Added {amount} credits: account={account_id}, balance={row['balance']}")
        return row["balance"]

    def try_reserve(self, account_id: str, amount: int) -> Optional[CreditTransaction]:
        if amount <= 0:
            raise ValueError("Reservation amount must be positive")

        now = datetime.utcnow().isoformat()
        reservation_id = new_reservation_id()

        with self._lock, transaction(self._conn):
            cursor = self._conn.execute(
                """
                UPDATE accounts
                SET balance = balance - ?, updated_at = ?
                WHERE account_id = ? AND balance >= ?
                """,
                (amount, now, account_id, amount)
            )
            if cursor.rowcount == 0:
                return None

            self._conn.execute(
                """
                INSERT INTO credit_transactions
                    (reservation_id, account_id, cost, phase, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (reservation_id, account_id, amount, TransactionPhase.RESERVED.value, now, now)
            )

        return CreditTransaction(
            reservation_id=reservation_id,
            account_id=account_id,
            cost=amount,
            phase=TransactionPhase.RESERVED,
            created_at=datetime.fromisoformat(now),
            updated_at=datetime.fromisoformat(now),
        )

    def finalize(self, reservation_id: str, phase: TransactionPhase) -> Optional[CreditTransaction]:
        now = datetime.utcnow().isoformat()

        with self._lock, transaction(self._conn):
            cursor = self._conn.execute(
                """
                UPDATE credit_transactions
                SET phase = ?, updated_at = ?
                WHERE reservation_id = ? AND phase = ?
                """,
                (phase.value, now, reservation_id, TransactionPhase.RESERVED.value)
            )

            if cursor.rowcount == 1 and phase is TransactionPhase.RELEASED:
                self._conn.execute(
                    """
                    UPDATE accounts
                    SET balance = balance + (
                        SELECT cost FROM credit_transactions WHERE reservation_id = ?
                    ), updated_at = ?
                    WHERE account_id = (
                        SELECT account_id FROM credit_transactions WHERE reservation_id = ?
                    )
                    """,
                    (reservation_id, now, reservation_id)
                )

            row = self._conn.execute(
                "SELECT * FROM credit_transactions WHERE reservation_id = ?",
                (reservation_id,)
            ).fetchone()

        return self._row_to_transaction(row) if row else None

    def get_transaction(self, reservation_id: str) -> Optional[CreditTransaction]:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM credit_transactions WHERE reservation_id = ?",
                (reservation_id,)
            ).fetchone()
        return self._row_to_transaction(row) if row else None

    def list_transactions(self, account_id: str, limit: int = 100) -> List[CreditTransaction]:
        with self._lock:
            rows = self._conn.execute(
                """
                SELECT * FROM credit_transactions
                WHERE account_id = ?
                ORDER BY created_at DESC
                LIMIT ?
                """,
                (account_id, limit)
            ).fetchall()
        return [self._row_to_transaction(row) for row in rows]

    def _row_to_transaction(self, row: sqlite3.Row) -> CreditTransaction:
        """Convert database row to CreditTransaction."""
        return CreditTransaction(
            reservation_id=row["reservation_id"],
            account_id=row["account_id"],
            cost=row["cost"],
            phase=TransactionPhase(row["phase"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
