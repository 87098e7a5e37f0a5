"""Database storage layer using SQLite."""
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from unifypay.config import settings
from unifypay.errors import AppError, ConflictError, ValidationError
from unifypay.models import (
    Attachment,
    CONFIRMED,
    Deposit,
    DepositCreate,
    Transaction,
    TransactionCreate,
)
from unifypay.services.codes import PREFIX_LENGTH, format_code, prefix_for
from unifypay.utils.timestamp import format_timestamp, parse_timestamp, utcnow

logger = logging.getLogger(__name__)

_ATTACHMENT_COLUMNS = ("attachment_data", "attachment_name", "attachment_type", "attachment_size")


def _integrity_error(exc: sqlite3.IntegrityError) -> AppError:
    """Translate a constraint failure into an API error."""
    message = str(exc)
    if message.startswith("UNIQUE constraint failed"):
        # "UNIQUE constraint failed: transactions.code"
        return ConflictError(message.rsplit(".", 1)[-1])
    return ValidationError(message)


def _attachment_values(attachment: Optional[Attachment]) -> Dict[str, Any]:
    if attachment is None:
        return {}
    return {
        "attachment_data": attachment.data,
        "attachment_name": attachment.name,
        "attachment_type": attachment.mime_type,
        "attachment_size": attachment.size,
    }


def _column_values(changes: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: format_timestamp(value) if isinstance(value, datetime) else value
        for key, value in changes.items()
    }


class _SQLiteStore:
    """Connection handling, sequence allocation and generic row access."""

    table: str = ""
    schema: str = ""
    indexes: Tuple[str, ...] = ()

    def __init__(self, db_path: str = "unifypay.db"):
        self.db_path = db_path
        self._init_db()

    def _init_db(self):
        """Initialize database tables."""
        with self._get_conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS code_sequences (
                    category TEXT PRIMARY KEY,
                    last_value INTEGER NOT NULL
                )
            """)
            conn.execute(self.schema)
            for statement in self.indexes:
                conn.execute(statement)

    @contextmanager
    def _get_conn(self):
        """Get database connection (autocommit; writes go through _write)."""
        conn = sqlite3.connect(self.db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _write(self):
        """Write transaction holding the database write lock from the first statement."""
        with self._get_conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def _allocate_code(self, conn: sqlite3.Connection, category: str) -> str:
        """
        Next code in ``category``. Must run inside ``_write``.

        The sequence never goes below the highest suffix already stored, so
        client-supplied codes are skipped over, and codes of deleted records
        are not handed out again.
        """
        prefix = prefix_for(category)
        row = conn.execute(
            "SELECT last_value FROM code_sequences WHERE category = ?", (category,)
        ).fetchone()
        counter = row["last_value"] if row else 0
        highest = conn.execute(
            f"SELECT MAX(CAST(SUBSTR(code, {PREFIX_LENGTH + 1}) AS INTEGER)) FROM {self.table} "
            "WHERE code LIKE ?",
            (prefix + "%",),
        ).fetchone()[0] or 0
        number = max(counter, highest) + 1
        conn.execute("""
            INSERT INTO code_sequences (category, last_value) VALUES (?, ?)
            ON CONFLICT(category) DO UPDATE SET last_value = excluded.last_value
        """, (category, number))
        return format_code(prefix, number)

    def _insert(self, record: Dict[str, Any], category: str) -> str:
        """Insert ``record``, allocating its code when absent. Returns the id."""
        try:
            with self._write() as conn:
                if not record.get("code"):
                    record["code"] = self._allocate_code(conn, category)
                columns = ", ".join(record)
                placeholders = ", ".join("?" for _ in record)
                conn.execute(
                    f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})",
                    tuple(record.values()),
                )
        except sqlite3.IntegrityError as e:
            raise _integrity_error(e) from e
        logger.info("Created %s %s (%s)", self.table, record["code"], record["id"])
        return record["id"]

    def _update(self, record_id: str, changes: Dict[str, Any]) -> bool:
        values = _column_values(changes)
        values["updated_at"] = format_timestamp(utcnow())
        assignments = ", ".join(f"{column} = ?" for column in values)
        try:
            with self._write() as conn:
                cursor = conn.execute(
                    f"UPDATE {self.table} SET {assignments} WHERE id = ?",
                    (*values.values(), record_id),
                )
        except sqlite3.IntegrityError as e:
            raise _integrity_error(e) from e
        return cursor.rowcount > 0

    def _delete(self, record_id: str) -> bool:
        with self._write() as conn:
            cursor = conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (record_id,))
        return cursor.rowcount > 0

    def _select(
        self,
        where: str = "",
        params: Tuple[Any, ...] = (),
        order: str = "seq ASC",
        limit: Optional[int] = None,
    ) -> List[sqlite3.Row]:
        query = f"SELECT * FROM {self.table}"
        if where:
            query += f" WHERE {where}"
        query += f" ORDER BY {order}"
        if limit is not None:
            query += " LIMIT ?"
            params = (*params, limit)
        with self._get_conn() as conn:
            return conn.execute(query, params).fetchall()

    def _count(self, where: str = "", params: Tuple[Any, ...] = ()) -> int:
        query = f"SELECT COUNT(*) FROM {self.table}"
        if where:
            query += f" WHERE {where}"
        with self._get_conn() as conn:
            return conn.execute(query, params).fetchone()[0]

    def latest_confirmed_created_at(self, currency: str) -> Optional[datetime]:
        """Creation time of the newest confirmed record in ``currency``."""
        with self._get_conn() as conn:
            value = conn.execute(
                f"SELECT MAX(created_at) FROM {self.table} WHERE currency = ? AND status = ?",
                (currency, CONFIRMED),
            ).fetchone()[0]
        return parse_timestamp(value) if value else None

    def get_attachment(self, record_id: str) -> Optional[Attachment]:
        """Stored file of a record, or None when the record has none."""
        with self._get_conn() as conn:
            row = conn.execute(
                f"SELECT {', '.join(_ATTACHMENT_COLUMNS)} FROM {self.table} WHERE id = ?",
                (record_id,),
            ).fetchone()
        if not row or row["attachment_data"] is None:
            return None
        return Attachment(
            name=row["attachment_name"],
            mime_type=row["attachment_type"],
            size=row["attachment_size"],
            data=row["attachment_data"],
        )

    @staticmethod
    def _record_fields(row: sqlite3.Row) -> Dict[str, Any]:
        fields = dict(row)
        fields.pop("seq", None)
        fields.pop("attachment_data", None)
        return fields


class TransactionStore(_SQLiteStore):
    """Storage for income and expense transactions."""

    table = "transactions"
    schema = """
        CREATE TABLE IF NOT EXISTS transactions (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            code TEXT NOT NULL UNIQUE,
            description TEXT NOT NULL,
            amount REAL NOT NULL CHECK (amount >= 0),
            direction TEXT NOT NULL,
            currency TEXT NOT NULL,
            status TEXT NOT NULL,
            occurred_at TEXT NOT NULL,
            payment_method TEXT NOT NULL,
            reference TEXT,
            notes TEXT,
            attachment_data TEXT,
            attachment_name TEXT,
            attachment_type TEXT,
            attachment_size INTEGER,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """
    indexes = (
        "CREATE INDEX IF NOT EXISTS idx_transactions_currency_status ON transactions(currency, status)",
        "CREATE INDEX IF NOT EXISTS idx_transactions_direction_occurred ON transactions(direction, occurred_at)",
        "CREATE INDEX IF NOT EXISTS idx_transactions_created ON transactions(created_at)",
    )

    def add_transaction(
        self,
        tx: TransactionCreate,
        attachment: Optional[Attachment] = None,
    ) -> Transaction:
        """Persist a new transaction, generating ``id`` and ``code`` when absent."""
        now = format_timestamp(utcnow())
        record = {
            "id": tx.id or str(uuid.uuid4()),
            "code": tx.code,
            "description": tx.description,
            "amount": tx.amount,
            "direction": tx.direction,
            "currency": tx.currency,
            "status": tx.status,
            "occurred_at": format_timestamp(tx.occurred_at) if tx.occurred_at else now,
            "payment_method": tx.payment_method,
            "reference": tx.reference,
            "notes": tx.notes,
            **_attachment_values(attachment),
            "created_at": now,
            "updated_at": now,
        }
        transaction_id = self._insert(record, tx.direction)
        return self.get_transaction(transaction_id)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        rows = self._select("id = ?", (transaction_id,))
        return Transaction(**self._record_fields(rows[0])) if rows else None

    def get_transaction_by_code(self, code: str) -> Optional[Transaction]:
        rows = self._select("code = ?", (code,))
        return Transaction(**self._record_fields(rows[0])) if rows else None

    def get_transactions(
        self,
        direction: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Transaction]:
        """Transactions in insertion order, optionally filtered by direction and occurrence window."""
        clauses, params = [], []
        if direction:
            clauses.append("direction = ?")
            params.append(direction)
        if start_date:
            clauses.append("occurred_at >= ?")
            params.append(format_timestamp(start_date))
        if end_date:
            clauses.append("occurred_at <= ?")
            params.append(format_timestamp(end_date))
        rows = self._select(" AND ".join(clauses), tuple(params))
        return [Transaction(**self._record_fields(row)) for row in rows]

    def get_recent_transactions(
        self,
        limit: int,
        direction: Optional[str] = None,
        currency: Optional[str] = None,
        confirmed_only: bool = False,
    ) -> List[Transaction]:
        """Most recently created transactions first."""
        clauses, params = [], []
        if direction:
            clauses.append("direction = ?")
            params.append(direction)
        if currency:
            clauses.append("currency = ?")
            params.append(currency)
        if confirmed_only:
            clauses.append("status = ?")
            params.append(CONFIRMED)
        rows = self._select(" AND ".join(clauses), tuple(params), order="created_at DESC, seq DESC", limit=limit)
        return [Transaction(**self._record_fields(row)) for row in rows]

    def update_transaction(
        self,
        transaction_id: str,
        changes: Dict[str, Any],
        attachment: Optional[Attachment] = None,
    ) -> Optional[Transaction]:
        """Apply a partial update; returns None when the transaction does not exist."""
        changes = {k: v for k, v in changes.items() if k not in ("id", "code", "direction")}
        if not self._update(transaction_id, {**changes, **_attachment_values(attachment)}):
            return None
        logger.info("Updated transaction %s (%s)", transaction_id, ", ".join(sorted(changes)) or "no fields")
        return self.get_transaction(transaction_id)

    def delete_transaction(self, transaction_id: str) -> bool:
        deleted = self._delete(transaction_id)
        if deleted:
            logger.info("Deleted transaction %s", transaction_id)
        return deleted

    def count_transactions(self, direction: Optional[str] = None) -> int:
        if direction:
            return self._count("direction = ?", (direction,))
        return self._count()

    def get_confirmed_totals(self, currency: str) -> Dict[str, float]:
        """Sum of confirmed amounts per direction."""
        with self._get_conn() as conn:
            rows = conn.execute("""
                SELECT direction, SUM(amount) AS total FROM transactions
                WHERE currency = ? AND status = ?
                GROUP BY direction
            """, (currency, CONFIRMED)).fetchall()
        return {row["direction"]: row["total"] for row in rows}

    def get_confirmed_stats(self, currency: str) -> List[Dict[str, Any]]:
        """Count, total and average of confirmed transactions per direction."""
        with self._get_conn() as conn:
            rows = conn.execute("""
                SELECT direction, COUNT(*) AS count, SUM(amount) AS total, AVG(amount) AS average
                FROM transactions
                WHERE currency = ? AND status = ?
                GROUP BY direction
                ORDER BY direction
            """, (currency, CONFIRMED)).fetchall()
        return [dict(row) for row in rows]


class DepositStore(_SQLiteStore):
    """Storage for deposits."""

    table = "deposits"
    schema = """
        CREATE TABLE IF NOT EXISTS deposits (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            code TEXT NOT NULL UNIQUE,
            amount REAL NOT NULL CHECK (amount >= 0),
            currency TEXT NOT NULL,
            occurred_at TEXT NOT NULL,
            recipient TEXT NOT NULL,
            bank TEXT,
            account_number TEXT,
            deposit_type TEXT NOT NULL,
            status TEXT NOT NULL,
            description TEXT NOT NULL,
            supporting_document TEXT,
            notes TEXT,
            transaction_ref TEXT,
            attachment_data TEXT,
            attachment_name TEXT,
            attachment_type TEXT,
            attachment_size INTEGER,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """
    indexes = (
        "CREATE INDEX IF NOT EXISTS idx_deposits_currency_status ON deposits(currency, status)",
        "CREATE INDEX IF NOT EXISTS idx_deposits_occurred ON deposits(occurred_at)",
        "CREATE INDEX IF NOT EXISTS idx_deposits_created ON deposits(created_at)",
    )

    def add_deposit(self, dep: DepositCreate, attachment: Optional[Attachment] = None) -> Deposit:
        """Persist a new deposit. Deposits share a single DE sequence."""
        now = format_timestamp(utcnow())
        record = {
            "id": dep.id or str(uuid.uuid4()),
            "code": dep.code,
            "amount": dep.amount,
            "currency": dep.currency,
            "occurred_at": format_timestamp(dep.occurred_at) if dep.occurred_at else now,
            "recipient": dep.recipient,
            "bank": dep.bank,
            "account_number": dep.account_number,
            "deposit_type": dep.deposit_type,
            "status": dep.status,
            "description": dep.description,
            "supporting_document": dep.supporting_document,
            "notes": dep.notes,
            "transaction_ref": dep.transaction_ref,
            **_attachment_values(attachment),
            "created_at": now,
            "updated_at": now,
        }
        deposit_id = self._insert(record, "deposit")
        return self.get_deposit(deposit_id)

    def get_deposit(self, deposit_id: str) -> Optional[Deposit]:
        rows = self._select("id = ?", (deposit_id,))
        return Deposit(**self._record_fields(rows[0])) if rows else None

    def get_deposit_by_code(self, code: str) -> Optional[Deposit]:
        rows = self._select("code = ?", (code,))
        return Deposit(**self._record_fields(rows[0])) if rows else None

    def get_deposits(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Deposit]:
        """Deposits in insertion order, optionally within an occurrence window."""
        clauses, params = [], []
        if start_date:
            clauses.append("occurred_at >= ?")
            params.append(format_timestamp(start_date))
        if end_date:
            clauses.append("occurred_at <= ?")
            params.append(format_timestamp(end_date))
        rows = self._select(" AND ".join(clauses), tuple(params))
        return [Deposit(**self._record_fields(row)) for row in rows]

    def get_recent_deposits(
        self,
        limit: int,
        currency: Optional[str] = None,
        confirmed_only: bool = False,
    ) -> List[Deposit]:
        clauses, params = [], []
        if currency:
            clauses.append("currency = ?")
            params.append(currency)
        if confirmed_only:
            clauses.append("status = ?")
            params.append(CONFIRMED)
        rows = self._select(" AND ".join(clauses), tuple(params), order="created_at DESC, seq DESC", limit=limit)
        return [Deposit(**self._record_fields(row)) for row in rows]

    def update_deposit(
        self,
        deposit_id: str,
        changes: Dict[str, Any],
        attachment: Optional[Attachment] = None,
    ) -> Optional[Deposit]:
        changes = {k: v for k, v in changes.items() if k not in ("id", "code")}
        if not self._update(deposit_id, {**changes, **_attachment_values(attachment)}):
            return None
        logger.info("Updated deposit %s (%s)", deposit_id, ", ".join(sorted(changes)) or "no fields")
        return self.get_deposit(deposit_id)

    def delete_deposit(self, deposit_id: str) -> bool:
        deleted = self._delete(deposit_id)
        if deleted:
            logger.info("Deleted deposit %s", deposit_id)
        return deleted

    def count_deposits(self) -> int:
        return self._count()

    def get_confirmed_total(self, currency: str) -> float:
        with self._get_conn() as conn:
            total = conn.execute(
                "SELECT SUM(amount) FROM deposits WHERE currency = ? AND status = ?",
                (currency, CONFIRMED),
            ).fetchone()[0]
        return total or 0.0

    def get_confirmed_stats(self, currency: str) -> Dict[str, Any]:
        with self._get_conn() as conn:
            row = conn.execute("""
                SELECT COUNT(*) AS count, SUM(amount) AS total, AVG(amount) AS average
                FROM deposits
                WHERE currency = ? AND status = ?
            """, (currency, CONFIRMED)).fetchone()
        return {
            "count": row["count"],
            "total": row["total"] or 0.0,
            "average": row["average"] or 0.0,
        }


# Global instances
_transaction_store = None
_deposit_store = None


def get_db():
    """Get database store instances."""
    global _transaction_store, _deposit_store
    if _transaction_store is None:
        _transaction_store = TransactionStore(settings.database_path)
    if _deposit_store is None:
        _deposit_store = DepositStore(settings.database_path)
    return _transaction_store, _deposit_store
