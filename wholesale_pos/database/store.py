"""
Owned database handle.

One Store is built at process start and handed to every repository. It opens
the SQLite file lazily (idempotently, under a lock), applies the schema, and
provides `transaction()`, the single BEGIN IMMEDIATE ... COMMIT/ROLLBACK
primitive used for every multi-statement write.

Transactions nest: an inner `with store.transaction()` joins the outer one, so
ledger helpers (e.g. CustomersRepo.record_purchase) commit on their own when
called standalone and take part in the bill transaction when called from
BillsRepo.
"""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import logging
import sqlite3
import threading

from .schema import apply_schema
from ..errors import InvariantViolation, StorageFailure

_log = logging.getLogger(__name__)

MEMORY = ":memory:"


def get_connection(db_path: Path | str) -> sqlite3.Connection:
    """
    Returns a sqlite3.Connection with:
      - autocommit mode (transactions are explicit, see Store.transaction)
      - check_same_thread off (the Store may be opened from a worker thread)
      - WAL mode
      - foreign_keys ON
      - row_factory = sqlite3.Row (so rows behave like dicts and tuples)
    Ensures the schema is applied idempotently.
    """
    if str(db_path) != MEMORY:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path), isolation_level=None, check_same_thread=False)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("PRAGMA journal_mode = WAL;")
        apply_schema(conn)
    except Exception:
        conn.close()
        raise
    return conn


class Store:
    def __init__(self, db_path: Path | str | None = None):
        if db_path is None:
            from ..config import DB_PATH
            db_path = DB_PATH
        self.db_path = db_path
        self.available = False
        self.last_error: Exception | None = None
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()
        # held by the thread that owns the open transaction; nested calls re-enter
        self._tx_lock = threading.RLock()
        self._tx_depth = 0

    # ---------------------------- lifecycle ----------------------------

    def open(self) -> sqlite3.Connection:
        """
        Open (once) and return the connection. A second caller, or a caller
        racing the first, gets the already-open connection.
        Raises StorageFailure and leaves the store flagged unavailable if the
        database cannot be opened; calling open() again retries.
        """
        if self._conn is not None:
            return self._conn
        with self._lock:
            if self._conn is not None:
                return self._conn
            try:
                conn = get_connection(self.db_path)
            except (sqlite3.Error, OSError) as e:
                self.available = False
                self.last_error = e
                _log.error("Could not open database at %s: %s", self.db_path, e)
                raise StorageFailure(f"Database unavailable ({self.db_path}): {e}") from e
            self._conn = conn
            self.available = True
            self.last_error = None
            _log.info("Database ready at %s", self.db_path)
            return conn

    @property
    def conn(self) -> sqlite3.Connection:
        return self.open()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
            self.available = False

    def _mark_failed(self, err: Exception) -> None:
        """Drop the handle so the next open() reconnects from scratch."""
        self.last_error = err
        self.available = False
        conn, self._conn = self._conn, None
        if conn is not None:
            try:
                conn.close()
            except sqlite3.Error:
                _log.debug("close after failure raised", exc_info=True)

    # ---------------------------- TX helper ----------------------------

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    @contextmanager
    def transaction(self):
        """
        Start an IMMEDIATE transaction, commit on success, rollback on error.
        Nested calls from the same thread join the outermost transaction;
        another thread waits until that transaction has finished.

        sqlite3.IntegrityError (CHECK/FK) surfaces as InvariantViolation; any
        other sqlite3.Error surfaces as StorageFailure and flags the store.
        """
        with self._tx_lock:
            with self._transaction() as conn:
                yield conn

    @contextmanager
    def _transaction(self):
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield self._conn
            finally:
                self._tx_depth -= 1
            return

        conn = self.open()
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            self._mark_failed(e)
            raise StorageFailure(f"Could not start a transaction: {e}") from e

        self._tx_depth = 1
        try:
            yield conn
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise InvariantViolation(f"Rejected by database constraint: {e}") from e
        except sqlite3.Error as e:
            try:
                conn.rollback()
            except sqlite3.Error:
                _log.debug("rollback after storage error raised", exc_info=True)
            self._mark_failed(e)
            raise StorageFailure(f"Database write failed: {e}") from e
        except BaseException:
            conn.rollback()
            raise
        finally:
            self._tx_depth = 0

    # ---------------------------- reads ----------------------------

    def fetch_all(self, sql: str, params=(), *, what: str = "rows") -> list[sqlite3.Row]:
        """
        Read helper for list/search screens: a storage problem degrades to an
        empty list with a logged warning, since an empty table is always a
        safe thing to show.
        """
        try:
            return self.open().execute(sql, params).fetchall()
        except StorageFailure as e:
            _log.warning("Listing %s failed, store unavailable: %s", what, e)
            return []
        except sqlite3.Error as e:
            _log.warning("Listing %s failed: %s", what, e)
            return []


__all__ = ["Store", "get_connection", "MEMORY"]
