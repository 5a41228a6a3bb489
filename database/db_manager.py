import logging
import sqlite3
import threading
from contextlib import contextmanager
from utils.constants import DB_FILE

LOGGER = logging.getLogger("recurring_ledger.database")


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None
        # One connection serves every request thread; whoever holds the lock
        # owns it, and _depth belongs to the lock holder.
        self._lock = threading.RLock()
        self._depth = 0

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def initialize(self):
        """Create schema."""
        with self._lock:
            conn = self.get_connection()
            self._create_schema(conn)
            conn.commit()
        LOGGER.debug("Schema ready at %s", self.db_path)

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                email      TEXT NOT NULL UNIQUE,
                name       TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS categories (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id    INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                name       TEXT NOT NULL,
                type       TEXT NOT NULL CHECK(type IN ('INCOME','EXPENSE','BOTH')),
                color_hex  TEXT NOT NULL DEFAULT '#888888',
                UNIQUE(user_id, name)
            );

            CREATE TABLE IF NOT EXISTS merchants (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id    INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                name       TEXT NOT NULL,
                UNIQUE(user_id, name)
            );

            CREATE TABLE IF NOT EXISTS recurring_rules (
                id                 INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id            INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                frequency          TEXT NOT NULL
                                   CHECK(frequency IN ('DAILY','WEEKLY','MONTHLY','YEARLY','ONE_TIME')),
                interval           INTEGER NOT NULL DEFAULT 1 CHECK(interval >= 1),
                amount             REAL NOT NULL CHECK(amount > 0),
                currency           TEXT NOT NULL CHECK(length(currency) = 3),
                spread             REAL CHECK(spread IS NULL OR spread >= 0),
                type               TEXT NOT NULL CHECK(type IN ('INCOME','EXPENSE')),
                start_date         TEXT NOT NULL,
                end_date           TEXT,
                category_id        INTEGER NOT NULL REFERENCES categories(id),
                merchant_id        INTEGER REFERENCES merchants(id) ON DELETE SET NULL,
                description        TEXT NOT NULL DEFAULT '',
                notes              TEXT NOT NULL DEFAULT '',
                is_active          INTEGER NOT NULL DEFAULT 1,
                max_occurrences    INTEGER CHECK(max_occurrences IS NULL OR max_occurrences >= 1),
                supersedes_rule_id INTEGER REFERENCES recurring_rules(id) ON DELETE SET NULL,
                created_at         TEXT NOT NULL DEFAULT (datetime('now')),
                CHECK(end_date IS NULL OR end_date >= start_date)
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id                INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id           INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                type              TEXT NOT NULL CHECK(type IN ('INCOME','EXPENSE')),
                amount            REAL NOT NULL CHECK(amount >= 0),
                currency          TEXT NOT NULL,
                category_id       INTEGER REFERENCES categories(id) ON DELETE RESTRICT,
                merchant_id       INTEGER REFERENCES merchants(id) ON DELETE SET NULL,
                description       TEXT NOT NULL DEFAULT '',
                date              TEXT NOT NULL,
                recurring_rule_id INTEGER REFERENCES recurring_rules(id) ON DELETE SET NULL,
                created_at        TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS skipped_occurrences (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                rule_id    INTEGER NOT NULL REFERENCES recurring_rules(id) ON DELETE CASCADE,
                date       TEXT NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now')),
                UNIQUE(rule_id, date)
            );

            CREATE INDEX IF NOT EXISTS idx_rules_user_id            ON recurring_rules(user_id);
            CREATE INDEX IF NOT EXISTS idx_transactions_user_id     ON transactions(user_id);
            CREATE INDEX IF NOT EXISTS idx_transactions_date        ON transactions(date);
            CREATE INDEX IF NOT EXISTS idx_transactions_recurring   ON transactions(recurring_rule_id);
        """)

    @contextmanager
    def connection(self):
        """Exclusive use of the connection for reads.

        Blocks while another thread is inside transaction(), so readers never
        see its uncommitted rows.
        """
        with self._lock:
            yield self.get_connection()

    @contextmanager
    def transaction(self):
        """Atomic unit: every write inside commits or rolls back together.

        Nested blocks on the same thread join the outermost one. Other threads
        wait until it has committed or rolled back.
        """
        with self._lock:
            conn = self.get_connection()
            self._depth += 1
            try:
                yield conn
            except Exception:
                self._depth -= 1
                if self._depth == 0:
                    conn.rollback()
                    LOGGER.warning("Transaction rolled back")
                raise
            self._depth -= 1
            if self._depth == 0:
                conn.commit()

    def close(self):
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
