"""Database connection and schema management."""

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import duckdb

from ..utils.logger import get_app_logger


class DatabaseConnection:
    """DuckDB connection manager."""

    def __init__(self, db_path: str = "./data/diffreview.db"):
        """
        Initialize database connection.

        Args:
            db_path: Path to DuckDB database file
        """
        self.db_path = db_path
        self.logger = get_app_logger("db")
        self.conn: Optional[duckdb.DuckDBPyConnection] = None

        # Serializes writers; re-entrant so a transaction can call helpers that open one too
        self.lock = threading.RLock()
        self._tx_depth = 0

        db_dir = Path(db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

        self._connect()
        self._init_schema()

    def _connect(self):
        """Connect to DuckDB database."""
        try:
            self.conn = duckdb.connect(self.db_path)
            self.logger.info(f"Connected to DuckDB at {self.db_path}")
        except Exception as e:
            self.logger.error(f"Failed to connect to DuckDB: {e}")
            raise

    def _init_schema(self):
        """Initialize database schema."""
        try:
            self.conn.execute("CREATE SEQUENCE IF NOT EXISTS review_conversations_seq START 1")
            self.conn.execute("CREATE SEQUENCE IF NOT EXISTS review_messages_seq START 1")

            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS review_conversations (
                    id VARCHAR PRIMARY KEY,
                    attempt_id VARCHAR NOT NULL,
                    file_path VARCHAR NOT NULL,
                    line_number BIGINT NOT NULL,
                    side VARCHAR NOT NULL,
                    code_line VARCHAR,
                    is_resolved BOOLEAN NOT NULL DEFAULT FALSE,
                    resolved_by VARCHAR,
                    resolved_at TIMESTAMP,
                    resolution_summary VARCHAR,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL,
                    seq BIGINT NOT NULL
                )
            """)

            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS review_conversation_messages (
                    id VARCHAR PRIMARY KEY,
                    conversation_id VARCHAR NOT NULL,
                    author VARCHAR NOT NULL,
                    content VARCHAR NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    seq BIGINT NOT NULL
                )
            """)

            self.conn.execute("CREATE INDEX IF NOT EXISTS idx_review_conversations_attempt ON review_conversations(attempt_id)")
            self.conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_review_conversations_anchor "
                "ON review_conversations(attempt_id, file_path, side, line_number)"
            )
            self.conn.execute("CREATE INDEX IF NOT EXISTS idx_review_messages_conversation ON review_conversation_messages(conversation_id)")

            self.logger.info("Database schema initialized successfully")

        except Exception as e:
            self.logger.error(f"Failed to initialize database schema: {e}")
            raise

    @contextmanager
    def transaction(self):
        """
        Run a block inside one database transaction.

        Commits when the block exits normally and rolls back on any exception,
        so callers never observe a half-applied write. Nested calls join the
        outermost transaction.

        Yields:
            The underlying DuckDB connection
        """
        with self.lock:
            if self._tx_depth > 0:
                self._tx_depth += 1
                try:
                    yield self.conn
                finally:
                    self._tx_depth -= 1
                return

            self.conn.begin()
            self._tx_depth = 1
            try:
                yield self.conn
            except BaseException:
                self._tx_depth = 0
                self.conn.rollback()
                raise
            else:
                self._tx_depth = 0
                self.conn.commit()

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.logger.info("Database connection closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
