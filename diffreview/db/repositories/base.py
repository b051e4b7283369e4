"""Base repository class."""

import duckdb
from ...utils.logger import get_app_logger


class BaseRepository:
    """Base class for all repositories.

    Repositories run single statements on a shared connection and never commit;
    the caller wraps them in ``DatabaseConnection.transaction()``.
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection):
        """
        Initialize repository with database connection.

        Args:
            conn: DuckDB connection instance
        """
        self.conn = conn
        self.logger = get_app_logger("db")
