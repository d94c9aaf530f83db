"""DuckDB State Store Adapter.

This adapter implements the StateStorePort contract on top of DuckDB, an
in-process database, storing the world state as a single key-value table.

Security Impact:
    - Keys and values are always bound as parameters, never interpolated
    - Connection failures surface as StorageError without leaking engine internals

Architecture:
    - Implements StateStorePort (Hexagonal Architecture)
    - DuckDB calls are blocking and run in a worker thread via asyncio.to_thread
    - One connection per adapter, guarded by a lock; the lock only serialises use
      of the connection object and gives no cross-key isolation to callers
    - Selector matching happens in Python over the table scan, keyed in order
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Optional

import duckdb

from medledger.adapters.storage.selector import matches_selector, parse_query_string
from medledger.domain.ports import StateStorePort, StorageError
from medledger.infrastructure.config_manager import StoreConfig

logger = logging.getLogger(__name__)


class DuckDBStateStore(StateStorePort):
    """DuckDB implementation of StateStorePort.

    Parameters:
        store_config: StoreConfig from configuration manager (preferred)
        db_path: Path to DuckDB database file (or ':memory:' for in-memory)

    Example Usage:
        ```python
        store = DuckDBStateStore(db_path="data/ledger.duckdb")
        store.initialize_schema()
        await store.put_state("p1", b'{"docType": "patient", ...}')
        ```

    Note:
        If both store_config and db_path are provided, store_config takes precedence.
        If neither is provided, defaults to an in-memory database.
    """

    def __init__(self, store_config: Optional[StoreConfig] = None, db_path: Optional[str] = None):
        if store_config:
            if store_config.store_type != "duckdb":
                raise StorageError(
                    f"StoreConfig type '{store_config.store_type}' does not match DuckDB adapter",
                    operation="__init__"
                )
            self.db_path = store_config.db_path or ":memory:"
            self.table_name = store_config.table_name
        else:
            self.db_path = db_path or ":memory:"
            self.table_name = "world_state"

        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.Lock()
        self._initialized = False

        if self.db_path != ":memory:":
            db_path_obj = Path(self.db_path)
            if not db_path_obj.parent.exists():
                raise StorageError(
                    f"Database directory does not exist: {db_path_obj.parent}",
                    operation="__init__"
                )

    def _get_connection(self) -> duckdb.DuckDBPyConnection:
        """Get or create the DuckDB connection (created lazily, then reused)."""
        if self._connection is None:
            try:
                self._connection = duckdb.connect(self.db_path)
                logger.info(f"Connected to DuckDB database: {self.db_path}")
            except Exception as e:
                raise StorageError(
                    f"Failed to connect to DuckDB: {str(e)}",
                    operation="connect",
                    details={"db_path": self.db_path}
                ) from e
        return self._connection

    def initialize_schema(self) -> None:
        """Create the world state table if it does not exist."""
        with self._lock:
            try:
                conn = self._get_connection()
                conn.execute(f"""
                    CREATE TABLE IF NOT EXISTS {self.table_name} (
                        key VARCHAR PRIMARY KEY,
                        value BLOB NOT NULL,
                        written_at TIMESTAMP NOT NULL DEFAULT current_timestamp
                    )
                """)
            except duckdb.Error as e:
                raise StorageError(f"Failed to initialize schema: {str(e)}", operation="initialize_schema") from e
        self._initialized = True
        logger.info(f"World state table ready: {self.table_name}")

    def _ensure_schema(self) -> None:
        if not self._initialized:
            self.initialize_schema()

    # ------------------------------------------------------------------
    # Blocking implementations
    # ------------------------------------------------------------------

    def _get_state_sync(self, key: str) -> Optional[bytes]:
        self._ensure_schema()
        with self._lock:
            try:
                row = self._get_connection().execute(
                    f"SELECT value FROM {self.table_name} WHERE key = ?", [key]
                ).fetchone()
            except duckdb.Error as e:
                raise StorageError(f"Failed to read key: {str(e)}", operation="get_state", details={"key": key}) from e
        return bytes(row[0]) if row else None

    def _put_state_sync(self, key: str, value: bytes) -> None:
        self._ensure_schema()
        with self._lock:
            try:
                self._get_connection().execute(
                    f"INSERT OR REPLACE INTO {self.table_name} (key, value, written_at) VALUES (?, ?, current_timestamp)",
                    [key, value]
                )
            except duckdb.Error as e:
                raise StorageError(f"Failed to write key: {str(e)}", operation="put_state", details={"key": key}) from e

    def _query_sync(self, query_string: str) -> list[tuple[str, bytes]]:
        selector = parse_query_string(query_string)
        self._ensure_schema()
        with self._lock:
            try:
                rows = self._get_connection().execute(
                    f"SELECT key, value FROM {self.table_name} ORDER BY key"
                ).fetchall()
            except duckdb.Error as e:
                raise StorageError(f"Failed to run query: {str(e)}", operation="get_query_result") from e
        return [(key, bytes(value)) for key, value in rows if matches_selector(bytes(value), selector)]

    # ------------------------------------------------------------------
    # StateStorePort
    # ------------------------------------------------------------------

    async def get_state(self, key: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._get_state_sync, key)

    async def put_state(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._put_state_sync, key, value)

    async def get_query_result(self, query_string: str) -> list[tuple[str, bytes]]:
        return await asyncio.to_thread(self._query_sync, query_string)

    def count(self) -> int:
        """Number of keys in the world state."""
        self._ensure_schema()
        with self._lock:
            try:
                return self._get_connection().execute(f"SELECT COUNT(*) FROM {self.table_name}").fetchone()[0]
            except duckdb.Error as e:
                raise StorageError(f"Failed to count keys: {str(e)}", operation="count") from e

    def close(self) -> None:
        """Close the DuckDB connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                self._initialized = False
                logger.info("DuckDB connection closed")
