"""State store adapters for MedLedger.

This module contains storage adapters that implement the StateStorePort interface
for holding the key-value world state and answering selector queries.
"""

import logging

from medledger.adapters.storage.duckdb_adapter import DuckDBStateStore
from medledger.adapters.storage.memory_adapter import InMemoryStateStore
from medledger.domain.ports import StateStorePort
from medledger.infrastructure.config_manager import StoreConfig

logger = logging.getLogger(__name__)


def create_state_store(store_config: StoreConfig) -> StateStorePort:
    """Create the state store adapter selected by configuration.

    Raises:
        ValueError: If the store type is unsupported
    """
    if store_config.store_type == "memory":
        logger.info("Initializing in-memory state store")
        return InMemoryStateStore()
    elif store_config.store_type == "duckdb":
        logger.info(f"Initializing DuckDB state store with path: {store_config.db_path or ':memory:'}")
        store = DuckDBStateStore(store_config=store_config)
        store.initialize_schema()
        return store
    else:
        raise ValueError(f"Unsupported store type: {store_config.store_type}")


__all__ = ["DuckDBStateStore", "InMemoryStateStore", "create_state_store"]
