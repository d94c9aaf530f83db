"""In-memory State Store Adapter.

Dictionary-backed implementation of StateStorePort, selected with
``ML_STORE_TYPE=memory`` and used throughout the tests. Nothing survives the process.
"""

import logging
from typing import Optional

from medledger.adapters.storage.selector import matches_selector, parse_query_string
from medledger.domain.ports import StateStorePort

logger = logging.getLogger(__name__)


class InMemoryStateStore(StateStorePort):
    """World state held in a dict; queries iterate keys in sorted order.

    Parameters:
        initial: Optional mapping of key to raw bytes to seed the store
    """

    def __init__(self, initial: Optional[dict[str, bytes]] = None):
        self._state: dict[str, bytes] = dict(initial or {})

    async def get_state(self, key: str) -> Optional[bytes]:
        return self._state.get(key)

    async def put_state(self, key: str, value: bytes) -> None:
        self._state[key] = value

    async def get_query_result(self, query_string: str) -> list[tuple[str, bytes]]:
        selector = parse_query_string(query_string)
        return [
            (key, self._state[key])
            for key in sorted(self._state)
            if matches_selector(self._state[key], selector)
        ]

    def __len__(self) -> int:
        return len(self._state)

    def __contains__(self, key: str) -> bool:
        return key in self._state
