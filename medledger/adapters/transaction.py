"""Transaction context adapter.

Supplies the per-invocation transaction id and timestamp when the core runs
outside a ledger that provides them.
"""

import hashlib
import uuid
from datetime import datetime, timezone
from typing import Optional

from medledger.domain.ports import TransactionContextPort

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.000Z"


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with whole seconds and a ``.000Z`` suffix."""
    return moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


class SystemTransactionContext(TransactionContextPort):
    """Transaction facts fixed at construction: create one per invocation.

    Parameters:
        timestamp: Transaction time (defaults to the current UTC time)
        tx_id: Transaction id (defaults to a random SHA-256 hex digest)
    """

    def __init__(self, timestamp: Optional[datetime] = None, tx_id: Optional[str] = None):
        self._timestamp = format_timestamp(timestamp or datetime.now(timezone.utc))
        self._tx_id = tx_id or hashlib.sha256(uuid.uuid4().bytes).hexdigest()

    def now(self) -> str:
        return self._timestamp

    def tx_id(self) -> str:
        return self._tx_id
