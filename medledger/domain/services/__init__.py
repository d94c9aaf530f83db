"""Domain services for MedLedger.

Each service runs against one InvocationContext and is safe to construct per call.
"""

from medledger.domain.services.grants import GrantLedger
from medledger.domain.services.records import RecordManager
from medledger.domain.services.registry import EntityRegistry

__all__ = ["EntityRegistry", "RecordManager", "GrantLedger"]
