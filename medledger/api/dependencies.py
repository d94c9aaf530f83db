"""Dependency injection for the MedLedger API.

Each request gets its own InvocationContext: the shared state store, a fresh
transaction context, and an identity resolver built from the client headers.

The core performs check-then-act sequences without locking and relies on its
host to serialize invocations. The API is that host: every ledger request holds
the store's invocation lock from context creation until the handler returns.
"""

import asyncio
import logging
import weakref
from functools import lru_cache
from typing import Annotated, AsyncIterator, Optional
from urllib.parse import unquote

from fastapi import Depends, Header

from medledger.adapters.identity import ClientIdIdentityResolver, X509IdentityResolver
from medledger.adapters.storage import create_state_store
from medledger.adapters.transaction import SystemTransactionContext
from medledger.contract import MedicalRecordsContract
from medledger.domain.ports import (
    IdentityPort,
    InvocationContext,
    StateStorePort,
    TransactionContextPort,
)
from medledger.infrastructure.settings import settings

logger = logging.getLogger(__name__)

_invocation_locks: "weakref.WeakKeyDictionary[StateStorePort, asyncio.Lock]" = weakref.WeakKeyDictionary()


@lru_cache()
def get_state_store() -> StateStorePort:
    """Get the configured state store (cached for the process lifetime).

    Raises:
        ValueError: If the store type is unsupported
    """
    store_config = settings.store_config
    logger.debug(f"Creating {store_config.store_type} state store")
    return create_state_store(store_config)


def get_invocation_lock(store: StateStorePort) -> asyncio.Lock:
    """Return the lock serializing invocations against ``store``."""
    lock = _invocation_locks.get(store)
    if lock is None:
        lock = asyncio.Lock()
        _invocation_locks[store] = lock
    return lock


def get_transaction_context() -> TransactionContextPort:
    return SystemTransactionContext()


def get_identity(
    client_id: Annotated[Optional[str], Header(alias=settings.client_id_header)] = None,
    client_cert: Annotated[Optional[str], Header(alias=settings.client_cert_header)] = None,
) -> IdentityPort:
    """Build the caller's identity resolver.

    A URL-escaped PEM certificate (as forwarded by a TLS-terminating proxy) takes
    precedence over the client id string.

    Raises:
        IdentityError: If the forwarded certificate cannot be parsed
    """
    if client_cert:
        return X509IdentityResolver(unquote(client_cert).encode("utf-8"))
    return ClientIdIdentityResolver(client_id)


async def get_invocation_context(
    store: Annotated[StateStorePort, Depends(get_state_store)],
    identity: Annotated[IdentityPort, Depends(get_identity)],
    transaction: Annotated[TransactionContextPort, Depends(get_transaction_context)],
) -> AsyncIterator[InvocationContext]:
    """Yield the invocation context while holding the store's invocation lock."""
    async with get_invocation_lock(store):
        yield InvocationContext(store=store, identity=identity, transaction=transaction)


@lru_cache()
def get_contract() -> MedicalRecordsContract:
    return MedicalRecordsContract()


# Type aliases for dependency injection
StoreDep = Annotated[StateStorePort, Depends(get_state_store)]
ContextDep = Annotated[InvocationContext, Depends(get_invocation_context)]
ContractDep = Annotated[MedicalRecordsContract, Depends(get_contract)]
