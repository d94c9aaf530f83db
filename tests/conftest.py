"""Shared fixtures for MedLedger tests."""

from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from medledger.adapters.identity import ClientIdIdentityResolver
from medledger.adapters.storage import InMemoryStateStore
from medledger.contract import MedicalRecordsContract
from medledger.domain.ports import InvocationContext, TransactionContextPort


def client_id_for(caller_id: str) -> str:
    """Client identity string whose subject common name is ``caller_id``."""
    return f"x509::/C=US/ST=North Carolina/O=Hyperledger/OU=client/CN={caller_id}::/C=US/O=org1.example.com/CN=ca.org1.example.com"


class FixedTransactionContext(TransactionContextPort):
    """Transaction context with a caller-chosen timestamp and tx id."""

    def __init__(self, timestamp: str = "2024-05-01T10:00:00.000Z", tx_id: str = "tx-0"):
        self.timestamp = timestamp
        self.tx = tx_id

    def now(self) -> str:
        return self.timestamp

    def tx_id(self) -> str:
        return self.tx


class LedgerHarness:
    """Builds one InvocationContext per call over a shared store."""

    def __init__(self, store):
        self.store = store
        self.contract = MedicalRecordsContract()
        self._tx_counter = 0

    def ctx(self, caller: str = "admin", timestamp: str = "2024-05-01T10:00:00.000Z", tx_id: str = None) -> InvocationContext:
        self._tx_counter += 1
        return InvocationContext(
            store=self.store,
            identity=ClientIdIdentityResolver(client_id_for(caller)),
            transaction=FixedTransactionContext(timestamp, tx_id or f"tx-{self._tx_counter}"),
        )


@pytest.fixture
def store():
    return InMemoryStateStore()


@pytest.fixture
def harness(store):
    return LedgerHarness(store)


def build_certificate_pem(common_name: str) -> bytes:
    """Self-signed PEM certificate whose subject CN is ``common_name``."""
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Org1"),
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
    ])
    now = datetime.now(timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    return certificate.public_bytes(serialization.Encoding.PEM)


@pytest.fixture
def certificate_pem():
    """Factory for self-signed caller certificates."""
    return build_certificate_pem
