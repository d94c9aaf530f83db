"""Caller identity adapters.

Implementations of IdentityPort that turn a credential into the caller id:

- ``ClientIdIdentityResolver`` takes the client identity string as presented by
  the hosting environment (``x509::<subject>::<issuer>``)
- ``X509IdentityResolver`` derives that string from a PEM encoded certificate
"""

import logging
from typing import Optional

from cryptography import x509

from medledger.domain.identity import parse_caller_id
from medledger.domain.ports import IdentityError, IdentityPort

logger = logging.getLogger(__name__)


def format_distinguished_name(name: x509.Name) -> str:
    """Render an X.509 name as ``/C=US/ST=.../CN=...`` in certificate order."""
    return "".join(f"/{attribute.rfc4514_attribute_name}={attribute.value}" for attribute in name)


def client_id_from_certificate(certificate: x509.Certificate) -> str:
    """Build the ``x509::<subject>::<issuer>`` client identity of a certificate."""
    subject = format_distinguished_name(certificate.subject)
    issuer = format_distinguished_name(certificate.issuer)
    return f"x509::{subject}::{issuer}"


class ClientIdIdentityResolver(IdentityPort):
    """Resolves the caller from a client identity string.

    Parameters:
        client_id: Client identity string, or None if the caller presented none
    """

    def __init__(self, client_id: Optional[str]):
        self.client_id = client_id

    async def resolve_caller_id(self) -> str:
        if self.client_id is None:
            raise IdentityError("No client identity was presented")
        return parse_caller_id(self.client_id)


class X509IdentityResolver(IdentityPort):
    """Resolves the caller from a PEM encoded X.509 certificate.

    Parameters:
        pem_data: The caller's certificate in PEM format

    Raises:
        IdentityError: If the certificate cannot be parsed
    """

    def __init__(self, pem_data: bytes):
        try:
            self.certificate = x509.load_pem_x509_certificate(pem_data)
        except ValueError as e:
            raise IdentityError(f"Invalid client certificate: {str(e)}") from e
        self.client_id = client_id_from_certificate(self.certificate)

    async def resolve_caller_id(self) -> str:
        return parse_caller_id(self.client_id)
