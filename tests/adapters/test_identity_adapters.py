"""Tests for caller identity and transaction context adapters."""

import re
from datetime import datetime, timedelta, timezone

import pytest

from medledger.adapters.identity import (
    ClientIdIdentityResolver,
    X509IdentityResolver,
    client_id_from_certificate,
)
from medledger.adapters.transaction import SystemTransactionContext, format_timestamp
from medledger.domain.ports import IdentityError


class TestClientIdIdentityResolver:

    @pytest.mark.asyncio
    async def test_resolves_common_name(self):
        resolver = ClientIdIdentityResolver("x509::/C=US/O=Org1/CN=e1::/C=US/CN=ca.org1")

        assert await resolver.resolve_caller_id() == "e1"

    @pytest.mark.asyncio
    async def test_missing_client_id_raises(self):
        with pytest.raises(IdentityError):
            await ClientIdIdentityResolver(None).resolve_caller_id()


class TestX509IdentityResolver:
    """Caller ids derived from PEM certificates."""

    @pytest.mark.asyncio
    async def test_resolves_certificate_subject(self, certificate_pem):
        resolver = X509IdentityResolver(certificate_pem("doctor-7"))

        assert await resolver.resolve_caller_id() == "doctor-7"

    def test_client_id_format(self, certificate_pem):
        resolver = X509IdentityResolver(certificate_pem("e1"))

        assert resolver.client_id == client_id_from_certificate(resolver.certificate)
        assert resolver.client_id == "x509::/C=US/O=Org1/CN=e1::/C=US/O=Org1/CN=e1"

    def test_invalid_pem_raises(self):
        with pytest.raises(IdentityError):
            X509IdentityResolver(b"-----BEGIN CERTIFICATE-----\nnope\n-----END CERTIFICATE-----\n")


class TestSystemTransactionContext:

    def test_timestamp_has_whole_seconds(self):
        moment = datetime(2024, 5, 1, 10, 0, 0, 987000, tzinfo=timezone.utc)

        assert format_timestamp(moment) == "2024-05-01T10:00:00.000Z"

    def test_timestamp_converted_to_utc(self):
        moment = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone(timedelta(hours=2)))

        assert SystemTransactionContext(timestamp=moment).now() == "2024-05-01T10:00:00.000Z"

    def test_values_fixed_per_invocation(self):
        ctx = SystemTransactionContext()

        assert ctx.now() == ctx.now()
        assert ctx.tx_id() == ctx.tx_id()
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.000Z", ctx.now())

    def test_tx_ids_are_unique(self):
        first, second = SystemTransactionContext(), SystemTransactionContext()

        assert first.tx_id() != second.tx_id()
        assert len(first.tx_id()) == 64

    def test_explicit_tx_id(self):
        assert SystemTransactionContext(tx_id="tx-42").tx_id() == "tx-42"
