"""Tests for the MedLedger HTTP API.

Covers:
- Root and health endpoints
- Registration and lookup routes
- Record writes and the authorization-gated read
- Translation of domain errors into status codes
- Certificate identities, request context and per-store serialization
"""

import asyncio
import json
import logging
from urllib.parse import quote

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from medledger.adapters.storage import InMemoryStateStore
from medledger.api.dependencies import get_state_store
from medledger.api.main import app
from medledger.domain.ports import StorageError


def caller(caller_id: str) -> dict:
    return {"X-Client-Id": f"x509::/C=US/O=Org1/OU=client/CN={caller_id}::/C=US/CN=ca.org1"}


@pytest.fixture
def state_store():
    return InMemoryStateStore()


@pytest.fixture
def client(state_store):
    """Create a test client over a fresh in-memory state store."""
    app.dependency_overrides[get_state_store] = lambda: state_store

    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def populated(client):
    """Patient p1, doctor d1, facility f1, entities e1/e2 and record r1."""
    client.post("/api/patients", json={"firstName": "Ada", "lastName": "Lovelace", "id": "p1"})
    client.post("/api/doctors", json={"firstName": "Gregory", "lastName": "House", "id": "d1"})
    client.post("/api/facilities", json={"name": "Mercy General", "id": "f1"})
    client.post("/api/entities", json={"name": "Acme Insurance", "id": "e1"})
    client.post("/api/entities", json={"name": "Lab Corp", "id": "e2"})
    client.post("/api/records", json={
        "recordId": "r1",
        "patientId": "p1",
        "doctorId": "d1",
        "facilityId": "f1",
        "metadata": json.dumps({"bp": "120/80"}),
    })
    return client


class TestRootAndHealth:

    def test_root_endpoint_returns_info(self, client):
        """Test that root endpoint returns API information."""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "MedLedger API"
        assert data["health"] == "/api/health"

    def test_health_check_healthy(self, client):
        """Test health check reports a connected store."""
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["store"]["status"] == "connected"
        assert data["store"]["type"] == "InMemoryStateStore"

    def test_health_check_unhealthy(self, client, state_store):
        """Test health check degrades when the store fails."""
        state_store.get_state = AsyncMock(side_effect=StorageError("boom", operation="get_state"))

        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "unhealthy"
        assert response.json()["store"]["status"] == "disconnected"

    def test_process_time_header(self, client):
        """Test the logging middleware adds X-Process-Time."""
        response = client.get("/")

        assert "X-Process-Time" in response.headers


class TestRegistryRoutes:

    def test_register_patient(self, client):
        response = client.post("/api/patients", json={"firstName": "Ada", "lastName": "Lovelace", "id": "p1"})

        assert response.status_code == 201
        assert response.json() == {"success": "OK"}

    def test_get_patient_uses_stored_names(self, populated):
        response = populated.get("/api/patients/p1")

        assert response.status_code == 200
        assert response.json() == {"docType": "patient", "fullName": "Ada Lovelace", "recordId": "r1"}

    def test_get_missing_patient_is_404(self, client):
        response = client.get("/api/patients/nope")

        assert response.status_code == 404
        assert "does not exist" in response.json()["detail"]

    def test_exists_endpoints(self, populated):
        assert populated.get("/api/patients/p1/exists").json() == {"id": "p1", "exists": True}
        assert populated.get("/api/doctors/p1/exists").json() == {"id": "p1", "exists": False}

    def test_get_doctor(self, populated):
        data = populated.get("/api/doctors/d1").json()

        assert data["fullName"] == "Gregory House"
        assert data["accessList"] == []

    def test_listings_use_key_record_pairs(self, populated):
        entities = populated.get("/api/entities").json()

        assert [item["Key"] for item in entities] == ["e1", "e2"]
        assert entities[0]["Record"] == {"docType": "entity", "entityName": "Acme Insurance"}
        assert [item["Key"] for item in populated.get("/api/facilities").json()] == ["f1"]
        assert [item["Key"] for item in populated.get("/api/doctors").json()] == ["d1"]
        assert [item["Key"] for item in populated.get("/api/patients").json()] == ["p1"]

    def test_invalid_body_is_422(self, client):
        response = client.post("/api/patients", json={"firstName": "Ada"})

        assert response.status_code == 422


class TestRecordRoutes:

    def test_create_record_for_unknown_patient_is_404(self, client):
        response = client.post("/api/records", json={
            "recordId": "r1", "patientId": "ghost", "doctorId": "d1", "facilityId": "f1", "metadata": "{}",
        })

        assert response.status_code == 404

    def test_second_write_updates_linked_record(self, populated):
        response = populated.post("/api/records", json={
            "recordId": "r2", "patientId": "p1", "doctorId": "d1", "facilityId": "f1", "metadata": '"m2"',
        })

        assert response.status_code == 201
        keys = [item["Key"] for item in populated.get("/api/records").json()]
        assert keys == ["r1"]

    def test_granted_caller_reads_record(self, populated):
        grant = populated.post("/api/grants", json={"recordId": "r1", "entityId": "e1", "paymentTxId": "pay-1"})
        assert grant.status_code == 201
        assert grant.json() == {"success": "Access granted"}

        response = populated.get("/api/records/r1", headers=caller("e1"))

        assert response.status_code == 200
        data = response.json()
        assert data["metadata"] == {"bp": "120/80"}
        assert set(data) == {"metadata", "createdAt", "updatedAt"}

    def test_ungranted_caller_is_403(self, populated):
        populated.post("/api/grants", json={"recordId": "r1", "entityId": "e1", "paymentTxId": "pay-1"})

        response = populated.get("/api/records/r1", headers=caller("e2"))

        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "You are not authorized to access this record"}

    def test_missing_identity_is_401(self, populated):
        response = populated.get("/api/records/r1")

        assert response.status_code == 401

    def test_identity_without_common_name_is_401(self, populated):
        response = populated.get("/api/records/r1", headers={"X-Client-Id": "x509::/C=US/O=Org1::/C=US"})

        assert response.status_code == 401

    def test_missing_record_is_404(self, populated):
        response = populated.get("/api/records/r9", headers=caller("e1"))

        assert response.status_code == 404


class TestGrantRoutes:

    def test_duplicate_grant_is_409(self, populated):
        body = {"recordId": "r1", "entityId": "e1", "paymentTxId": "pay-1"}
        populated.post("/api/grants", json=body)

        response = populated.post("/api/grants", json=body)

        assert response.status_code == 409
        assert "already has an access" in response.json()["detail"]

    def test_grant_to_unknown_entity_is_404(self, populated):
        response = populated.post("/api/grants", json={"recordId": "r1", "entityId": "nobody", "paymentTxId": "p"})

        assert response.status_code == 404

    def test_storage_failure_is_500(self, populated, state_store):
        state_store.get_query_result = AsyncMock(side_effect=StorageError("engine down", operation="get_query_result"))

        response = populated.post("/api/grants", json={"recordId": "r1", "entityId": "e1", "paymentTxId": "p"})

        assert response.status_code == 500
        assert "engine down" not in response.text


class TestRecordGrantsRoute:

    def test_lists_grants_for_record(self, populated):
        populated.post("/api/grants", json={"recordId": "r1", "entityId": "e1", "paymentTxId": "pay-1"})
        populated.post("/api/grants", json={"recordId": "r1", "entityId": "e2", "paymentTxId": "pay-2"})

        response = populated.get("/api/records/r1/grants")

        assert response.status_code == 200
        grants = response.json()
        assert sorted(item["Record"]["entityId"] for item in grants) == ["e1", "e2"]
        assert all(item["Record"]["docType"] == "grant" for item in grants)

    def test_grants_of_missing_record_is_404(self, populated):
        response = populated.get("/api/records/r9/grants")

        assert response.status_code == 404


class TestCertificateIdentity:
    """The caller may present a forwarded PEM certificate instead of a client id."""

    def test_certificate_header_identifies_caller(self, populated, certificate_pem):
        populated.post("/api/grants", json={"recordId": "r1", "entityId": "e1", "paymentTxId": "pay-1"})
        headers = {"X-Client-Cert": quote(certificate_pem("e1").decode("utf-8"))}

        response = populated.get("/api/records/r1", headers=headers)

        assert response.status_code == 200
        assert response.json()["metadata"] == {"bp": "120/80"}

    def test_certificate_takes_precedence_over_client_id(self, populated, certificate_pem):
        populated.post("/api/grants", json={"recordId": "r1", "entityId": "e1", "paymentTxId": "pay-1"})
        headers = {**caller("e1"), "X-Client-Cert": quote(certificate_pem("e2").decode("utf-8"))}

        response = populated.get("/api/records/r1", headers=headers)

        assert response.status_code == 403

    def test_unparseable_certificate_is_401(self, populated):
        response = populated.get("/api/records/r1", headers={"X-Client-Cert": "not-a-certificate"})

        assert response.status_code == 401


class TestRequestContext:

    def test_request_id_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, client):
        assert len(client.get("/").headers["X-Request-ID"]) == 32

    def test_request_logs_carry_context(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="medledger.api.middleware"):
            client.get("/api/health", headers={"X-Request-ID": "req-456"})

        records = [r for r in caplog.records if r.name == "medledger.api.middleware"]
        assert records
        assert all(r.request_id == "req-456" for r in records)
        assert all(r.endpoint == "GET /api/health" for r in records)
        assert all(hasattr(r, "client_ip") for r in records)


@pytest_asyncio.fixture
async def async_client(state_store):
    """Client issuing requests concurrently on one event loop."""
    app.dependency_overrides[get_state_store] = lambda: state_store
    try:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


class TestConcurrentInvocations:
    """Concurrent requests against one store are serialized per invocation."""

    @staticmethod
    async def register_principals(client):
        await client.post("/api/patients", json={"firstName": "Ada", "lastName": "Lovelace", "id": "p1"})
        await client.post("/api/doctors", json={"firstName": "Gregory", "lastName": "House", "id": "d1"})
        await client.post("/api/facilities", json={"name": "Mercy General", "id": "f1"})
        await client.post("/api/entities", json={"name": "Acme Insurance", "id": "e1"})

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_grants_store_one_grant(self, async_client):
        await self.register_principals(async_client)
        await async_client.post("/api/records", json={
            "recordId": "r1", "patientId": "p1", "doctorId": "d1", "facilityId": "f1", "metadata": "{}",
        })
        body = {"recordId": "r1", "entityId": "e1", "paymentTxId": "pay-1"}

        responses = await asyncio.gather(*(async_client.post("/api/grants", json=body) for _ in range(4)))

        assert sorted(r.status_code for r in responses) == [201, 409, 409, 409]
        grants = (await async_client.get("/api/records/r1/grants")).json()
        assert len(grants) == 1

    @pytest.mark.asyncio
    async def test_concurrent_first_writes_link_one_record(self, async_client):
        await self.register_principals(async_client)

        responses = await asyncio.gather(*(
            async_client.post("/api/records", json={
                "recordId": record_id, "patientId": "p1", "doctorId": "d1", "facilityId": "f1", "metadata": "{}",
            })
            for record_id in ("rA", "rB")
        ))

        assert [r.status_code for r in responses] == [201, 201]
        records = [item["Key"] for item in (await async_client.get("/api/records")).json()]
        patient = (await async_client.get("/api/patients/p1")).json()
        assert len(records) == 1
        assert patient["recordId"] == records[0]
