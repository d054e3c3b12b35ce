"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from dispatch_engine.main import app
from dispatch_engine.routers.shipments import get_controller, get_store
from dispatch_engine.schemas import ShipmentStatus
from dispatch_engine.services.completion import SideEffectOutcome


class StubController:
    """Records observations instead of rendering documents."""

    def __init__(self):
        self.observations = []

    async def dispatch(self, obs, shipment=None):
        self.observations.append(obs)
        fired = obs.previous_status is ShipmentStatus.PENDING and obs.new_status is ShipmentStatus.COMPLETED
        return SideEffectOutcome(shipment_id=obs.shipment_id, fired=fired)


@pytest.fixture
def controller():
    return StubController()


@pytest.fixture
def client(store, controller):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_controller] = lambda: controller
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestBarcodeRoutes:
    def test_decode_success(self, client):
        resp = client.post("/barcode/decode", json={"raw": "US-X-NYDOE-0-00007-Y-Z-Q-00500"})

        assert resp.status_code == 200
        assert resp.json() == {"doe": "OE", "dispatch_number": "7", "gross_weight": 50.0}

    def test_decode_failure_is_422_with_kind(self, client):
        resp = client.post("/barcode/decode", json={"raw": "SHORT"})

        assert resp.status_code == 422
        assert resp.json()["detail"]["kind"] == "TooShort"


class TestShipmentRoutes:
    def test_read_shipment(self, client):
        resp = client.get("/shipments/SHP-1")

        assert resp.status_code == 200
        assert resp.json()["status"] == "Pending"

    def test_read_missing_shipment(self, client):
        assert client.get("/shipments/NOPE").status_code == 404

    def test_completing_shipment_reports_transition(self, client, controller):
        resp = client.patch("/shipments/SHP-1", json={"status": "Completed"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["documents_triggered"] is True
        assert body["shipment"]["status"] == "Completed"
        [obs] = controller.observations
        assert obs.previous_status is ShipmentStatus.PENDING
        assert obs.new_status is ShipmentStatus.COMPLETED

    def test_address_edit_is_not_reported(self, client, controller):
        resp = client.patch("/shipments/SHP-1", json={"consignee_address": "La Poste, Paris"})

        assert resp.status_code == 200
        assert resp.json()["documents_triggered"] is False
        assert controller.observations == []

    def test_unknown_status_rejected(self, client, controller):
        resp = client.patch("/shipments/SHP-1", json={"status": "Shipped"})

        assert resp.status_code == 422
        assert controller.observations == []

    def test_empty_update_rejected(self, client):
        assert client.patch("/shipments/SHP-1", json={}).status_code == 400

    def test_update_missing_shipment(self, client):
        assert client.patch("/shipments/NOPE", json={"status": "Completed"}).status_code == 404

    def test_scan_detail(self, client):
        resp = client.post("/shipments/SHP-1/details/scan", json={
            "raw": "FR007ABCDEFG123",
            "customer": "acme",
            "service": "eco",
            "number_of_bags": 4,
        })

        assert resp.status_code == 201
        body = resp.json()
        assert body["doe"] == "FR"
        assert body["tare_weight"] == 0.5
        assert body["net_weight"] == 11.8

    def test_scan_bad_label(self, client):
        resp = client.post("/shipments/SHP-1/details/scan", json={
            "raw": "A-B-C", "customer": "acme", "service": "eco",
        })

        assert resp.status_code == 422
        assert resp.json()["detail"]["kind"] == "TooFewSegments"

    def test_scan_into_completed_shipment_conflicts(self, client):
        client.patch("/shipments/SHP-1", json={"status": "Completed"})
        resp = client.post("/shipments/SHP-1/details/scan", json={
            "raw": "FR007ABCDEFG123", "customer": "acme", "service": "eco",
        })

        assert resp.status_code == 409


class TestStatusRoute:
    def test_status_route_reports_transition(self, client, controller):
        resp = client.put("/shipments/SHP-1/status", json={"status": "Completed"})

        assert resp.status_code == 200
        assert resp.json()["documents_triggered"] is True
        [obs] = controller.observations
        assert obs.previous_status is ShipmentStatus.PENDING
        assert obs.new_status is ShipmentStatus.COMPLETED

    def test_status_route_resave_does_not_trigger(self, client, controller):
        client.put("/shipments/SHP-1/status", json={"status": "Completed"})
        resp = client.put("/shipments/SHP-1/status", json={"status": "Completed"})

        assert resp.json()["documents_triggered"] is False
        assert len(controller.observations) == 2

    def test_status_route_requires_status(self, client, controller):
        assert client.put("/shipments/SHP-1/status", json={}).status_code == 422
        assert client.put("/shipments/SHP-1/status", json={"status": "Shipped"}).status_code == 422
        assert controller.observations == []

    def test_status_route_missing_shipment(self, client):
        assert client.put("/shipments/NOPE/status", json={"status": "Completed"}).status_code == 404
