import uuid
from datetime import datetime, timezone
from typing import Protocol

from supabase import Client

from dispatch_engine.errors import ShipmentNotFound
from dispatch_engine.schemas import Shipment, ShipmentDetail

SHIPMENTS_TABLE = "shipments"
DETAILS_TABLE = "shipment_details"


class ShipmentStore(Protocol):
    """Persistence the dispatch workflow needs. Records are addressed by opaque id."""

    def get_shipment(self, shipment_id: str) -> Shipment:
        ...

    def update_shipment(self, shipment_id: str, fields: dict) -> Shipment:
        ...

    def list_details(self, shipment_id: str) -> list[ShipmentDetail]:
        ...

    def add_detail(self, shipment_id: str, fields: dict) -> ShipmentDetail:
        ...


def _get_single(rowset):
    return rowset[0] if rowset else None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseShipmentStore:
    def __init__(self, db: Client):
        self.db = db

    def get_shipment(self, shipment_id: str) -> Shipment:
        resp = self.db.table(SHIPMENTS_TABLE).select("*").eq("id", shipment_id).limit(1).execute()
        row = _get_single(resp.data)
        if row is None:
            raise ShipmentNotFound(shipment_id)
        return Shipment.model_validate(row)

    def update_shipment(self, shipment_id: str, fields: dict) -> Shipment:
        payload = {**fields, "last_updated": _now_iso()}
        resp = self.db.table(SHIPMENTS_TABLE).update(payload).eq("id", shipment_id).execute()
        row = _get_single(resp.data)
        if row is None:
            raise ShipmentNotFound(shipment_id)
        return Shipment.model_validate(row)

    def list_details(self, shipment_id: str) -> list[ShipmentDetail]:
        resp = (
            self.db.table(DETAILS_TABLE)
            .select("*")
            .eq("shipment_id", shipment_id)
            .order("created_at")
            .execute()
        )
        return [ShipmentDetail.model_validate(r) for r in (resp.data or [])]

    def add_detail(self, shipment_id: str, fields: dict) -> ShipmentDetail:
        payload = {**fields, "shipment_id": shipment_id, "created_at": _now_iso()}
        resp = self.db.table(DETAILS_TABLE).insert(payload).execute()
        return ShipmentDetail.model_validate(resp.data[0])


class InMemoryShipmentStore:
    """Process-local store for tests and offline runs."""

    def __init__(self, shipments=()):
        self._shipments: dict[str, Shipment] = {s.id: s for s in shipments}
        self._details: dict[str, list[ShipmentDetail]] = {}

    def get_shipment(self, shipment_id: str) -> Shipment:
        try:
            return self._shipments[shipment_id]
        except KeyError:
            raise ShipmentNotFound(shipment_id) from None

    def update_shipment(self, shipment_id: str, fields: dict) -> Shipment:
        current = self.get_shipment(shipment_id)
        merged = {**current.model_dump(), **fields, "last_updated": datetime.now(timezone.utc)}
        updated = Shipment.model_validate(merged)
        self._shipments[shipment_id] = updated
        return updated

    def list_details(self, shipment_id: str) -> list[ShipmentDetail]:
        return list(self._details.get(shipment_id, []))

    def add_detail(self, shipment_id: str, fields: dict) -> ShipmentDetail:
        self.get_shipment(shipment_id)
        detail = ShipmentDetail.model_validate({**fields, "id": uuid.uuid4().hex, "shipment_id": shipment_id})
        self._details.setdefault(shipment_id, []).append(detail)
        return detail
