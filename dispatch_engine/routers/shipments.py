import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from dispatch_engine.config import get_settings
from dispatch_engine.errors import BarcodeDecodeError, ShipmentLocked, ShipmentNotFound
from dispatch_engine.schemas import (
    DetailScan,
    Shipment,
    ShipmentDetail,
    ShipmentUpdate,
    ShipmentUpdateResponse,
    StatusUpdate,
)
from dispatch_engine.services.completion import CompletionWorkflowController
from dispatch_engine.services.intake import scan_detail, update_shipment_status
from dispatch_engine.services.store import ShipmentStore, SupabaseShipmentStore
from dispatch_engine.services.supabase_client import get_supabase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shipments", tags=["Shipments"])


def get_store() -> ShipmentStore:
    return SupabaseShipmentStore(get_supabase(get_settings()))


def get_controller(request: Request) -> CompletionWorkflowController:
    return request.app.state.controller


@router.get("/{shipment_id}", response_model=Shipment)
def read_shipment(shipment_id: str, store: ShipmentStore = Depends(get_store)):
    try:
        return store.get_shipment(shipment_id)
    except ShipmentNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{shipment_id}", response_model=ShipmentUpdateResponse)
async def patch_shipment(
    shipment_id: str,
    update: ShipmentUpdate,
    store: ShipmentStore = Depends(get_store),
    controller: CompletionWorkflowController = Depends(get_controller),
):
    fields = update.model_dump(mode="json", exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")
    return await _apply_update(store, controller, shipment_id, fields)


@router.put("/{shipment_id}/status", response_model=ShipmentUpdateResponse)
async def put_shipment_status(
    shipment_id: str,
    update: StatusUpdate,
    store: ShipmentStore = Depends(get_store),
    controller: CompletionWorkflowController = Depends(get_controller),
):
    return await _apply_update(store, controller, shipment_id, update.model_dump(mode="json"))


async def _apply_update(store, controller, shipment_id: str, fields: dict) -> ShipmentUpdateResponse:
    try:
        shipment, outcome = await update_shipment_status(store, controller, shipment_id, fields)
    except ShipmentNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"[Shipments] update failed for {shipment_id}")
        raise HTTPException(status_code=500, detail=str(e))

    return ShipmentUpdateResponse(
        shipment=shipment,
        documents_triggered=bool(outcome and outcome.fired),
    )


@router.post("/{shipment_id}/details/scan", response_model=ShipmentDetail, status_code=201)
def scan_shipment_detail(shipment_id: str, scan: DetailScan, store: ShipmentStore = Depends(get_store)):
    try:
        return scan_detail(
            store,
            shipment_id,
            scan.raw,
            customer=scan.customer,
            service=scan.service,
            format=scan.format,
            number_of_pallets=scan.number_of_pallets,
            number_of_bags=scan.number_of_bags,
        )
    except BarcodeDecodeError as e:
        raise HTTPException(status_code=422, detail=e.failure.model_dump(mode="json"))
    except ShipmentNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ShipmentLocked as e:
        raise HTTPException(status_code=409, detail=str(e))
