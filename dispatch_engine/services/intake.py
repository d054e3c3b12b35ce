import asyncio
import logging
from typing import Optional

from dispatch_engine.errors import ShipmentLocked
from dispatch_engine.schemas import Shipment, ShipmentDetail, ShipmentStatus, TransitionObservation
from dispatch_engine.services.barcode import decode_or_raise
from dispatch_engine.services.completion import CompletionWorkflowController, SideEffectOutcome
from dispatch_engine.services.store import ShipmentStore

logger = logging.getLogger(__name__)

TARE_WEIGHT_DEFAULT = 25.7  # kg per pallet load
BAG_WEIGHT_MULTIPLIER = 0.125  # kg per bag


def tare_weight_for(number_of_pallets: int, number_of_bags: int) -> float:
    """Pallet loads use the default tare; bag loads weigh 0.125 kg a bag."""
    if number_of_pallets > 0:
        return TARE_WEIGHT_DEFAULT
    if number_of_bags > 0:
        return round(number_of_bags * BAG_WEIGHT_MULTIPLIER, 3)
    return 0.0


def net_weight(gross_weight: float, tare_weight: float) -> float:
    return round(gross_weight - tare_weight, 3)


def recalculate_totals(store: ShipmentStore, shipment_id: str) -> Shipment:
    details = store.list_details(shipment_id)
    totals = {
        "total_pallets": sum(d.number_of_pallets for d in details),
        "total_bags": sum(d.number_of_bags for d in details),
        "total_gross_weight": round(sum(d.gross_weight for d in details), 3),
        "total_tare_weight": round(sum(d.tare_weight for d in details), 3),
        "total_net_weight": round(sum(d.net_weight for d in details), 3),
    }
    return store.update_shipment(shipment_id, totals)


def scan_detail(
    store: ShipmentStore,
    shipment_id: str,
    raw: str,
    customer: str,
    service: str,
    format: Optional[str] = None,
    number_of_pallets: int = 0,
    number_of_bags: int = 0,
) -> ShipmentDetail:
    """
    Decode a dispatch label and record it as a new detail line.

    Raises BarcodeDecodeError before anything is written if the label does
    not decode, and ShipmentLocked if the shipment is already completed.
    """
    shipment = store.get_shipment(shipment_id)
    if shipment.status is ShipmentStatus.COMPLETED:
        raise ShipmentLocked(shipment_id)

    record = decode_or_raise(raw)
    tare = tare_weight_for(number_of_pallets, number_of_bags)
    detail = store.add_detail(shipment_id, {
        "customer": customer,
        "service": service,
        "format": format,
        "number_of_pallets": number_of_pallets,
        "number_of_bags": number_of_bags,
        "tare_weight": tare,
        "gross_weight": record.gross_weight,
        "net_weight": net_weight(record.gross_weight, tare),
        "dispatch_number": record.dispatch_number,
        "doe": record.doe,
    })
    recalculate_totals(store, shipment_id)
    logger.info(f"[Intake] {shipment_id}: detail {detail.id} added (DOE {record.doe}, dispatch {record.dispatch_number})")
    return detail


async def update_shipment_status(
    store: ShipmentStore,
    controller: CompletionWorkflowController,
    shipment_id: str,
    fields: dict,
    wait: bool = False,
) -> tuple[Shipment, Optional[SideEffectOutcome]]:
    """
    Write a shipment update and report any status change to the controller.

    The previous status is read before the write. Updates that do not touch
    the status field are not reported. With wait=False the document pipeline
    runs in the background.
    """
    current = await asyncio.to_thread(store.get_shipment, shipment_id)
    updated = await asyncio.to_thread(store.update_shipment, shipment_id, fields)

    if "status" not in fields:
        return updated, None

    obs = TransitionObservation(
        shipment_id=shipment_id,
        previous_status=current.status,
        new_status=updated.status,
    )
    if wait:
        return updated, await controller.observe(obs, shipment=updated)
    return updated, await controller.dispatch(obs, shipment=updated)
