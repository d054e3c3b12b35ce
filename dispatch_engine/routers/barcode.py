from fastapi import APIRouter, HTTPException

from dispatch_engine.schemas import BarcodeRecord, BarcodeScan, DecodeFailure
from dispatch_engine.services.barcode import decode

router = APIRouter(prefix="/barcode", tags=["Barcode"])


@router.post("/decode", response_model=BarcodeRecord)
def decode_barcode(scan: BarcodeScan):
    result = decode(scan.raw)
    if isinstance(result, DecodeFailure):
        # Scan is rejected whole; the operator re-scans or keys it in.
        raise HTTPException(status_code=422, detail=result.model_dump(mode="json"))
    return result
